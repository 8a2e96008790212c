"""
Job listing endpoints.

Public browsing, employer CRUD, applying, and promotion to the featured tier.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_optional_user
from app.core.exceptions import JobBoardError
from app.core.role_guard import require_hiring_role, require_role
from app.db.models.user import User, ROLE_TALENT
from app.schemas.application import ApplyRequest, ApplicationResponse
from app.schemas.job import (
    JobCreate,
    JobListResponse,
    JobResponse,
    JobUpdate,
    UpgradeFeaturedRequest,
    UpgradeFeaturedResponse,
)
from app.services import application_service, job_service, stripe_service
from app.services.ledger_service import get_credit_balance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


@router.get("", response_model=JobListResponse)
def list_jobs(
    search: Optional[str] = Query(None, description="Search title, description, category and location"),
    category: Optional[str] = Query(None),
    job_type: Optional[str] = Query(None, alias="jobType"),
    experience_level: Optional[str] = Query(None, alias="experienceLevel"),
    is_remote: Optional[bool] = Query(None, alias="isRemote"),
    company_id: Optional[int] = Query(None, alias="companyId"),
    tier: Optional[str] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize", description="Items per page"),
    db: Session = Depends(get_db)
):
    """
    Public job board: active, unexpired jobs only.

    Premium jobs first, then featured, then normal; newest first within a tier.
    """
    jobs, total = job_service.list_public_jobs(
        db,
        search=search,
        category=category,
        job_type=job_type,
        experience_level=experience_level,
        is_remote=is_remote,
        company_id=company_id,
        tier=tier,
        page=page,
        page_size=page_size,
    )
    logger.debug(f"Jobs listed: total={total}, page={page}")
    return JobListResponse(
        jobs=[JobResponse.model_validate(job) for job in jobs],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{job_id}", response_model=JobResponse)
def get_job(
    job_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    job = job_service.get_job_for_viewer(db, job_id, viewer)
    return JobResponse.model_validate(job)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=JobResponse)
def create_job(
    job_data: JobCreate,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    """Create a draft (or, with ``submit``, a job waiting for moderation)."""
    data = job_data.model_dump(exclude={"company_id", "submit"}, exclude_none=True)
    try:
        job = job_service.create_job(db, user, job_data.company_id, data, submit=job_data.submit)
    except JobBoardError:
        raise
    except Exception as e:
        logger.error(f"Failed to create job: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create job"
        )
    return JobResponse.model_validate(job)


@router.put("/{job_id}", response_model=JobResponse)
def update_job(
    job_id: int,
    job_data: JobUpdate,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    job = job_service.update_job(db, user, job_id, job_data.model_dump(exclude_unset=True))
    return JobResponse.model_validate(job)


@router.delete("/{job_id}", response_model=JobResponse)
def close_job(
    job_id: int,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    """Take a listing down. The job is expired, not deleted."""
    job = job_service.close_job(db, user, job_id)
    return JobResponse.model_validate(job)


@router.post("/{job_id}/submit", response_model=JobResponse)
def submit_job(
    job_id: int,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    job = job_service.submit_job(db, user, job_id)
    return JobResponse.model_validate(job)


@router.post("/{job_id}/view", status_code=status.HTTP_204_NO_CONTENT)
def record_view(job_id: int, db: Session = Depends(get_db)):
    job_service.increment_view(db, job_id)


@router.post("/{job_id}/apply", status_code=status.HTTP_201_CREATED, response_model=ApplicationResponse)
def apply(
    job_id: int,
    payload: Optional[ApplyRequest] = None,
    user: User = Depends(require_role(ROLE_TALENT)),
    db: Session = Depends(get_db)
):
    payload = payload or ApplyRequest()
    application = application_service.apply_to_job(
        db, user, job_id, resume_url=payload.resume_url, cover_letter=payload.cover_letter
    )
    return ApplicationResponse.model_validate(application)


@router.post("/{job_id}/upgrade-featured", response_model=UpgradeFeaturedResponse)
def upgrade_featured(
    job_id: int,
    payload: Optional[UpgradeFeaturedRequest] = None,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    """
    Promote a job to featured.

    With ``paymentIntentId`` this is the card flow's confirmation callback and
    reconciles that payment (safe to repeat). Without it one ledger credit is
    spent; a job that is already featured costs nothing.
    """
    if payload is not None and payload.payment_intent_id:
        job_service.ensure_company_member(db, user, job_service.get_job(db, job_id).company_id)
        result = stripe_service.confirm_client_payment(db, user, payload.payment_intent_id, job_id=job_id)
        job = job_service.get_job(db, job_id)
        return UpgradeFeaturedResponse(
            job=JobResponse.model_validate(job),
            upgraded=result["job_upgraded"],
            already_processed=result["already_processed"],
            credits_balance=result["credits_balance"],
        )

    job, upgraded = job_service.upgrade_job_with_credit(db, user, job_id)
    return UpgradeFeaturedResponse(
        job=JobResponse.model_validate(job),
        upgraded=upgraded,
        already_processed=not upgraded,
        credits_balance=get_credit_balance(db, user.id),
    )
