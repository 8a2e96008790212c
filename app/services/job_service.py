"""
Job lifecycle: creation, moderation, expiry, public listing and promotion.

Status transitions:
    draft -> pending            (employer submits)
    pending -> active           (admin approves, or a job payment auto-publishes)
    pending -> rejected         (admin rejects; terminal)
    active -> expired           (visibility window elapsed, or employer closes it)
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import case, or_, select
from sqlalchemy.orm import Session

from app.core import config
from app.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.db.models.company import Company, CompanyMember
from app.db.models.job import (
    Job,
    JOB_TYPES,
    EXPERIENCE_LEVELS,
    STATUS_ACTIVE,
    STATUS_DRAFT,
    STATUS_EXPIRED,
    STATUS_PENDING,
    STATUS_REJECTED,
    TIER_FEATURED,
    TIER_PREMIUM,
)
from app.db.models.user import User, ROLE_ADMIN
from app.services import ledger_service

logger = logging.getLogger(__name__)

# Content an employer may edit; status, tier and dates move only through
# moderation, expiry and payments.
EDITABLE_FIELDS = (
    "title", "description", "requirements", "category", "location", "is_remote",
    "salary_min", "salary_max", "salary_currency", "salary_period", "job_type",
    "experience_level", "tags", "application_method", "application_email",
    "external_url", "visibility_days",
)


def _utcnow() -> datetime:
    return datetime.utcnow()


def publish(job: Job, now: datetime) -> None:
    """Make a job live for its visibility window starting at ``now``."""
    job.status = STATUS_ACTIVE
    job.published_at = now
    job.expires_at = now + timedelta(days=job.visibility_days)
    job.updated_at = now


def is_company_member(db: Session, user_id: int, company_id: int) -> bool:
    return db.query(CompanyMember.id).filter(
        CompanyMember.company_id == company_id,
        CompanyMember.user_id == user_id,
    ).first() is not None


def ensure_company_member(db: Session, user: User, company_id: int) -> None:
    """Raise PermissionDeniedError unless ``user`` is an admin or a member of the company."""
    if user.role == ROLE_ADMIN:
        return
    if not is_company_member(db, user.id, company_id):
        raise PermissionDeniedError("You are not a member of this company")


def get_job(db: Session, job_id: int, lock: bool = False) -> Job:
    query = db.query(Job).filter(Job.id == job_id)
    if lock:
        query = query.with_for_update()
    job = query.first()
    if not job:
        raise NotFoundError("Job not found")
    return job


def _validate_fields(data: dict) -> None:
    if "job_type" in data and data["job_type"] not in JOB_TYPES:
        raise ValidationError(f"job_type must be one of {', '.join(JOB_TYPES)}")
    if "experience_level" in data and data["experience_level"] not in EXPERIENCE_LEVELS:
        raise ValidationError(f"experience_level must be one of {', '.join(EXPERIENCE_LEVELS)}")
    if "visibility_days" in data and data["visibility_days"] is not None and data["visibility_days"] < 1:
        raise ValidationError("visibility_days must be at least 1")
    low, high = data.get("salary_min"), data.get("salary_max")
    if low is not None and high is not None and low > high:
        raise ValidationError("salary_min cannot exceed salary_max")


def create_job(db: Session, user: User, company_id: int, data: dict, submit: bool = False) -> Job:
    """Create a job as draft, or straight into the moderation queue when ``submit``."""
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company not found")
    ensure_company_member(db, user, company_id)

    fields = {key: value for key, value in data.items() if key in EDITABLE_FIELDS and value is not None}
    _validate_fields(fields)
    fields.setdefault("visibility_days", config.DEFAULT_VISIBILITY_DAYS)

    try:
        job = Job(
            company_id=company_id,
            created_by=user.id,
            status=STATUS_PENDING if submit else STATUS_DRAFT,
            **fields,
        )
        db.add(job)
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job created: job_id={job.id}, company_id={company_id}, user_id={user.id}, status={job.status}")
    return job


def update_job(db: Session, user: User, job_id: int, data: dict) -> Job:
    job = get_job(db, job_id)
    ensure_company_member(db, user, job.company_id)
    if job.status == STATUS_REJECTED:
        raise InvalidTransitionError("Rejected jobs cannot be edited")

    changes = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
    _validate_fields({**{f: getattr(job, f) for f in ("salary_min", "salary_max")}, **changes})

    try:
        for key, value in changes.items():
            setattr(job, key, value)
        job.updated_at = _utcnow()
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job updated: job_id={job.id}, user_id={user.id}, fields={sorted(changes)}")
    return job


def submit_job(db: Session, user: User, job_id: int) -> Job:
    job = get_job(db, job_id, lock=True)
    try:
        ensure_company_member(db, user, job.company_id)
        if job.status == STATUS_PENDING:
            db.rollback()
            return job
        if job.status != STATUS_DRAFT:
            raise InvalidTransitionError(f"Cannot submit a job in status '{job.status}'")
        job.status = STATUS_PENDING
        job.updated_at = _utcnow()
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job submitted for review: job_id={job.id}, user_id={user.id}")
    return job


def approve_job(db: Session, job_id: int, now: Optional[datetime] = None) -> Job:
    """pending -> active. Sets published_at and expires_at = published_at + visibility_days."""
    now = now or _utcnow()
    try:
        job = get_job(db, job_id, lock=True)
        if job.status != STATUS_PENDING:
            raise InvalidTransitionError(f"Only pending jobs can be approved (status is '{job.status}')")
        publish(job, now)
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job approved: job_id={job.id}, published_at={job.published_at}, expires_at={job.expires_at}")
    return job


def reject_job(db: Session, job_id: int) -> Job:
    """pending -> rejected. Terminal."""
    try:
        job = get_job(db, job_id, lock=True)
        if job.status != STATUS_PENDING:
            raise InvalidTransitionError(f"Only pending jobs can be rejected (status is '{job.status}')")
        job.status = STATUS_REJECTED
        job.updated_at = _utcnow()
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job rejected: job_id={job.id}")
    return job


def close_job(db: Session, user: User, job_id: int) -> Job:
    """Employer takes a listing down. The row is kept as ``expired``."""
    try:
        job = get_job(db, job_id, lock=True)
        ensure_company_member(db, user, job.company_id)
        if job.status == STATUS_EXPIRED:
            db.rollback()
            return job
        if job.status == STATUS_REJECTED:
            raise InvalidTransitionError("Rejected jobs cannot be closed")
        job.status = STATUS_EXPIRED
        job.updated_at = _utcnow()
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job closed: job_id={job.id}, user_id={user.id}")
    return job


def expire_due_jobs(db: Session, now: Optional[datetime] = None) -> int:
    """Flip every active job whose window has elapsed to expired. Returns the count."""
    now = now or _utcnow()
    try:
        count = (
            db.query(Job)
            .filter(Job.status == STATUS_ACTIVE, Job.expires_at.isnot(None), Job.expires_at <= now)
            .update({Job.status: STATUS_EXPIRED, Job.updated_at: now}, synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    if count:
        logger.info(f"Expired jobs: count={count}, now={now.isoformat()}")
    return count


def public_jobs_query(db: Session, now: Optional[datetime] = None):
    """
    Jobs visible to the public: active, inside their visibility window, and
    posted by an approved company.
    """
    now = now or _utcnow()
    approved_companies = select(Company.id).where(Company.is_approved.is_(True))
    return db.query(Job).filter(
        Job.status == STATUS_ACTIVE,
        or_(Job.expires_at.is_(None), Job.expires_at > now),
        Job.company_id.in_(approved_companies),
    )


def is_publicly_visible(job: Job, now: Optional[datetime] = None) -> bool:
    now = now or _utcnow()
    return (
        job.status == STATUS_ACTIVE
        and (job.expires_at is None or job.expires_at > now)
        and job.company is not None
        and job.company.is_approved
    )


def can_view_job(db: Session, job: Job, viewer: Optional[User]) -> bool:
    """Public jobs for everyone; anything else only for company members and admins."""
    if is_publicly_visible(job):
        return True
    return viewer is not None and (viewer.role == ROLE_ADMIN or is_company_member(db, viewer.id, job.company_id))


def list_public_jobs(
    db: Session,
    search: Optional[str] = None,
    category: Optional[str] = None,
    job_type: Optional[str] = None,
    experience_level: Optional[str] = None,
    is_remote: Optional[bool] = None,
    company_id: Optional[int] = None,
    tier: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    now: Optional[datetime] = None,
) -> Tuple[List[Job], int]:
    query = public_jobs_query(db, now)

    if search:
        term = f"%{search}%"
        query = query.filter(or_(
            Job.title.ilike(term),
            Job.description.ilike(term),
            Job.category.ilike(term),
            Job.location.ilike(term),
        ))
    if category:
        query = query.filter(Job.category == category)
    if job_type:
        query = query.filter(Job.job_type == job_type)
    if experience_level:
        query = query.filter(Job.experience_level == experience_level)
    if is_remote is not None:
        query = query.filter(Job.is_remote == is_remote)
    if company_id:
        query = query.filter(Job.company_id == company_id)
    if tier:
        query = query.filter(Job.tier == tier)

    total = query.count()

    tier_rank = case(
        (Job.tier == TIER_PREMIUM, 0),
        (Job.tier == TIER_FEATURED, 1),
        else_=2,
    )
    jobs = (
        query.order_by(tier_rank, Job.published_at.desc(), Job.created_at.desc(), Job.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return jobs, total


def get_job_for_viewer(db: Session, job_id: int, viewer: Optional[User]) -> Job:
    """
    Public jobs for everyone; drafts, pending, rejected and expired jobs (and
    jobs of unapproved companies) only for the owning company's members and
    admins. Others get NotFoundError.
    """
    job = get_job(db, job_id)
    if not can_view_job(db, job, viewer):
        raise NotFoundError("Job not found")
    return job


def increment_view(db: Session, job_id: int) -> None:
    updated = (
        public_jobs_query(db)
        .filter(Job.id == job_id)
        .update({Job.view_count: Job.view_count + 1}, synchronize_session=False)
    )
    db.commit()
    if not updated:
        raise NotFoundError("Job not found")


def list_company_jobs(db: Session, user: User, status: Optional[str] = None) -> List[Job]:
    """Every job of every company ``user`` belongs to, newest first."""
    query = (
        db.query(Job)
        .join(CompanyMember, CompanyMember.company_id == Job.company_id)
        .filter(CompanyMember.user_id == user.id)
    )
    if status:
        query = query.filter(Job.status == status)
    return query.order_by(Job.created_at.desc(), Job.id.desc()).all()


def list_pending_jobs(db: Session) -> List[Job]:
    return db.query(Job).filter(Job.status == STATUS_PENDING).order_by(Job.created_at.asc()).all()


def upgrade_job_with_credit(db: Session, user: User, job_id: int) -> Tuple[Job, bool]:
    """
    Spend one credit to promote a job to featured.

    The ledger debit and the tier flip commit together or not at all. A job
    that is already featured or premium is returned untouched, so a repeated
    request never spends a second credit.

    Returns:
        (job, upgraded) where ``upgraded`` is False for the idempotent no-op.

    Raises:
        PermissionDeniedError: user is not a member of the job's company
        InvalidTransitionError: job is rejected or expired
        InsufficientCreditsError: balance is 0 at transaction time
    """
    try:
        job = get_job(db, job_id, lock=True)
        ensure_company_member(db, user, job.company_id)

        if job.tier in (TIER_FEATURED, TIER_PREMIUM):
            db.rollback()
            logger.info(f"Feature upgrade no-op: job_id={job_id} already tier={job.tier}")
            return job, False

        if job.status in (STATUS_REJECTED, STATUS_EXPIRED):
            raise InvalidTransitionError(f"Cannot feature a job in status '{job.status}'")

        ledger_service.append_entry(
            db,
            user_id=user.id,
            amount=-1,
            tier=TIER_FEATURED,
            reason=ledger_service.REASON_FEATURE_UPGRADE,
            job_id=job.id,
        )
        job.tier = TIER_FEATURED
        job.updated_at = _utcnow()
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job featured with credit: job_id={job.id}, user_id={user.id}")
    return job, True


