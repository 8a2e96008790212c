"""
Admin moderation endpoints. Every route requires role ``admin``.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db
from app.core.role_guard import require_admin
from app.schemas.company import CompanyResponse
from app.schemas.dashboard import AdminStats
from app.schemas.job import JobResponse
from app.services import company_service, job_service
from app.services.stats_service import get_admin_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=AdminStats)
def stats(db: Session = Depends(get_db)):
    return AdminStats(**get_admin_stats(db))


@router.get("/jobs/pending", response_model=List[JobResponse])
def pending_jobs(db: Session = Depends(get_db)):
    return [JobResponse.model_validate(j) for j in job_service.list_pending_jobs(db)]


@router.post("/jobs/expire")
def expire_jobs(db: Session = Depends(get_db)):
    """Run the expiry sweep now (normally scripts/expire_jobs.py from cron)."""
    return {"expired": job_service.expire_due_jobs(db)}


@router.post("/jobs/{job_id}/approve", response_model=JobResponse)
def approve_job(job_id: int, db: Session = Depends(get_db)):
    return JobResponse.model_validate(job_service.approve_job(db, job_id))


@router.post("/jobs/{job_id}/reject", response_model=JobResponse)
def reject_job(job_id: int, db: Session = Depends(get_db)):
    return JobResponse.model_validate(job_service.reject_job(db, job_id))


@router.get("/companies/pending", response_model=List[CompanyResponse])
def pending_companies(db: Session = Depends(get_db)):
    return [CompanyResponse.model_validate(c) for c in company_service.list_pending_companies(db)]


@router.post("/companies/{company_id}/approve", response_model=CompanyResponse)
def approve_company(company_id: int, db: Session = Depends(get_db)):
    return CompanyResponse.model_validate(company_service.approve_company(db, company_id))


@router.delete("/companies/{company_id}")
def delete_company(company_id: int, db: Session = Depends(get_db)):
    """Destructive: removes the company's jobs, applications and messages."""
    result = company_service.delete_company(db, company_id)
    return {"deleted": True, "companyId": result["company_id"], "jobsRemoved": result["jobs_removed"]}
