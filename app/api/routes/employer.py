"""
Employer workspace: the caller's own companies, jobs and incoming applications.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db
from app.core.role_guard import require_hiring_role
from app.db.models.user import User
from app.schemas.application import EmployerApplicationResponse
from app.schemas.company import CompanyResponse
from app.schemas.job import JobResponse
from app.services import application_service, company_service, job_service

router = APIRouter(prefix="/api/employer", tags=["Employer"])


@router.get("/companies", response_model=List[CompanyResponse])
def my_companies(user: User = Depends(require_hiring_role), db: Session = Depends(get_db)):
    return [CompanyResponse.model_validate(c) for c in company_service.list_user_companies(db, user)]


@router.get("/jobs", response_model=List[JobResponse])
def my_jobs(
    status: Optional[str] = Query(None),
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    """All statuses, including drafts and rejected jobs."""
    return [JobResponse.model_validate(j) for j in job_service.list_company_jobs(db, user, status=status)]


@router.get("/applications", response_model=List[EmployerApplicationResponse])
def incoming_applications(
    job_id: Optional[int] = Query(None, alias="jobId"),
    status: Optional[str] = Query(None),
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    applications = application_service.list_employer_applications(db, user, job_id=job_id, status=status)
    return [EmployerApplicationResponse.model_validate(a) for a in applications]
