"""
Dashboard counters per role.
"""
import logging

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.db.models.application import Application
from app.db.models.company import Company, CompanyMember
from app.db.models.job import Job, STATUS_ACTIVE, STATUS_PENDING
from app.db.models.saved import SavedJob
from app.db.models.user import User, ROLE_ADMIN, ROLE_EMPLOYER, ROLE_RECRUITER, ROLE_TALENT
from app.services.ledger_service import get_credit_balance

logger = logging.getLogger(__name__)


def get_admin_stats(db: Session) -> dict:
    return {
        "total_jobs": db.query(func.count(Job.id)).scalar() or 0,
        "active_jobs": db.query(func.count(Job.id)).filter(Job.status == STATUS_ACTIVE).scalar() or 0,
        "pending_jobs": db.query(func.count(Job.id)).filter(Job.status == STATUS_PENDING).scalar() or 0,
        "total_companies": db.query(func.count(Company.id)).scalar() or 0,
        "pending_companies": db.query(func.count(Company.id)).filter(Company.is_approved.is_(False)).scalar() or 0,
        "total_users": db.query(func.count(User.id)).scalar() or 0,
        "total_applications": db.query(func.count(Application.id)).scalar() or 0,
    }


def get_employer_stats(db: Session, user: User) -> dict:
    """Counters over the jobs of the companies ``user`` belongs to."""
    company_ids = (
        db.query(CompanyMember.company_id)
        .filter(CompanyMember.user_id == user.id)
        .scalar_subquery()
    )
    active, views = (
        db.query(
            func.coalesce(func.sum(case((Job.status == STATUS_ACTIVE, 1), else_=0)), 0),
            func.coalesce(func.sum(Job.view_count), 0),
        )
        .filter(Job.company_id.in_(company_ids))
        .one()
    )
    applications = (
        db.query(func.count(Application.id))
        .join(Job, Job.id == Application.job_id)
        .filter(Job.company_id.in_(company_ids))
        .scalar()
    )
    return {
        "active_jobs_count": int(active or 0),
        "total_views": int(views or 0),
        "total_applications": applications or 0,
        "credits_balance": get_credit_balance(db, user.id),
    }


def get_talent_stats(db: Session, user: User) -> dict:
    return {
        "applications_count": db.query(func.count(Application.id)).filter(Application.user_id == user.id).scalar() or 0,
        "saved_jobs_count": db.query(func.count(SavedJob.id)).filter(SavedJob.user_id == user.id).scalar() or 0,
    }


def get_dashboard_stats(db: Session, user: User) -> dict:
    stats = {"role": user.role}
    if user.role == ROLE_TALENT:
        stats.update(get_talent_stats(db, user))
    elif user.role in (ROLE_EMPLOYER, ROLE_RECRUITER):
        stats.update(get_employer_stats(db, user))
    elif user.role == ROLE_ADMIN:
        stats.update(get_admin_stats(db))
        stats["credits_balance"] = get_credit_balance(db, user.id)
    logger.debug(f"Dashboard stats: user_id={user.id}, role={user.role}")
    return stats
