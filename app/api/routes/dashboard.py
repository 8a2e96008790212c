from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user
from app.db.models.user import User
from app.schemas.dashboard import DashboardStats
from app.services.stats_service import get_dashboard_stats

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats, response_model_exclude_none=True)
def dashboard_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Role-specific counters. Employers and recruiters get ``creditsBalance``,
    the figure the crypto checkout page watches for.
    """
    return DashboardStats(**get_dashboard_stats(db, user))
