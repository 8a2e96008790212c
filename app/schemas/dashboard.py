from typing import Optional

from app.schemas.common import CamelModel


class DashboardStats(CamelModel):
    """Only the counters relevant to the caller's role are filled in."""
    role: str
    applications_count: Optional[int] = None
    saved_jobs_count: Optional[int] = None
    active_jobs_count: Optional[int] = None
    total_views: Optional[int] = None
    total_applications: Optional[int] = None
    credits_balance: Optional[int] = None
    total_jobs: Optional[int] = None
    active_jobs: Optional[int] = None
    pending_jobs: Optional[int] = None
    total_companies: Optional[int] = None
    pending_companies: Optional[int] = None
    total_users: Optional[int] = None


class AdminStats(CamelModel):
    total_jobs: int
    active_jobs: int
    pending_jobs: int
    total_companies: int
    pending_companies: int
    total_users: int
    total_applications: int
