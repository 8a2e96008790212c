from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.job import JobResponse


class SaveJobRequest(CamelModel):
    job_id: int


class SavedJobResponse(CamelModel):
    id: int
    job_id: int
    job: Optional[JobResponse] = None
    created_at: datetime


class SavedSearchCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    filters: Dict[str, Any] = Field(default_factory=dict)
    email_alerts: bool = False
    alert_frequency: str = Field(default="weekly", pattern="^(daily|weekly)$")


class SavedSearchResponse(SavedSearchCreate):
    id: int
    created_at: datetime
