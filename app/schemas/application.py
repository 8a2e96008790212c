from datetime import datetime
from typing import Optional
from pydantic import Field

from app.schemas.common import CamelModel


class ApplyRequest(CamelModel):
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = Field(None, max_length=10000)


class ApplicationUpdate(CamelModel):
    status: Optional[str] = None
    score: Optional[int] = None
    notes: Optional[str] = None


class ApplicationResponse(CamelModel):
    id: int
    job_id: int
    user_id: int
    status: str
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class EmployerApplicationResponse(ApplicationResponse):
    """Adds the employer-only fields."""
    score: Optional[int] = None
    notes: Optional[str] = None


class MessageCreate(CamelModel):
    message: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(CamelModel):
    id: int
    application_id: int
    sender_id: int
    message: str
    is_read: bool
    created_at: datetime
