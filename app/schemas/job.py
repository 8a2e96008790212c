"""
Pydantic schemas for job listings.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.schemas.common import CamelModel


class JobBase(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    requirements: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    is_remote: Optional[bool] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_currency: Optional[str] = None
    salary_period: Optional[str] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    tags: Optional[List[str]] = None
    application_method: Optional[str] = None
    application_email: Optional[str] = None
    external_url: Optional[str] = None
    visibility_days: Optional[int] = Field(None, ge=1, le=365)


class JobCreate(JobBase):
    """New listing. ``submit`` sends it straight to moderation instead of saving a draft."""
    company_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    submit: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "companyId": 1,
                "title": "Senior Solidity Engineer",
                "description": "Design and audit our lending protocol contracts.",
                "category": "engineering",
                "isRemote": True,
                "salaryMin": 150000,
                "salaryMax": 200000,
                "jobType": "full_time",
                "experienceLevel": "senior",
                "tags": ["solidity", "defi"],
                "submit": True
            }
        }


class JobUpdate(JobBase):
    pass


class CompanySummary(CamelModel):
    id: int
    name: str
    slug: str
    logo_url: Optional[str] = None
    location: Optional[str] = None


class JobResponse(CamelModel):
    id: int
    company_id: int
    company: Optional[CompanySummary] = None
    title: str
    description: str
    requirements: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    is_remote: bool
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    salary_currency: Optional[str] = None
    salary_period: Optional[str] = None
    job_type: str
    experience_level: str
    tags: Optional[List[str]] = None
    application_method: str
    application_email: Optional[str] = None
    external_url: Optional[str] = None
    tier: str
    status: str
    visibility_days: int
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    view_count: int
    apply_count: int
    created_at: datetime
    updated_at: datetime


class JobListResponse(CamelModel):
    jobs: List[JobResponse]
    total: int
    page: int
    page_size: int


class UpgradeFeaturedRequest(CamelModel):
    """Empty body spends a credit; a paymentIntentId confirms a card payment instead."""
    payment_intent_id: Optional[str] = None


class UpgradeFeaturedResponse(CamelModel):
    job: JobResponse
    upgraded: bool
    already_processed: bool = False
    credits_balance: int
