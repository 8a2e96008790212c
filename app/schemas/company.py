from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.schemas.common import CamelModel


class CompanyBase(CamelModel):
    description: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    logo_url: Optional[str] = None
    location: Optional[str] = None
    size: Optional[str] = None
    payment_in_crypto: Optional[bool] = None
    remote_working: Optional[bool] = None
    is_hiring: Optional[bool] = None


class CompanyCreate(CompanyBase):
    name: str = Field(..., min_length=1, max_length=200)


class CompanyUpdate(CompanyBase):
    name: Optional[str] = Field(None, min_length=1, max_length=200)


class CompanyResponse(CompanyBase):
    id: int
    name: str
    slug: str
    is_approved: bool
    created_by_admin: bool
    created_at: datetime


class CompanyListResponse(CamelModel):
    companies: List[CompanyResponse]
    total: int
    page: int
    page_size: int
