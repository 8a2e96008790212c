from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.schemas.common import CamelModel


class TalentProfileUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    experience_level: Optional[str] = None
    location: Optional[str] = None
    open_to_remote: Optional[bool] = None
    resume_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    desired_salary_min: Optional[int] = Field(None, ge=0)
    desired_salary_max: Optional[int] = Field(None, ge=0)
    is_public: Optional[bool] = None


class TalentProfileResponse(TalentProfileUpdate):
    id: int
    user_id: int
    updated_at: datetime
