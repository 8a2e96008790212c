"""
Pydantic schemas for authentication endpoints.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.db.models.user import ROLE_TALENT
from app.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """Request schema for account registration."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    username: Optional[str] = Field(default=None, max_length=50)
    role: str = Field(default=ROLE_TALENT, description="talent, employer or recruiter")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """bcrypt only looks at the first 72 bytes."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password too long (bcrypt limit 72 bytes)")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "email": "satoshi@example.com",
                "password": "SecurePass123",
                "firstName": "Satoshi",
                "role": "employer"
            }
        }


class SelectRoleRequest(CamelModel):
    role: str = Field(..., description="talent, employer or recruiter")


class TokenResponse(BaseModel):
    """OAuth2 token response (RFC 6749 field names)."""
    access_token: str
    token_type: str = "bearer"


class UserResponse(CamelModel):
    id: int
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str
    created_at: datetime


class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
