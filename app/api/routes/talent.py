from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db
from app.core.role_guard import require_role
from app.db.models.user import User, ROLE_TALENT
from app.schemas.talent import TalentProfileResponse, TalentProfileUpdate
from app.services import talent_service

router = APIRouter(prefix="/api", tags=["Talent"])


@router.get("/talents", response_model=List[TalentProfileResponse])
def list_talents(
    search: Optional[str] = Query(None),
    experience_level: Optional[str] = Query(None, alias="experienceLevel"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    db: Session = Depends(get_db)
):
    """Public talent directory (profiles marked public)."""
    profiles = talent_service.list_public_profiles(
        db, search=search, experience_level=experience_level, page=page, page_size=page_size
    )
    return [TalentProfileResponse.model_validate(p) for p in profiles]


@router.get("/talent/profile", response_model=TalentProfileResponse)
def get_profile(user: User = Depends(require_role(ROLE_TALENT)), db: Session = Depends(get_db)):
    return TalentProfileResponse.model_validate(talent_service.get_or_create_profile(db, user))


@router.put("/talent/profile", response_model=TalentProfileResponse)
def update_profile(
    payload: TalentProfileUpdate,
    user: User = Depends(require_role(ROLE_TALENT)),
    db: Session = Depends(get_db)
):
    profile = talent_service.update_profile(db, user, payload.model_dump(exclude_unset=True))
    return TalentProfileResponse.model_validate(profile)
