"""
Talent profiles and the public talent directory.
"""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.talent_profile import TalentProfile
from app.db.models.user import User

logger = logging.getLogger(__name__)


def get_or_create_profile(db: Session, user: User) -> TalentProfile:
    """A talent's profile, created empty on first access."""
    profile = db.query(TalentProfile).filter(TalentProfile.user_id == user.id).first()
    if profile is not None:
        return profile

    try:
        profile = TalentProfile(user_id=user.id)
        db.add(profile)
        db.commit()
        db.refresh(profile)
    except IntegrityError:
        # Created by a concurrent request
        db.rollback()
        profile = db.query(TalentProfile).filter(TalentProfile.user_id == user.id).first()
        if profile is None:
            raise
    except Exception:
        db.rollback()
        raise
    return profile


def update_profile(db: Session, user: User, data: dict) -> TalentProfile:
    profile = get_or_create_profile(db, user)
    try:
        for key, value in data.items():
            setattr(profile, key, value)
        db.commit()
        db.refresh(profile)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Talent profile updated: user_id={user.id}, fields={sorted(data)}")
    return profile


def list_public_profiles(
    db: Session,
    search: Optional[str] = None,
    experience_level: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> List[TalentProfile]:
    query = db.query(TalentProfile).filter(TalentProfile.is_public.is_(True))
    if search:
        term = f"%{search}%"
        query = query.filter(or_(TalentProfile.title.ilike(term), TalentProfile.bio.ilike(term)))
    if experience_level:
        query = query.filter(TalentProfile.experience_level == experience_level)
    return (
        query.order_by(TalentProfile.updated_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
