"""
Talent bookmarks: saved jobs and saved searches.
"""
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.db.models.saved import SavedJob, SavedSearch
from app.db.models.user import User
from app.services.job_service import get_job_for_viewer

logger = logging.getLogger(__name__)


def _find_saved_job(db: Session, user_id: int, job_id: int):
    return db.query(SavedJob).filter(SavedJob.user_id == user_id, SavedJob.job_id == job_id).first()


def list_saved_jobs(db: Session, user: User) -> List[SavedJob]:
    return (
        db.query(SavedJob)
        .filter(SavedJob.user_id == user.id)
        .order_by(SavedJob.created_at.desc(), SavedJob.id.desc())
        .all()
    )


def save_job(db: Session, user: User, job_id: int) -> SavedJob:
    """
    Bookmark a job the user is allowed to see. Saving twice returns the
    existing bookmark.

    Raises:
        NotFoundError: job does not exist or is not visible to ``user``
    """
    get_job_for_viewer(db, job_id, user)

    existing = _find_saved_job(db, user.id, job_id)
    if existing:
        return existing

    try:
        saved = SavedJob(user_id=user.id, job_id=job_id)
        db.add(saved)
        db.commit()
        db.refresh(saved)
    except IntegrityError:
        # Concurrent save of the same job
        db.rollback()
        saved = _find_saved_job(db, user.id, job_id)
        if saved is None:
            raise
    except Exception:
        db.rollback()
        raise

    logger.info(f"Job saved: user_id={user.id}, job_id={job_id}")
    return saved


def unsave_job(db: Session, user: User, job_id: int) -> None:
    try:
        db.query(SavedJob).filter(SavedJob.user_id == user.id, SavedJob.job_id == job_id).delete(
            synchronize_session=False
        )
        db.commit()
    except Exception:
        db.rollback()
        raise


def list_saved_searches(db: Session, user: User) -> List[SavedSearch]:
    return (
        db.query(SavedSearch)
        .filter(SavedSearch.user_id == user.id)
        .order_by(SavedSearch.created_at.desc())
        .all()
    )


def create_saved_search(db: Session, user: User, data: dict) -> SavedSearch:
    try:
        search = SavedSearch(user_id=user.id, **data)
        db.add(search)
        db.commit()
        db.refresh(search)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Saved search created: user_id={user.id}, search_id={search.id}")
    return search


def delete_saved_search(db: Session, user: User, search_id: int) -> None:
    search = db.query(SavedSearch).filter(SavedSearch.id == search_id).first()
    if not search:
        raise NotFoundError("Saved search not found")
    if search.user_id != user.id:
        raise PermissionDeniedError("Not your saved search")

    try:
        db.delete(search)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Saved search deleted: user_id={user.id}, search_id={search_id}")
