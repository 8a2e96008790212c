"""
Saved jobs and saved searches (talent bookmarks).
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user
from app.db.models.saved import SavedJob
from app.db.models.user import User
from app.schemas.saved import SaveJobRequest, SavedJobResponse, SavedSearchCreate, SavedSearchResponse
from app.services import job_service, saved_service

router = APIRouter(prefix="/api", tags=["Saved"])


def _saved_job_response(db: Session, saved: SavedJob, user: User) -> SavedJobResponse:
    response = SavedJobResponse.model_validate(saved)
    # A bookmarked job that left the public board stays listed by id only
    if saved.job is not None and not job_service.can_view_job(db, saved.job, user):
        response.job = None
    return response


@router.get("/saved-jobs", response_model=List[SavedJobResponse])
def list_saved_jobs(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [_saved_job_response(db, s, user) for s in saved_service.list_saved_jobs(db, user)]


@router.post("/saved-jobs", status_code=status.HTTP_201_CREATED, response_model=SavedJobResponse)
def save_job(
    payload: SaveJobRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    saved = saved_service.save_job(db, user, payload.job_id)
    return _saved_job_response(db, saved, user)


@router.delete("/saved-jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def unsave_job(
    job_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    saved_service.unsave_job(db, user, job_id)


@router.get("/saved-searches", response_model=List[SavedSearchResponse])
def list_saved_searches(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [SavedSearchResponse.model_validate(s) for s in saved_service.list_saved_searches(db, user)]


@router.post("/saved-searches", status_code=status.HTTP_201_CREATED, response_model=SavedSearchResponse)
def create_saved_search(
    payload: SavedSearchCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    search = saved_service.create_saved_search(db, user, payload.model_dump())
    return SavedSearchResponse.model_validate(search)


@router.delete("/saved-searches/{search_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_saved_search(
    search_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    saved_service.delete_saved_search(db, user, search_id)
