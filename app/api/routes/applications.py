"""
Application management and the per-application message thread.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user
from app.db.models.user import User
from app.schemas.application import (
    ApplicationResponse,
    ApplicationUpdate,
    EmployerApplicationResponse,
    MessageCreate,
    MessageResponse,
)
from app.services import application_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["Applications"])


@router.get("", response_model=List[ApplicationResponse])
def my_applications(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """The caller's own applications (talent view)."""
    return [ApplicationResponse.model_validate(a) for a in application_service.list_user_applications(db, user)]


@router.put("/{application_id}", response_model=EmployerApplicationResponse)
def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    application = application_service.update_application(
        db, user, application_id,
        status=payload.status,
        score=payload.score,
        notes=payload.notes,
    )
    return EmployerApplicationResponse.model_validate(application)


@router.delete("/{application_id}", response_model=ApplicationResponse)
def delete_application(
    application_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Never removes the row: the applicant's DELETE withdraws, the employer's
    DELETE rejects. The message thread is kept either way.
    """
    application = application_service.remove_application(db, user, application_id)
    return ApplicationResponse.model_validate(application)


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
def withdraw(
    application_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ApplicationResponse.model_validate(
        application_service.withdraw_application(db, user, application_id)
    )


@router.post("/{application_id}/close-chat", response_model=ApplicationResponse)
def close_chat(
    application_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Employer ends the conversation by rejecting the application."""
    return ApplicationResponse.model_validate(
        application_service.reject_application(db, user, application_id)
    )


@router.get("/{application_id}/messages", response_model=List[MessageResponse])
def list_messages(
    application_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    messages = application_service.list_messages(db, user, application_id)
    return [MessageResponse.model_validate(m) for m in messages]


@router.post("/{application_id}/messages", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
def send_message(
    application_id: int,
    payload: MessageCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    message = application_service.send_message(db, user, application_id, payload.message)
    return MessageResponse.model_validate(message)


@router.put("/{application_id}/messages/read")
def mark_read(
    application_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    count = application_service.mark_thread_read(db, user, application_id)
    return {"updated": count}
