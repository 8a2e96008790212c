"""
Applications and the employer/talent message thread attached to each one.

Employers move an application forward through the pipeline; the applicant may
withdraw at any point before it reaches a terminal state. Rejecting never
deletes the row, so the conversation history stays attached.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.db.models.application import (
    Application,
    Message,
    APPLICATION_STATUSES,
    APP_INTERVIEW,
    APP_OFFERED,
    APP_REJECTED,
    APP_REVIEWING,
    APP_SHORTLISTED,
    APP_SUBMITTED,
    APP_WITHDRAWN,
    CLOSED_THREAD_STATUSES,
    TERMINAL_APPLICATION_STATUSES,
)
from app.db.models.company import CompanyMember
from app.db.models.job import Job
from app.db.models.user import User, ROLE_ADMIN
from app.services.job_service import get_job, is_company_member, is_publicly_visible

logger = logging.getLogger(__name__)

# Employer-driven moves. Withdrawal is handled separately (applicant only).
TRANSITIONS = {
    APP_SUBMITTED: (APP_REVIEWING, APP_SHORTLISTED, APP_INTERVIEW, APP_REJECTED),
    APP_REVIEWING: (APP_SHORTLISTED, APP_INTERVIEW, APP_REJECTED),
    APP_SHORTLISTED: (APP_INTERVIEW, APP_REJECTED),
    APP_INTERVIEW: (APP_OFFERED, APP_REJECTED),
    APP_OFFERED: (),
    APP_REJECTED: (),
    APP_WITHDRAWN: (),
}


def get_application(db: Session, application_id: int) -> Application:
    application = db.query(Application).filter(Application.id == application_id).first()
    if not application:
        raise NotFoundError("Application not found")
    return application


def can_manage(db: Session, user: User, application: Application) -> bool:
    """Admins and members of the hiring company manage an application."""
    if user.role == ROLE_ADMIN:
        return True
    return is_company_member(db, user.id, application.job.company_id)


def is_participant(db: Session, user: User, application: Application) -> bool:
    return application.user_id == user.id or can_manage(db, user, application)


def apply_to_job(
    db: Session,
    user: User,
    job_id: int,
    resume_url: Optional[str] = None,
    cover_letter: Optional[str] = None,
) -> Application:
    """
    Submit an application. One per (job, user); the job's apply_count moves in
    the same transaction.
    """
    try:
        job = get_job(db, job_id, lock=True)
        if not is_publicly_visible(job):
            raise InvalidTransitionError("This job is not accepting applications")

        existing = db.query(Application.id).filter(
            Application.job_id == job_id,
            Application.user_id == user.id,
        ).first()
        if existing:
            raise InvalidTransitionError("You have already applied to this job")

        application = Application(
            job_id=job_id,
            user_id=user.id,
            resume_url=resume_url,
            cover_letter=cover_letter,
            status=APP_SUBMITTED,
        )
        db.add(application)
        db.query(Job).filter(Job.id == job_id).update(
            {Job.apply_count: Job.apply_count + 1}, synchronize_session=False
        )
        db.commit()
        db.refresh(application)
    except IntegrityError as e:
        db.rollback()
        raise InvalidTransitionError("You have already applied to this job") from e
    except Exception:
        db.rollback()
        raise

    logger.info(f"Application submitted: application_id={application.id}, job_id={job_id}, user_id={user.id}")
    return application


def update_application(
    db: Session,
    user: User,
    application_id: int,
    status: Optional[str] = None,
    score: Optional[int] = None,
    notes: Optional[str] = None,
) -> Application:
    """Employer update: pipeline status, score (0-100) and private notes."""
    application = get_application(db, application_id)
    if not can_manage(db, user, application):
        raise PermissionDeniedError("You cannot manage this application")

    if score is not None and not 0 <= score <= 100:
        raise ValidationError("score must be between 0 and 100")

    if status is not None and status != application.status:
        if status not in APPLICATION_STATUSES:
            raise ValidationError(f"Unknown application status '{status}'")
        if status == APP_WITHDRAWN:
            raise PermissionDeniedError("Only the applicant can withdraw an application")
        if status not in TRANSITIONS[application.status]:
            raise InvalidTransitionError(
                f"Cannot move application from '{application.status}' to '{status}'"
            )

    try:
        previous = application.status
        if status is not None:
            application.status = status
        if score is not None:
            application.score = score
        if notes is not None:
            application.notes = notes
        application.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise

    if previous != application.status:
        logger.info(
            f"Application status changed: application_id={application.id}, "
            f"{previous} -> {application.status}, by user_id={user.id}"
        )
    return application


def withdraw_application(db: Session, user: User, application_id: int) -> Application:
    application = get_application(db, application_id)
    if application.user_id != user.id:
        raise PermissionDeniedError("Only the applicant can withdraw an application")
    if application.status == APP_WITHDRAWN:
        return application
    if application.status in TERMINAL_APPLICATION_STATUSES:
        raise InvalidTransitionError(f"Cannot withdraw an application that is '{application.status}'")

    try:
        application.status = APP_WITHDRAWN
        application.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Application withdrawn: application_id={application.id}, user_id={user.id}")
    return application


def reject_application(db: Session, user: User, application_id: int) -> Application:
    """The one way an employer rejects: status -> rejected, row and messages kept."""
    application = get_application(db, application_id)
    if not can_manage(db, user, application):
        raise PermissionDeniedError("You cannot manage this application")
    if application.status == APP_REJECTED:
        return application
    if application.status in TERMINAL_APPLICATION_STATUSES:
        raise InvalidTransitionError(f"Cannot reject an application that is '{application.status}'")

    try:
        application.status = APP_REJECTED
        application.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Application rejected: application_id={application.id}, by user_id={user.id}")
    return application


def remove_application(db: Session, user: User, application_id: int) -> Application:
    """DELETE semantics: the applicant withdraws, the employer rejects."""
    application = get_application(db, application_id)
    if application.user_id == user.id:
        return withdraw_application(db, user, application_id)
    return reject_application(db, user, application_id)


def list_user_applications(db: Session, user: User) -> List[Application]:
    return (
        db.query(Application)
        .filter(Application.user_id == user.id)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .all()
    )


def list_employer_applications(
    db: Session,
    user: User,
    job_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[Application]:
    query = (
        db.query(Application)
        .join(Job, Job.id == Application.job_id)
        .join(CompanyMember, CompanyMember.company_id == Job.company_id)
        .filter(CompanyMember.user_id == user.id)
    )
    if job_id:
        query = query.filter(Application.job_id == job_id)
    if status:
        query = query.filter(Application.status == status)
    return query.order_by(Application.created_at.desc(), Application.id.desc()).all()


def list_messages(db: Session, user: User, application_id: int) -> List[Message]:
    application = get_application(db, application_id)
    if not is_participant(db, user, application):
        raise PermissionDeniedError("You are not part of this conversation")
    return (
        db.query(Message)
        .filter(Message.application_id == application_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )


def send_message(db: Session, user: User, application_id: int, text: str) -> Message:
    application = get_application(db, application_id)
    if not is_participant(db, user, application):
        raise PermissionDeniedError("You are not part of this conversation")
    if application.status in CLOSED_THREAD_STATUSES:
        raise InvalidTransitionError("This conversation is closed")
    text = (text or "").strip()
    if not text:
        raise ValidationError("Message cannot be empty")

    try:
        message = Message(application_id=application_id, sender_id=user.id, message=text)
        db.add(message)
        db.commit()
        db.refresh(message)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Message sent: application_id={application_id}, sender_id={user.id}, message_id={message.id}")
    return message


def mark_thread_read(db: Session, user: User, application_id: int) -> int:
    """Mark the other side's messages as read. Returns how many changed."""
    application = get_application(db, application_id)
    if not is_participant(db, user, application):
        raise PermissionDeniedError("You are not part of this conversation")
    try:
        count = (
            db.query(Message)
            .filter(
                Message.application_id == application_id,
                Message.sender_id != user.id,
                Message.is_read.is_(False),
            )
            .update({Message.is_read: True}, synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return count
