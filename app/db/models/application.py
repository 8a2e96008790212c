from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import Base

APP_SUBMITTED = "submitted"
APP_REVIEWING = "reviewing"
APP_SHORTLISTED = "shortlisted"
APP_INTERVIEW = "interview"
APP_OFFERED = "offered"
APP_REJECTED = "rejected"
APP_WITHDRAWN = "withdrawn"
APPLICATION_STATUSES = (
    APP_SUBMITTED, APP_REVIEWING, APP_SHORTLISTED, APP_INTERVIEW,
    APP_OFFERED, APP_REJECTED, APP_WITHDRAWN,
)
TERMINAL_APPLICATION_STATUSES = (APP_OFFERED, APP_REJECTED, APP_WITHDRAWN)
# Threads on these applications are read-only
CLOSED_THREAD_STATUSES = (APP_REJECTED, APP_WITHDRAWN)


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, default=APP_SUBMITTED, nullable=False)
    resume_url = Column(String, nullable=True)
    cover_letter = Column(Text, nullable=True)
    score = Column(Integer, nullable=True)  # employer rating, 0-100
    notes = Column(Text, nullable=True)  # employer-only
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    job = relationship("Job", back_populates="applications")
    user = relationship("User")
    messages = relationship(
        "Message", back_populates="application",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Message.created_at",
    )

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_applications_job_user"),
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    application = relationship("Application", back_populates="messages")
