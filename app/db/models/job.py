from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from app.db.base import Base

TIER_NORMAL = "normal"
TIER_FEATURED = "featured"
TIER_PREMIUM = "premium"
JOB_TIERS = (TIER_NORMAL, TIER_FEATURED, TIER_PREMIUM)
# Listing placement, highest first
TIER_PRIORITY = {TIER_PREMIUM: 0, TIER_FEATURED: 1, TIER_NORMAL: 2}

STATUS_DRAFT = "draft"
STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_EXPIRED = "expired"
STATUS_REJECTED = "rejected"
JOB_STATUSES = (STATUS_DRAFT, STATUS_PENDING, STATUS_ACTIVE, STATUS_EXPIRED, STATUS_REJECTED)

JOB_TYPES = ("full_time", "part_time", "contract", "internship")
EXPERIENCE_LEVELS = ("entry", "mid", "senior", "lead", "executive")
SALARY_PERIODS = ("year", "month", "week", "hour")
APPLICATION_METHODS = ("email", "external")


class Job(Base):
    """
    Job listing.

    status moves draft -> pending -> active -> expired, or pending -> rejected;
    tier only ever moves up (normal -> featured / premium).
    """
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    location = Column(String, nullable=True)
    is_remote = Column(Boolean, default=False, nullable=False)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_currency = Column(String, default="USD", nullable=True)
    salary_period = Column(String, default="year", nullable=True)
    job_type = Column(String, default="full_time", nullable=False)
    experience_level = Column(String, default="mid", nullable=False)
    tags = Column(JSON, default=list)
    application_method = Column(String, default="email", nullable=False)
    application_email = Column(String, nullable=True)
    external_url = Column(String, nullable=True)

    tier = Column(String, default=TIER_NORMAL, nullable=False)
    status = Column(String, default=STATUS_DRAFT, nullable=False, index=True)
    visibility_days = Column(Integer, default=30, nullable=False)
    published_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True, index=True)
    view_count = Column(Integer, default=0, nullable=False)
    apply_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = relationship("Company", back_populates="jobs")
    applications = relationship(
        "Application", back_populates="job",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    saved_by = relationship(
        "SavedJob", back_populates="job",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_jobs_status_published", "status", "published_at"),
    )

    @property
    def is_promoted(self) -> bool:
        return self.tier in (TIER_FEATURED, TIER_PREMIUM)
