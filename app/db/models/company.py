from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import Base


class Company(Base):
    """
    Hiring company. Deleting one removes its jobs and, through them,
    every application and message thread (ON DELETE CASCADE all the way down).
    """
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    website = Column(String, nullable=True)
    twitter = Column(String, nullable=True)
    linkedin = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    location = Column(String, nullable=True)
    size = Column(String, nullable=True)  # "1-10", "11-50", ...
    payment_in_crypto = Column(Boolean, default=False, nullable=False)
    remote_working = Column(Boolean, default=False, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    is_hiring = Column(Boolean, default=True, nullable=False)
    created_by_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    members = relationship(
        "CompanyMember", back_populates="company",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    jobs = relationship(
        "Job", back_populates="company",
        cascade="all, delete-orphan", passive_deletes=True,
    )


class CompanyMember(Base):
    __tablename__ = "company_members"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_owner = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    company = relationship("Company", back_populates="members")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_members_company_user"),
    )
