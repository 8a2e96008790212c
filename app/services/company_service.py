"""
Company profiles and membership.
"""
import logging
import re
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.db.models.company import Company, CompanyMember
from app.db.models.job import Job
from app.db.models.user import User, ROLE_ADMIN
from app.services.job_service import ensure_company_member, is_company_member

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name", "description", "website", "twitter", "linkedin", "logo_url",
    "location", "size", "payment_in_crypto", "remote_working", "is_hiring",
)


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "company"


def unique_slug(db: Session, name: str) -> str:
    """slugify(name), suffixed -1, -2, ... until no company holds it."""
    base = slugify(name)
    slug = base
    counter = 1
    while db.query(Company.id).filter(Company.slug == slug).first() is not None:
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def get_company(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company not found")
    return company


def create_company(db: Session, user: User, data: dict) -> Company:
    """
    Create a company owned by ``user``.

    Companies created by admins are approved immediately; everyone else's wait
    for moderation.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Company name is required")

    fields = {key: value for key, value in data.items() if key in EDITABLE_FIELDS and value is not None}
    fields["name"] = name
    by_admin = user.role == ROLE_ADMIN

    try:
        company = Company(
            slug=unique_slug(db, name),
            is_approved=by_admin,
            created_by_admin=by_admin,
            **fields,
        )
        db.add(company)
        db.flush()
        db.add(CompanyMember(company_id=company.id, user_id=user.id, is_owner=True))
        db.commit()
        db.refresh(company)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Company created: company_id={company.id}, slug={company.slug}, owner_id={user.id}")
    return company


def update_company(db: Session, user: User, company_id: int, data: dict) -> Company:
    company = get_company(db, company_id)
    ensure_company_member(db, user, company_id)

    changes = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Company name is required")

    try:
        for key, value in changes.items():
            setattr(company, key, value)
        db.commit()
        db.refresh(company)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Company updated: company_id={company.id}, user_id={user.id}, fields={sorted(changes)}")
    return company


def approve_company(db: Session, company_id: int) -> Company:
    company = get_company(db, company_id)
    if company.is_approved:
        return company
    try:
        company.is_approved = True
        db.commit()
        db.refresh(company)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Company approved: company_id={company.id}")
    return company


def delete_company(db: Session, company_id: int) -> dict:
    """
    Delete a company together with its jobs, their applications and messages.

    Irreversible. Ledger rows and payments that pointed at the deleted jobs
    keep their history with job_id set to NULL.
    """
    company = get_company(db, company_id)
    job_count = db.query(Job).filter(Job.company_id == company_id).count()
    try:
        db.delete(company)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.warning(f"Company deleted: company_id={company_id}, jobs_removed={job_count}")
    return {"company_id": company_id, "jobs_removed": job_count}


def list_companies(
    db: Session,
    search: Optional[str] = None,
    approved_only: bool = True,
    page: int = 1,
    page_size: int = 20,
):
    query = db.query(Company)
    if approved_only:
        query = query.filter(Company.is_approved.is_(True))
    if search:
        term = f"%{search}%"
        query = query.filter(or_(Company.name.ilike(term), Company.description.ilike(term)))
    total = query.count()
    companies = (
        query.order_by(Company.name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return companies, total


def list_pending_companies(db: Session) -> List[Company]:
    return db.query(Company).filter(Company.is_approved.is_(False)).order_by(Company.created_at.asc()).all()


def get_company_by_slug(db: Session, slug: str, viewer: Optional[User] = None) -> Company:
    """Unapproved companies are only visible to their members and admins."""
    company = db.query(Company).filter(Company.slug == slug).first()
    if not company:
        raise NotFoundError("Company not found")
    if company.is_approved:
        return company
    if viewer is not None and (viewer.role == ROLE_ADMIN or is_company_member(db, viewer.id, company.id)):
        return company
    raise NotFoundError("Company not found")


def list_user_companies(db: Session, user: User) -> List[Company]:
    return (
        db.query(Company)
        .join(CompanyMember, CompanyMember.company_id == Company.id)
        .filter(CompanyMember.user_id == user.id)
        .order_by(Company.created_at.asc())
        .all()
    )


def user_company_ids(db: Session, user_id: int) -> List[int]:
    rows = db.query(CompanyMember.company_id).filter(CompanyMember.user_id == user_id).all()
    return [row[0] for row in rows]
