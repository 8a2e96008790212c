import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_optional_user
from app.core.role_guard import require_hiring_role
from app.db.models.user import User
from app.schemas.company import CompanyCreate, CompanyListResponse, CompanyResponse, CompanyUpdate
from app.services import company_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/companies", tags=["Companies"])


@router.get("", response_model=CompanyListResponse)
def list_companies(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    db: Session = Depends(get_db)
):
    """Approved companies only."""
    companies, total = company_service.list_companies(db, search=search, page=page, page_size=page_size)
    return CompanyListResponse(
        companies=[CompanyResponse.model_validate(c) for c in companies],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{slug}", response_model=CompanyResponse)
def get_company(
    slug: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return CompanyResponse.model_validate(company_service.get_company_by_slug(db, slug, viewer))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CompanyResponse)
def create_company(
    payload: CompanyCreate,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    company = company_service.create_company(db, user, payload.model_dump(exclude_none=True))
    return CompanyResponse.model_validate(company)


@router.put("/{company_id}", response_model=CompanyResponse)
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    company = company_service.update_company(db, user, company_id, payload.model_dump(exclude_unset=True))
    return CompanyResponse.model_validate(company)
