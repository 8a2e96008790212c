import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user
from app.core.rate_limit import rate_limiter
from app.core.security import hash_password, verify_password, create_access_token
from app.db.models.user import User, ROLE_GUEST, SELF_SERVICE_ROLES
from app.schemas.auth import (
    AuthResponse,
    RegisterRequest,
    SelectRoleRequest,
    TokenResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def issue_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
    dependencies=[Depends(rate_limiter("register", max_requests=5, window_seconds=60))],
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account. Admin accounts are never self-service."""
    if payload.role not in SELF_SERVICE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"role must be one of {', '.join(SELF_SERVICE_ROLES)}"
        )

    email = payload.email.lower()
    if db.query(User.id).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    try:
        user = User(
            email=email,
            username=payload.username,
            first_name=payload.first_name,
            last_name=payload.last_name,
            password_hash=hash_password(payload.password),
            role=payload.role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Registration failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create account")

    logger.info(f"User registered: user_id={user.id}, role={user.role}")
    return AuthResponse(access_token=issue_token(user), user=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=TokenResponse,
    dependencies=[Depends(rate_limiter("login", max_requests=10, window_seconds=60))],
)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    # OAuth2 form field is "username"; we treat it as the email
    user = db.query(User).filter(User.email == form_data.username.lower()).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info("Login failed: invalid credentials")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user.last_active_at = datetime.utcnow()
    db.commit()

    logger.info(f"User logged in: user_id={user.id}")
    return TokenResponse(access_token=issue_token(user))


@router.get("/user", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.post("/select-role", response_model=AuthResponse)
def select_role(
    payload: SelectRoleRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """One-time role pick for accounts that are still guests."""
    if payload.role not in SELF_SERVICE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"role must be one of {', '.join(SELF_SERVICE_ROLES)}"
        )
    if user.role != ROLE_GUEST:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Role already selected")

    user.role = payload.role
    db.commit()
    db.refresh(user)

    logger.info(f"Role selected: user_id={user.id}, role={user.role}")
    return AuthResponse(access_token=issue_token(user), user=UserResponse.model_validate(user))
