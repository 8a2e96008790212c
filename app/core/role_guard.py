from fastapi import Depends, HTTPException, status

from app.core.auth_dependency import get_current_user
from app.db.models.user import User, ROLE_ADMIN, ROLE_EMPLOYER, ROLE_RECRUITER


def require_role(*roles: str):
    """Dependency factory: 403 unless the authenticated user has one of ``roles``."""
    allowed = set(roles)

    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(sorted(allowed))}"
            )
        return user

    return checker


require_admin = require_role(ROLE_ADMIN)
require_hiring_role = require_role(ROLE_EMPLOYER, ROLE_RECRUITER, ROLE_ADMIN)
