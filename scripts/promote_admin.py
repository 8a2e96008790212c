"""
Create an admin account, or promote an existing user to admin.
Run: python -m scripts.promote_admin admin@example.com [password]
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal
from app.db.models.user import User, ROLE_ADMIN
from app.core.security import hash_password
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def promote_admin(email: str, password: str = None) -> bool:
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()

        if not user:
            if not password:
                logger.error(f"User {email} not found and no password provided. Cannot create user.")
                return False
            user = User(email=email.lower(), password_hash=hash_password(password), role=ROLE_ADMIN)
            db.add(user)
            logger.info(f"Creating admin user: {email}")
        else:
            logger.info(f"Promoting existing user: {email} (ID: {user.id}, role: {user.role})")
            user.role = ROLE_ADMIN

        db.commit()
        db.refresh(user)
        logger.info(f"User {email} is now an admin (ID: {user.id})")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error promoting user: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("usage: python -m scripts.promote_admin <email> [password]")
        sys.exit(2)
    if not promote_admin(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None):
        sys.exit(1)
