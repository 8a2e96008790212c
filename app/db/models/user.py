from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from app.db.base import Base

ROLE_GUEST = "guest"
ROLE_TALENT = "talent"
ROLE_EMPLOYER = "employer"
ROLE_RECRUITER = "recruiter"
ROLE_ADMIN = "admin"

USER_ROLES = (ROLE_GUEST, ROLE_TALENT, ROLE_EMPLOYER, ROLE_RECRUITER, ROLE_ADMIN)
# Roles a user may pick for themselves; admin is granted out of band
SELF_SERVICE_ROLES = (ROLE_TALENT, ROLE_EMPLOYER, ROLE_RECRUITER)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, nullable=True)
    password_hash = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    role = Column(String, default=ROLE_GUEST, nullable=False)  # guest | talent | employer | recruiter | admin
    last_active_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def can_hire(self) -> bool:
        return self.role in (ROLE_EMPLOYER, ROLE_RECRUITER, ROLE_ADMIN)
