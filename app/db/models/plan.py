from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from app.db.base import Base


class Plan(Base):
    """Purchasable listing plan. One active plan per tier is expected (first match wins)."""
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    tier = Column(String, nullable=False, index=True)
    visibility_days = Column(Integer, default=30, nullable=False)
    price = Column(Integer, nullable=False)  # cents
    credits = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
