from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from app.db.base import Base

PROVIDER_STRIPE = "stripe"
PROVIDER_NOWPAYMENTS = "nowpayments"

PAYMENT_PENDING = "pending"
PAYMENT_SUCCEEDED = "succeeded"
PAYMENT_FAILED = "failed"
PAYMENT_CANCELED = "canceled"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_SUCCEEDED, PAYMENT_FAILED, PAYMENT_CANCELED)


class Payment(Base):
    """
    A charge we asked a provider for.

    Persisted as pending before the customer pays; external_id (Stripe
    PaymentIntent id, or the order id we hand NOWPayments) is the
    idempotency key for every confirmation path.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    provider = Column(String, nullable=False)  # stripe | nowpayments
    external_id = Column(String, unique=True, index=True, nullable=False)
    provider_payment_id = Column(String, nullable=True)
    amount = Column(Integer, nullable=False)  # cents
    currency = Column(String, default="usd", nullable=False)
    credits = Column(Integer, default=0, nullable=False)  # plan.credits at purchase time
    status = Column(String, default=PAYMENT_PENDING, nullable=False)
    provider_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    confirmed_at = Column(DateTime, nullable=True)

    plan = relationship("Plan")
