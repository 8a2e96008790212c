from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from app.db.base import Base


class CreditLedger(Base):
    """
    Append-only credit ledger.

    ``balance`` is the running balance after this row. ``sequence`` numbers a
    user's rows 1, 2, 3, ...; the row with the highest sequence holds the
    current balance, and UNIQUE(user_id, sequence) stops two writers that read
    the same previous row from both committing.
    """
    __tablename__ = "credit_ledger"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    tier = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)  # signed delta
    balance = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)  # purchase | feature_upgrade | payment_fallback | admin_grant
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "sequence", name="uq_credit_ledger_user_sequence"),
        CheckConstraint("balance >= 0", name="ck_credit_ledger_balance_non_negative"),
    )
