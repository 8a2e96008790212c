"""
Credit ledger: append-only balance accounting per user.

The current balance is the ``balance`` of the user's highest-sequence row.
Writers lock the user row before reading it, and the (user_id, sequence)
unique constraint rejects a second writer that read the same previous row on
databases without row locks (SQLite).
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConcurrentUpdateError, InsufficientCreditsError, NotFoundError
from app.db.models.credit_ledger import CreditLedger
from app.db.models.user import User

logger = logging.getLogger(__name__)

REASON_PURCHASE = "purchase"
REASON_FEATURE_UPGRADE = "feature_upgrade"
REASON_PAYMENT_FALLBACK = "payment_fallback"
REASON_ADMIN_GRANT = "admin_grant"


def _latest_entry(db: Session, user_id: int) -> Optional[CreditLedger]:
    return (
        db.query(CreditLedger)
        .filter(CreditLedger.user_id == user_id)
        .order_by(CreditLedger.sequence.desc())
        .first()
    )


def get_credit_balance(db: Session, user_id: int) -> int:
    """Current credit balance; 0 for users with no ledger rows."""
    latest = _latest_entry(db, user_id)
    return latest.balance if latest else 0


def append_entry(
    db: Session,
    user_id: int,
    amount: int,
    tier: str,
    reason: str,
    payment_id: Optional[int] = None,
    job_id: Optional[int] = None,
) -> CreditLedger:
    """
    Append a signed delta to the user's ledger.

    Does not commit: callers fold the entry into the same transaction as the
    state change it pays for.

    Raises:
        NotFoundError: unknown user
        InsufficientCreditsError: the delta would take the balance below zero
        ConcurrentUpdateError: another transaction appended first
    """
    # Serialises ledger writers for this user (no-op on SQLite)
    user = db.query(User).filter(User.id == user_id).with_for_update().first()
    if not user:
        raise NotFoundError("User not found")

    latest = _latest_entry(db, user_id)
    previous_balance = latest.balance if latest else 0
    next_sequence = (latest.sequence if latest else 0) + 1
    new_balance = previous_balance + amount

    if new_balance < 0:
        logger.info(
            f"Insufficient credits: user_id={user_id}, balance={previous_balance}, amount={amount}"
        )
        raise InsufficientCreditsError(
            f"Insufficient credits: balance is {previous_balance}"
        )

    entry = CreditLedger(
        user_id=user_id,
        sequence=next_sequence,
        tier=tier,
        amount=amount,
        balance=new_balance,
        reason=reason,
        payment_id=payment_id,
        job_id=job_id,
    )
    db.add(entry)
    try:
        db.flush()
    except IntegrityError as e:
        logger.warning(f"Ledger append lost race: user_id={user_id}, sequence={next_sequence}")
        raise ConcurrentUpdateError("Credit balance changed, please retry") from e

    logger.info(
        f"Ledger entry: user_id={user_id}, amount={amount}, balance={new_balance}, "
        f"reason={reason}, payment_id={payment_id}, job_id={job_id}"
    )
    return entry


def list_entries(db: Session, user_id: int, limit: int = 50) -> List[CreditLedger]:
    return (
        db.query(CreditLedger)
        .filter(CreditLedger.user_id == user_id)
        .order_by(CreditLedger.sequence.desc())
        .limit(limit)
        .all()
    )
