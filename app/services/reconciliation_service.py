"""
Payment reconciliation.

Every success signal (the browser's confirmation call, the Stripe webhook and
the NOWPayments IPN) ends up in ``reconcile_payment``. The pending ->
succeeded flip is a compare-and-set on the payments row, so only the first
delivery gets to apply the effect; redeliveries are reported as already
processed.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.db.models.job import Job, STATUS_DRAFT, STATUS_PENDING, STATUS_EXPIRED, STATUS_REJECTED, TIER_FEATURED, TIER_NORMAL
from app.db.models.payment import (
    Payment,
    PAYMENT_FAILED,
    PAYMENT_PENDING,
    PAYMENT_SUCCEEDED,
)
from app.db.models.plan import Plan
from app.db.models.user import User
from app.services import ledger_service
from app.services.job_service import publish
from app.services.socket_manager import manager

logger = logging.getLogger(__name__)


def get_payment_by_external_id(db: Session, external_id: str) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.external_id == external_id).first()


def _result(payment: Payment, already_processed: bool, **extra) -> dict:
    result = {
        "payment_id": payment.id,
        "external_id": payment.external_id,
        "status": payment.status,
        "already_processed": already_processed,
        "job_id": payment.job_id,
        "job_upgraded": False,
        "credits_granted": 0,
    }
    result.update(extra)
    return result


def _upgradeable(job: Optional[Job]) -> bool:
    return (
        job is not None
        and job.tier == TIER_NORMAL
        and job.status not in (STATUS_REJECTED, STATUS_EXPIRED)
    )


def reconcile_payment(
    db: Session,
    external_id: str,
    provider_payment_id: Optional[str] = None,
    provider_data: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Apply the effect of a successful payment exactly once.

    Job payments promote the job to featured (publishing it if it was still a
    draft or waiting for review). Credit purchases append ``credits`` to the
    ledger. A job payment whose job can no longer be promoted (deleted,
    rejected, expired or already promoted) is turned into a credit grant.

    Raises:
        NotFoundError: no payment with this external id
    """
    now = now or datetime.utcnow()
    payment = get_payment_by_external_id(db, external_id)
    if not payment:
        raise NotFoundError("Payment not found")

    if payment.status == PAYMENT_SUCCEEDED:
        logger.info(f"Duplicate payment confirmation ignored: external_id={external_id}")
        return _result(payment, True, credits_balance=ledger_service.get_credit_balance(db, payment.user_id))

    try:
        values = {Payment.status: PAYMENT_SUCCEEDED, Payment.confirmed_at: now, Payment.updated_at: now}
        if provider_payment_id:
            values[Payment.provider_payment_id] = provider_payment_id
        if provider_data is not None:
            values[Payment.provider_data] = provider_data
        claimed = (
            db.query(Payment)
            .filter(Payment.id == payment.id, Payment.status != PAYMENT_SUCCEEDED)
            .update(values, synchronize_session=False)
        )
        if not claimed:
            # Lost the race to a concurrent delivery of the same confirmation
            db.rollback()
            db.refresh(payment)
            logger.info(f"Payment already reconciled concurrently: external_id={external_id}")
            return _result(payment, True, credits_balance=ledger_service.get_credit_balance(db, payment.user_id))

        plan = db.query(Plan).filter(Plan.id == payment.plan_id).first()
        tier = plan.tier if plan else TIER_FEATURED

        job = None
        if payment.job_id is not None:
            job = db.query(Job).filter(Job.id == payment.job_id).with_for_update().first()

        job_upgraded = False
        credits_granted = 0
        if payment.job_id is not None and _upgradeable(job):
            job.tier = TIER_FEATURED
            if job.status in (STATUS_DRAFT, STATUS_PENDING):
                publish(job, now)
            else:
                job.updated_at = now
            job_upgraded = True
        else:
            if payment.job_id is not None:
                reason = ledger_service.REASON_PAYMENT_FALLBACK
                credits_granted = max(payment.credits, 1)
                logger.warning(
                    f"Paid job cannot be featured, granting credit instead: "
                    f"payment_id={payment.id}, job_id={payment.job_id}"
                )
            else:
                reason = ledger_service.REASON_PURCHASE
                credits_granted = payment.credits
            if credits_granted:
                ledger_service.append_entry(
                    db,
                    user_id=payment.user_id,
                    amount=credits_granted,
                    tier=tier,
                    reason=reason,
                    payment_id=payment.id,
                    job_id=job.id if job is not None else None,
                )

        db.commit()
        db.refresh(payment)
    except Exception:
        db.rollback()
        raise

    balance = ledger_service.get_credit_balance(db, payment.user_id)
    logger.info(
        f"Payment reconciled: payment_id={payment.id}, external_id={external_id}, provider={payment.provider}, "
        f"job_id={payment.job_id}, job_upgraded={job_upgraded}, credits_granted={credits_granted}"
    )
    manager.notify(payment.user_id, {
        "event": "payment.succeeded",
        "paymentId": payment.id,
        "jobId": payment.job_id,
        "jobUpgraded": job_upgraded,
        "creditsGranted": credits_granted,
        "creditsBalance": balance,
    })
    return _result(
        payment, False,
        job_upgraded=job_upgraded,
        credits_granted=credits_granted,
        credits_balance=balance,
    )


def mark_payment_failed(
    db: Session,
    external_id: str,
    status: str = PAYMENT_FAILED,
    provider_data: Optional[dict] = None,
) -> dict:
    """Record a failed or canceled charge. Never touches jobs or the ledger."""
    payment = get_payment_by_external_id(db, external_id)
    if not payment:
        raise NotFoundError("Payment not found")

    try:
        values = {Payment.status: status, Payment.updated_at: datetime.utcnow()}
        if provider_data is not None:
            values[Payment.provider_data] = provider_data
        changed = (
            db.query(Payment)
            .filter(Payment.id == payment.id, Payment.status == PAYMENT_PENDING)
            .update(values, synchronize_session=False)
        )
        db.commit()
        db.refresh(payment)
    except Exception:
        db.rollback()
        raise

    if changed:
        logger.info(f"Payment marked {status}: payment_id={payment.id}, external_id={external_id}")
        manager.notify(payment.user_id, {
            "event": "payment.failed",
            "paymentId": payment.id,
            "jobId": payment.job_id,
            "status": status,
        })
    else:
        logger.info(f"Payment failure ignored, status is {payment.status}: external_id={external_id}")
    return _result(payment, not changed)


def backfill_payment_from_intent(db: Session, intent: dict) -> Optional[Payment]:
    """
    Create the pending Payment row for a Stripe intent we never stored
    (e.g. the create call crashed after Stripe accepted it). The intent's
    metadata must carry user_id and plan_id.
    """
    metadata = intent.get("metadata") or {}
    try:
        user_id = int(metadata["user_id"])
        plan_id = int(metadata["plan_id"])
    except (KeyError, TypeError, ValueError):
        logger.warning(f"Cannot backfill payment, metadata incomplete: intent_id={intent.get('id')}")
        return None
    job_id = metadata.get("job_id")

    plan = db.query(Plan).filter(Plan.id == plan_id).first()
    if not plan or not db.query(User.id).filter(User.id == user_id).first():
        logger.warning(f"Cannot backfill payment, unknown user or plan: intent_id={intent.get('id')}")
        return None

    payment = Payment(
        user_id=user_id,
        plan_id=plan_id,
        job_id=int(job_id) if job_id else None,
        provider="stripe",
        external_id=intent["id"],
        amount=intent.get("amount") or plan.price,
        currency=intent.get("currency") or "usd",
        credits=plan.credits,
        status=PAYMENT_PENDING,
    )
    try:
        db.add(payment)
        db.commit()
        db.refresh(payment)
    except IntegrityError:
        db.rollback()
        return get_payment_by_external_id(db, intent["id"])

    logger.info(f"Payment backfilled from intent: payment_id={payment.id}, external_id={payment.external_id}")
    return payment
