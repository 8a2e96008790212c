"""
Stripe service for card payments: PaymentIntents, client-side confirmation
and webhook verification.
"""
import logging
from typing import Optional, Tuple

import stripe
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import config
from app.core.exceptions import (
    PaymentProviderError,
    PermissionDeniedError,
    ProviderNotConfiguredError,
    ValidationError,
)
from app.db.models.job import Job
from app.db.models.payment import Payment, PAYMENT_CANCELED, PAYMENT_FAILED, PAYMENT_PENDING, PROVIDER_STRIPE
from app.db.models.plan import Plan
from app.db.models.user import User
from app.services import reconciliation_service

logger = logging.getLogger(__name__)

if not config.STRIPE_SECRET_KEY:
    logger.warning("STRIPE_SECRET_KEY not configured - card payments disabled")


def _configure() -> None:
    if not config.STRIPE_SECRET_KEY:
        raise ProviderNotConfiguredError("Stripe not configured - STRIPE_SECRET_KEY required")
    stripe.api_key = config.STRIPE_SECRET_KEY


def to_plain(obj) -> dict:
    """StripeObject (or already-plain dict) -> plain dict."""
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


def create_payment_intent(
    db: Session,
    user: User,
    plan: Plan,
    job: Optional[Job] = None,
) -> Tuple[Payment, str]:
    """
    Create a PaymentIntent for ``plan`` and persist it as a pending Payment.

    The amount always comes from the plan, never from the client. If the
    intent id is already stored (a retried request), the stored row is
    returned instead of a second one.

    Returns:
        (payment, client_secret)
    """
    _configure()
    metadata = {
        "user_id": str(user.id),
        "plan_id": str(plan.id),
        "credits": str(plan.credits),
    }
    if job is not None:
        metadata["job_id"] = str(job.id)

    try:
        intent = stripe.PaymentIntent.create(
            amount=plan.price,
            currency=config.PAYMENT_CURRENCY,
            metadata=metadata,
            description=f"{plan.name}" + (f" for job #{job.id}" if job is not None else ""),
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe error creating payment intent: user_id={user.id}, plan_id={plan.id}, error={e}")
        raise PaymentProviderError(f"Failed to create payment: {e.user_message or str(e)}") from e

    intent_id = intent["id"]
    client_secret = intent["client_secret"]

    existing = reconciliation_service.get_payment_by_external_id(db, intent_id)
    if existing:
        return existing, client_secret

    payment = Payment(
        user_id=user.id,
        plan_id=plan.id,
        job_id=job.id if job is not None else None,
        provider=PROVIDER_STRIPE,
        external_id=intent_id,
        amount=plan.price,
        currency=config.PAYMENT_CURRENCY,
        credits=plan.credits,
        status=PAYMENT_PENDING,
    )
    try:
        db.add(payment)
        db.commit()
        db.refresh(payment)
    except IntegrityError:
        db.rollback()
        payment = reconciliation_service.get_payment_by_external_id(db, intent_id)

    logger.info(
        f"Payment intent created: payment_id={payment.id}, intent_id={intent_id}, user_id={user.id}, "
        f"plan_id={plan.id}, job_id={payment.job_id}, amount={plan.price}"
    )
    return payment, client_secret


def retrieve_payment_intent(intent_id: str) -> dict:
    _configure()
    try:
        return to_plain(stripe.PaymentIntent.retrieve(intent_id))
    except stripe.StripeError as e:
        logger.error(f"Stripe error retrieving payment intent {intent_id}: {e}")
        raise PaymentProviderError(f"Failed to verify payment: {e.user_message or str(e)}") from e


def confirm_client_payment(
    db: Session,
    user: User,
    intent_id: str,
    job_id: Optional[int] = None,
) -> dict:
    """
    Browser-side confirmation path. The intent is re-read from Stripe, so a
    client cannot claim a payment that did not succeed.
    """
    intent = retrieve_payment_intent(intent_id)
    if intent.get("status") != "succeeded":
        raise ValidationError(f"Payment has not succeeded (status is '{intent.get('status')}')")

    payment = reconciliation_service.get_payment_by_external_id(db, intent_id)
    if payment is None:
        payment = reconciliation_service.backfill_payment_from_intent(db, intent)
    if payment is None:
        raise ValidationError("Unknown payment")
    if payment.user_id != user.id:
        raise PermissionDeniedError("This payment belongs to another user")
    if job_id is not None and payment.job_id is not None and payment.job_id != job_id:
        raise ValidationError("This payment was made for a different job")

    return reconciliation_service.reconcile_payment(
        db, intent_id, provider_data={"source": "client", "status": intent.get("status")}
    )


def verify_webhook(request_body: bytes, signature: str) -> dict:
    """
    Verify and parse a Stripe webhook event.

    Raises:
        ProviderNotConfiguredError: no webhook secret configured
        ValidationError: payload or signature invalid
    """
    if not config.STRIPE_WEBHOOK_SECRET:
        raise ProviderNotConfiguredError("STRIPE_WEBHOOK_SECRET not configured")

    try:
        event = stripe.Webhook.construct_event(
            request_body, signature, config.STRIPE_WEBHOOK_SECRET
        )
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise ValidationError("Invalid webhook payload") from e
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise ValidationError("Invalid webhook signature") from e

    logger.info(f"Verified webhook event: {event['type']}, id={event['id']}")
    return to_plain(event)


def handle_payment_intent_succeeded(intent: dict, db: Session) -> dict:
    payment = reconciliation_service.get_payment_by_external_id(db, intent["id"])
    if payment is None:
        payment = reconciliation_service.backfill_payment_from_intent(db, intent)
    if payment is None:
        logger.warning(f"Webhook for unknown payment intent ignored: intent_id={intent['id']}")
        return {"handled": False}
    result = reconciliation_service.reconcile_payment(
        db, intent["id"], provider_data={"source": "webhook", "status": intent.get("status")}
    )
    return {"handled": True, **result}


def handle_payment_intent_failed(intent: dict, db: Session, status: str = PAYMENT_FAILED) -> dict:
    if reconciliation_service.get_payment_by_external_id(db, intent["id"]) is None:
        logger.warning(f"Failure webhook for unknown payment intent ignored: intent_id={intent['id']}")
        return {"handled": False}
    error = intent.get("last_payment_error") or {}
    result = reconciliation_service.mark_payment_failed(
        db, intent["id"], status=status,
        provider_data={"source": "webhook", "error": error.get("message")},
    )
    return {"handled": True, **result}


def handle_webhook_event(event: dict, db: Session) -> dict:
    """Dispatch a verified Stripe event. Unhandled types are acknowledged and ignored."""
    event_type = event["type"]
    intent = event["data"]["object"]

    if event_type == "payment_intent.succeeded":
        return handle_payment_intent_succeeded(intent, db)
    if event_type == "payment_intent.payment_failed":
        return handle_payment_intent_failed(intent, db)
    if event_type == "payment_intent.canceled":
        return handle_payment_intent_failed(intent, db, status=PAYMENT_CANCELED)

    logger.debug(f"Unhandled webhook event type: {event_type}")
    return {"handled": False}
