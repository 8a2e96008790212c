"""
NOWPayments crypto checkout: hosted invoices and IPN callbacks.

There is no synchronous confirmation for crypto payments. NOWPayments calls
POST /api/crypto/webhook (IPN) as the payment progresses; the order id we
generate is stored as the Payment's external id, so the IPN is looked up
rather than trusted.
"""
import hashlib
import hmac
import json
import logging
import uuid
from typing import List, Optional, Tuple

import httpx
from sqlalchemy.orm import Session

from app.core import config
from app.core.exceptions import PaymentProviderError, ProviderNotConfiguredError, ValidationError
from app.core.logging_config import sanitize_log_data
from app.db.models.job import Job
from app.db.models.payment import Payment, PAYMENT_PENDING, PROVIDER_NOWPAYMENTS
from app.db.models.plan import Plan
from app.db.models.user import User
from app.services import reconciliation_service

logger = logging.getLogger(__name__)

# payment_status values reported by NOWPayments
SUCCESS_STATUSES = ("finished", "confirmed")
FAILURE_STATUSES = ("failed", "expired", "refunded")

REQUEST_TIMEOUT = 15.0


def _client() -> httpx.Client:
    if not config.NOWPAYMENTS_API_KEY:
        raise ProviderNotConfiguredError("NOWPayments not configured - NOWPAYMENTS_API_KEY required")
    return httpx.Client(
        base_url=config.NOWPAYMENTS_API_URL,
        headers={"x-api-key": config.NOWPAYMENTS_API_KEY, "Content-Type": "application/json"},
        timeout=REQUEST_TIMEOUT,
    )


def _request(method: str, path: str, **kwargs) -> dict:
    try:
        with _client() as client:
            response = client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"NOWPayments {method} {path} failed: status={e.response.status_code}, body={e.response.text[:500]}")
        raise PaymentProviderError(f"Crypto payment provider returned {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"NOWPayments {method} {path} failed: {e}")
        raise PaymentProviderError("Crypto payment provider unavailable") from e


def create_invoice(
    db: Session,
    user: User,
    plan: Plan,
    job: Optional[Job] = None,
    pay_currency: Optional[str] = None,
) -> Tuple[Payment, str]:
    """
    Create a hosted NOWPayments invoice and persist the pending Payment.

    Returns:
        (payment, invoice_url)
    """
    order_id = f"np_{uuid.uuid4().hex}"
    description = plan.name + (f" for job #{job.id}" if job is not None else "")
    body = {
        "price_amount": round(plan.price / 100, 2),
        "price_currency": config.PAYMENT_CURRENCY,
        "order_id": order_id,
        "order_description": description,
        "ipn_callback_url": f"{config.APP_URL}/api/crypto/webhook",
        "success_url": f"{config.FRONTEND_URL}/payment/success?order={order_id}",
        "cancel_url": f"{config.FRONTEND_URL}/payment/cancelled?order={order_id}",
    }
    if pay_currency:
        body["pay_currency"] = pay_currency

    invoice = _request("POST", "/invoice", json=body)
    invoice_url = invoice.get("invoice_url")
    if not invoice_url:
        raise PaymentProviderError("Crypto payment provider returned no invoice URL")

    try:
        payment = Payment(
            user_id=user.id,
            plan_id=plan.id,
            job_id=job.id if job is not None else None,
            provider=PROVIDER_NOWPAYMENTS,
            external_id=order_id,
            provider_payment_id=str(invoice.get("id")) if invoice.get("id") is not None else None,
            amount=plan.price,
            currency=config.PAYMENT_CURRENCY,
            credits=plan.credits,
            status=PAYMENT_PENDING,
            provider_data={"invoice_url": invoice_url},
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Crypto invoice created: payment_id={payment.id}, order_id={order_id}, user_id={user.id}, "
        f"plan_id={plan.id}, job_id={payment.job_id}"
    )
    return payment, invoice_url


def get_payment_status(payment_id: str) -> dict:
    return _request("GET", f"/payment/{payment_id}")


def list_currencies() -> List[str]:
    return _request("GET", "/currencies").get("currencies", [])


def sign_ipn_payload(payload: dict, secret: str) -> str:
    """HMAC-SHA512 over the key-sorted, compact JSON encoding NOWPayments signs."""
    message = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha512).hexdigest()


def verify_ipn_signature(raw_body: bytes, signature: Optional[str]) -> dict:
    """
    Verify the x-nowpayments-sig header and return the parsed payload.

    Raises:
        ProviderNotConfiguredError: no IPN secret configured
        ValidationError: body is not JSON or the signature does not match
    """
    if not config.NOWPAYMENTS_IPN_SECRET:
        raise ProviderNotConfiguredError("NOWPAYMENTS_IPN_SECRET not configured")
    try:
        payload = json.loads(raw_body)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid IPN payload") from e
    if not isinstance(payload, dict):
        raise ValidationError("Invalid IPN payload")

    expected = sign_ipn_payload(payload, config.NOWPAYMENTS_IPN_SECRET)
    if not signature or not hmac.compare_digest(expected, signature):
        logger.warning(f"IPN signature mismatch: order_id={payload.get('order_id')}")
        raise ValidationError("Invalid IPN signature")
    return payload


def handle_ipn(db: Session, payload: dict) -> dict:
    """Route a verified IPN to reconciliation or failure handling."""
    order_id = payload.get("order_id")
    status = payload.get("payment_status")
    logger.info(f"IPN received: {sanitize_log_data(payload)}")

    if not order_id:
        raise ValidationError("IPN missing order_id")

    provider_payment_id = str(payload["payment_id"]) if payload.get("payment_id") is not None else None
    if status in SUCCESS_STATUSES:
        return reconciliation_service.reconcile_payment(
            db, order_id, provider_payment_id=provider_payment_id, provider_data=payload
        )
    if status in FAILURE_STATUSES:
        return reconciliation_service.mark_payment_failed(db, order_id, provider_data=payload)

    logger.info(f"IPN interim status ignored: order_id={order_id}, status={status}")
    return {"external_id": order_id, "status": PAYMENT_PENDING, "already_processed": False}
