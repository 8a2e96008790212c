"""
Crypto checkout through NOWPayments.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user
from app.core.exceptions import NotFoundError
from app.core.rate_limit import rate_limiter
from app.core.role_guard import require_hiring_role
from app.db.models.payment import Payment, PROVIDER_NOWPAYMENTS
from app.db.models.user import User
from app.api.routes.billing import resolve_checkout_job
from app.schemas.billing import CryptoPaymentRequest, CryptoPaymentResponse
from app.services import crypto_service, plan_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/crypto", tags=["Crypto"])


@router.post(
    "/create-payment",
    status_code=status.HTTP_201_CREATED,
    response_model=CryptoPaymentResponse,
    dependencies=[Depends(rate_limiter("payments", max_requests=20, window_seconds=60))],
)
def create_payment(
    payload: CryptoPaymentRequest,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    """Hosted invoice; the browser is redirected to ``invoiceUrl``."""
    plan = plan_service.resolve_plan(db, plan_id=payload.plan_id, tier=payload.tier)
    job = resolve_checkout_job(db, user, payload.job_id)
    payment, invoice_url = crypto_service.create_invoice(db, user, plan, job, pay_currency=payload.pay_currency)
    return CryptoPaymentResponse(
        invoice_url=invoice_url,
        order_id=payment.external_id,
        payment_id=payment.id,
        amount=payment.amount,
        currency=payment.currency,
    )


@router.post("/webhook")
async def ipn_webhook(
    request: Request,
    x_nowpayments_sig: str = Header(None),
    db: Session = Depends(get_db)
):
    """NOWPayments IPN callback (signed with the IPN secret)."""
    body = await request.body()
    payload = crypto_service.verify_ipn_signature(body, x_nowpayments_sig)
    try:
        result = crypto_service.handle_ipn(db, payload)
    except NotFoundError:
        logger.warning(f"IPN for unknown order ignored: order_id={payload.get('order_id')}")
        return {"received": True, "handled": False}
    return {"received": True, "handled": True, "alreadyProcessed": result.get("already_processed", False)}


@router.get("/payment/{payment_id}")
def payment_status(
    payment_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Provider-side status of one of the caller's crypto payments."""
    payment = (
        db.query(Payment)
        .filter(
            Payment.provider == PROVIDER_NOWPAYMENTS,
            Payment.user_id == user.id,
            (Payment.provider_payment_id == payment_id) | (Payment.external_id == payment_id),
        )
        .first()
    )
    if not payment:
        raise NotFoundError("Payment not found")
    remote = crypto_service.get_payment_status(payment_id) if payment.provider_payment_id == payment_id else {}
    return {
        "paymentId": payment.id,
        "orderId": payment.external_id,
        "status": payment.status,
        "providerStatus": remote.get("payment_status"),
        "jobId": payment.job_id,
    }


@router.get("/currencies", response_model=List[str])
def currencies():
    return crypto_service.list_currencies()
