"""
Plans, card payments (Stripe) and the credit ledger.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user
from app.core.exceptions import InvalidTransitionError
from app.core.rate_limit import rate_limiter
from app.core.role_guard import require_hiring_role
from app.db.models.job import Job
from app.db.models.user import User
from app.schemas.billing import (
    ConfirmPaymentRequest,
    CreatePaymentIntentRequest,
    CreditEntryResponse,
    CreditHistoryResponse,
    PaymentIntentResponse,
    PlanResponse,
    ReconcileResponse,
)
from app.services import job_service, ledger_service, plan_service, stripe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Billing"])


def resolve_checkout_job(db: Session, user: User, job_id: Optional[int]) -> Optional[Job]:
    """The job a checkout promotes, if any. Caller must belong to its company."""
    if job_id is None:
        return None
    job = job_service.get_job(db, job_id)
    job_service.ensure_company_member(db, user, job.company_id)
    if job.is_promoted:
        raise InvalidTransitionError(f"Job is already {job.tier}")
    return job


@router.get("/plans", response_model=List[PlanResponse])
def list_plans(db: Session = Depends(get_db)):
    return [PlanResponse.model_validate(p) for p in plan_service.list_active_plans(db)]


@router.get("/plans/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: int, db: Session = Depends(get_db)):
    return PlanResponse.model_validate(plan_service.get_plan(db, plan_id))


@router.post(
    "/create-payment-intent",
    status_code=status.HTTP_201_CREATED,
    response_model=PaymentIntentResponse,
    dependencies=[Depends(rate_limiter("payments", max_requests=20, window_seconds=60))],
)
def create_payment_intent(
    payload: CreatePaymentIntentRequest,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    """
    Start a card payment for a plan: a job promotion when ``jobId`` is given,
    otherwise a credit purchase.
    """
    plan = plan_service.resolve_plan(db, plan_id=payload.plan_id, tier=payload.tier)
    job = resolve_checkout_job(db, user, payload.job_id)
    payment, client_secret = stripe_service.create_payment_intent(db, user, plan, job)
    return PaymentIntentResponse(
        client_secret=client_secret,
        payment_intent_id=payment.external_id,
        payment_id=payment.id,
        amount=payment.amount,
        currency=payment.currency,
    )


@router.post("/credits/add", response_model=ReconcileResponse)
def add_credits(
    payload: ConfirmPaymentRequest,
    user: User = Depends(require_hiring_role),
    db: Session = Depends(get_db)
):
    """
    Card flow confirmation for a credit purchase. Credits are only granted
    for a PaymentIntent Stripe reports as succeeded, once per intent.
    """
    result = stripe_service.confirm_client_payment(db, user, payload.payment_intent_id)
    return ReconcileResponse(**result)


@router.get("/credits/history", response_model=CreditHistoryResponse)
def credit_history(
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entries = ledger_service.list_entries(db, user.id, limit=limit)
    return CreditHistoryResponse(
        credits_balance=ledger_service.get_credit_balance(db, user.id),
        entries=[CreditEntryResponse.model_validate(e) for e in entries],
    )


@router.post("/stripe-webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db)
):
    """
    Stripe webhook. Redeliveries are expected and acknowledged without a
    second effect.
    """
    payload = await request.body()
    event = stripe_service.verify_webhook(payload, stripe_signature)
    result = stripe_service.handle_webhook_event(event, db)
    return {"received": True, "type": event["type"], "alreadyProcessed": result.get("already_processed", False)}
