"""
Pydantic schemas for plans, payments and credits.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.schemas.common import CamelModel


class PlanResponse(CamelModel):
    id: int
    name: str
    tier: str
    visibility_days: int
    price: int = Field(..., description="Price in cents")
    credits: int
    is_active: bool


class CreatePaymentIntentRequest(CamelModel):
    """Amount and currency come from the plan; the client only picks it."""
    plan_id: Optional[int] = None
    tier: Optional[str] = None
    job_id: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {"tier": "featured", "jobId": 42}
        }


class PaymentIntentResponse(CamelModel):
    client_secret: str
    payment_intent_id: str
    payment_id: int
    amount: int
    currency: str


class CryptoPaymentRequest(CreatePaymentIntentRequest):
    pay_currency: Optional[str] = Field(None, description="e.g. btc, eth, usdttrc20")


class CryptoPaymentResponse(CamelModel):
    invoice_url: str
    order_id: str
    payment_id: int
    amount: int
    currency: str


class ConfirmPaymentRequest(CamelModel):
    payment_intent_id: str


class ReconcileResponse(CamelModel):
    payment_id: int
    status: str
    already_processed: bool
    job_id: Optional[int] = None
    job_upgraded: bool = False
    credits_granted: int = 0
    credits_balance: int = 0


class CreditEntryResponse(CamelModel):
    id: int
    sequence: int
    tier: str
    amount: int
    balance: int
    reason: str
    payment_id: Optional[int] = None
    job_id: Optional[int] = None
    created_at: datetime


class CreditHistoryResponse(CamelModel):
    credits_balance: int
    entries: List[CreditEntryResponse]
