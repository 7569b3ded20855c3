from pydantic import BaseModel
from typing import Optional
from datetime import datetime

ACTIVE = "active"
TRIALING = "trialing"
PAST_DUE = "past_due"
CANCELED = "canceled"
UNPAID = "unpaid"

# Statuses that grant unlimited use. Anything else Stripe reports counts as free.
ENTITLED_STATUSES = frozenset({ACTIVE, TRIALING})


def is_entitled(status: Optional[str]) -> bool:
    return status in ENTITLED_STATUSES


class SubscriptionRecord(BaseModel):
    """A subscription as stored in the subscriptions collection."""
    user_id: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    plan: str = "premium"
    status: str = ACTIVE
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class CheckoutSessionRequest(BaseModel):
    priceId: str
    plan: str = "premium"
    successUrl: Optional[str] = None
    cancelUrl: Optional[str] = None
