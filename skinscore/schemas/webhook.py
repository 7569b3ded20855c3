from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


def from_unix(value: Optional[int]) -> Optional[datetime]:
    """Convert a Stripe unix timestamp to a naive UTC datetime."""
    if value is None:
        return None
    return datetime.utcfromtimestamp(value)


class EventData(BaseModel):
    object: Dict[str, Any]


class StripeEvent(BaseModel):
    """The envelope of a Stripe webhook delivery."""
    id: str
    type: str
    created: Optional[int] = None
    livemode: bool = False
    data: EventData

    class Config:
        extra = "ignore"


class CustomerDetails(BaseModel):
    email: Optional[str] = None

    class Config:
        extra = "ignore"


class CheckoutSession(BaseModel):
    """The subset of a checkout.session object the reconciler reads."""
    id: Optional[str] = None
    created: Optional[int] = None
    customer: Optional[str] = None
    subscription: Optional[str] = None
    customer_email: Optional[str] = None
    customer_details: Optional[CustomerDetails] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    class Config:
        extra = "ignore"

    @property
    def email(self) -> Optional[str]:
        if self.customer_email:
            return self.customer_email
        if self.customer_details:
            return self.customer_details.email
        return None


class SubscriptionItem(BaseModel):
    current_period_start: Optional[int] = None
    current_period_end: Optional[int] = None

    class Config:
        extra = "ignore"


class SubscriptionItemList(BaseModel):
    data: List[SubscriptionItem] = Field(default_factory=list)

    class Config:
        extra = "ignore"


class StripeSubscription(BaseModel):
    """The subset of a customer.subscription object the reconciler reads."""
    id: Optional[str] = None
    customer: str
    status: str
    current_period_start: Optional[int] = None
    current_period_end: Optional[int] = None
    cancel_at: Optional[int] = None
    items: Optional[SubscriptionItemList] = None

    class Config:
        extra = "ignore"

    def _item_field(self, name: str) -> Optional[int]:
        # Newer API versions report billing periods per subscription item
        if self.items and self.items.data:
            return getattr(self.items.data[0], name)
        return None

    @property
    def period_start(self) -> Optional[datetime]:
        return from_unix(self.current_period_start or self._item_field("current_period_start"))

    @property
    def period_end(self) -> Optional[datetime]:
        return from_unix(self.current_period_end or self._item_field("current_period_end"))


class Invoice(BaseModel):
    id: Optional[str] = None
    customer: Optional[str] = None
    customer_email: Optional[str] = None
    subscription: Optional[str] = None

    class Config:
        extra = "ignore"


class WebhookAck(BaseModel):
    received: bool = True
