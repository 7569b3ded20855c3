from typing import Awaitable, Callable, Dict, Optional, Tuple, Type

import json
import logging

import stripe
from pydantic import BaseModel, ValidationError

from skinscore.core.config import settings
from skinscore.core.exceptions import InvalidPayload, InvalidSignature, StoreUnavailable
from skinscore.schemas.webhook import CheckoutSession, Invoice, StripeEvent, StripeSubscription
from skinscore.services.reconciler import SubscriptionReconciler, subscription_reconciler

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
INVOICE_PAID = "invoice.paid"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"


class DispatchResult(BaseModel):
    event_type: str
    handled: bool
    failed: bool = False

    class Config:
        frozen = True


class WebhookProcessor:
    """Verifies Stripe deliveries and routes them to the reconciler."""

    def __init__(
        self,
        reconciler: SubscriptionReconciler = subscription_reconciler,
        secret: Optional[str] = None,
        tolerance: Optional[int] = None
    ):
        self.reconciler = reconciler
        self._secret = secret
        self._tolerance = tolerance

    @property
    def secret(self) -> Optional[str]:
        return self._secret or settings.STRIPE_WEBHOOK_SECRET

    @property
    def tolerance(self) -> int:
        return self._tolerance if self._tolerance is not None else settings.STRIPE_WEBHOOK_TOLERANCE

    def _routes(self) -> Dict[str, Tuple[Type[BaseModel], Callable[[BaseModel], Awaitable[None]]]]:
        return {
            CHECKOUT_COMPLETED: (CheckoutSession, self.reconciler.handle_checkout_completed),
            SUBSCRIPTION_CREATED: (StripeSubscription, self.reconciler.handle_subscription_updated),
            SUBSCRIPTION_UPDATED: (StripeSubscription, self.reconciler.handle_subscription_updated),
            SUBSCRIPTION_DELETED: (StripeSubscription, self.reconciler.handle_subscription_deleted),
            INVOICE_PAID: (Invoice, self.reconciler.handle_invoice_paid),
            INVOICE_PAYMENT_FAILED: (Invoice, self.reconciler.handle_payment_failed),
        }

    def construct_event(self, payload: bytes, sig_header: Optional[str]) -> StripeEvent:
        """Verify the Stripe-Signature header and decode the body into an event."""
        if not self.secret:
            logger.error("STRIPE_WEBHOOK_SECRET is not set; rejecting webhook")
            raise InvalidSignature("Webhook secret not configured")
        if not sig_header:
            raise InvalidSignature("Missing Stripe-Signature header")

        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        except UnicodeDecodeError as e:
            raise InvalidPayload(str(e)) from e

        try:
            stripe.WebhookSignature.verify_header(body, sig_header, self.secret, self.tolerance)
        except stripe.SignatureVerificationError as e:
            raise InvalidSignature(str(e)) from e

        try:
            return StripeEvent(**json.loads(body))
        except (ValueError, TypeError, ValidationError) as e:
            raise InvalidPayload(str(e)) from e

    async def dispatch(self, event: StripeEvent) -> DispatchResult:
        """
        Run the handler for ``event.type``.

        Unknown types are acknowledged. A handler that fails on bad data is
        logged and the event is still acknowledged, since redelivering it
        would fail the same way. StoreUnavailable propagates so the delivery
        is retried.
        """
        route = self._routes().get(event.type)
        if route is None:
            logger.info(f"Ignoring unhandled Stripe event type: {event.type}")
            return DispatchResult(event_type=event.type, handled=False)

        model, handler = route
        try:
            await handler(model(**event.data.object))
        except StoreUnavailable:
            raise
        except Exception:
            logger.exception(f"Webhook handler error for {event.type} ({event.id})")
            return DispatchResult(event_type=event.type, handled=True, failed=True)

        return DispatchResult(event_type=event.type, handled=True)


webhook_processor = WebhookProcessor()
