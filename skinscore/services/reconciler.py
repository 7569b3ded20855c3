"""
Subscription reconciliation.

Applies decoded Stripe lifecycle events to the local subscription record and
the profile's is_premium flag. Every handler writes the latest known status
rather than adjusting anything incrementally, so a redelivered event leaves
the same end state. Whichever event is delivered last wins; event timestamps
are not compared.
"""

from datetime import datetime, timedelta

from skinscore.core.exceptions import AccountNotFound
from skinscore.schemas.subscription import ACTIVE, CANCELED, is_entitled
from skinscore.schemas.webhook import CheckoutSession, Invoice, StripeSubscription, from_unix
from skinscore.services.entitlement_store import EntitlementStore, entitlement_store

import logging

logger = logging.getLogger(__name__)

DEFAULT_PLAN = "premium"
INITIAL_PERIOD = timedelta(days=30)


class SubscriptionReconciler:

    def __init__(self, store: EntitlementStore = entitlement_store):
        self.store = store

    async def handle_checkout_completed(self, session: CheckoutSession) -> None:
        """Upgrade the account that paid, creating or replacing its subscription record."""
        email = session.email
        logger.info(f"Checkout complete for: {email}")

        if not email:
            logger.error("No customer email found in checkout session")
            return

        try:
            profile = await self.store.require_profile_by_email(email)
        except AccountNotFound as e:
            logger.warning(f"Skipping checkout {session.id}: {e}")
            return

        await self.store.set_premium(profile.id, True)

        # Anchored on the session so a redelivery writes identical fields
        started = from_unix(session.created) or datetime.utcnow()
        # Keyed by account id so a redelivery or second checkout replaces the record
        await self.store.upsert_subscription(
            {"user_id": profile.id},
            {
                "user_id": profile.id,
                "stripe_customer_id": session.customer,
                "stripe_subscription_id": session.subscription,
                "plan": session.metadata.get("plan", DEFAULT_PLAN),
                "status": ACTIVE,
                "current_period_start": started,
                "current_period_end": started + INITIAL_PERIOD,
            },
            on_insert={"created_at": datetime.utcnow()}
        )
        logger.info(f"User {profile.id} upgraded to premium")

    async def handle_subscription_updated(self, subscription: StripeSubscription) -> None:
        """Mirror a created/updated subscription and recompute entitlement from its status."""
        customer_id = subscription.customer
        logger.info(f"Subscription update: {customer_id} {subscription.status}")

        record = await self.store.find_subscription_by_customer_id(customer_id)
        if record is None:
            # Checkout may not have been processed yet
            logger.warning(f"Subscription not found for customer: {customer_id}")
            return

        fields = {
            "status": subscription.status,
            "current_period_start": subscription.period_start,
            "current_period_end": subscription.period_end,
            "cancel_at": from_unix(subscription.cancel_at),
        }
        if subscription.id:
            fields["stripe_subscription_id"] = subscription.id

        await self.store.update_subscription_by_customer_id(customer_id, fields)
        await self.store.set_premium(record.user_id, is_entitled(subscription.status))
        logger.info(f"Subscription updated for customer: {customer_id}")

    async def handle_subscription_deleted(self, subscription: StripeSubscription) -> None:
        customer_id = subscription.customer
        logger.info(f"Subscription canceled: {customer_id}")

        record = await self.store.find_subscription_by_customer_id(customer_id)
        if record is None:
            logger.warning(f"Subscription not found for customer: {customer_id}")
            return

        await self.store.update_subscription_by_customer_id(customer_id, {"status": CANCELED})
        await self.store.set_premium(record.user_id, False)
        logger.info(f"Premium removed for customer: {customer_id}")

    async def handle_invoice_paid(self, invoice: Invoice) -> None:
        # TODO: send a renewal receipt email once transactional email is wired up
        logger.info(f"Invoice paid: {invoice.customer_email or invoice.customer}")

    async def handle_payment_failed(self, invoice: Invoice) -> None:
        # Entitlement follows the subscription status Stripe sends next (past_due/unpaid)
        logger.warning(f"Payment failed: {invoice.customer_email or invoice.customer}")


subscription_reconciler = SubscriptionReconciler()
