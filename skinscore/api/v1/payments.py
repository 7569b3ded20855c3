from fastapi import APIRouter, HTTPException, Depends, Query
import stripe
from skinscore.core.config import settings
from skinscore.api.v1.auth import get_current_user
from skinscore.schemas.capacity import PaymentLinkResponse
from skinscore.schemas.profile import CurrentUser
from skinscore.schemas.subscription import CheckoutSessionRequest
from skinscore.services.capacity import early_bird_pool
from skinscore.services.entitlement_store import entitlement_store
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])

stripe.api_key = settings.STRIPE_SECRET_KEY or ""

MONTHLY = "monthly"
ANNUAL = "annual"
EARLY_BIRD = "earlyBird"


def regular_links():
    return {
        MONTHLY: settings.STRIPE_LINK_MONTHLY,
        ANNUAL: settings.STRIPE_LINK_ANNUAL,
    }


@router.get("/payment-link", response_model=PaymentLinkResponse, response_model_exclude_none=True)
async def get_payment_link(plan: str = Query(...)):
    """Return the Stripe payment link for a plan. Early bird falls back to regular plans once sold out."""
    if plan == EARLY_BIRD:
        status = await early_bird_pool.get_status()
        if not status.available:
            return PaymentLinkResponse(
                available=False,
                message="Early bird offer has ended! Choose from our regular plans.",
                spotsTaken=status.spotsTaken,
                spotsRemaining=0,
                links=regular_links(),
            )
        return PaymentLinkResponse(
            available=True,
            spotsTaken=status.spotsTaken,
            spotsRemaining=status.spotsRemaining,
            link=settings.STRIPE_LINK_EARLY_BIRD,
        )

    if plan in (MONTHLY, ANNUAL):
        return PaymentLinkResponse(link=regular_links()[plan])

    raise HTTPException(status_code=400, detail="Invalid plan")


@router.post("/create-checkout-session")
async def create_checkout_session(
    request: CheckoutSessionRequest,
    user: CurrentUser = Depends(get_current_user)
):
    if not stripe.api_key:
        raise HTTPException(status_code=500, detail="Stripe API key not configured")

    profile = await entitlement_store.get_or_create_profile(user.uid, user.email)
    if not profile.email:
        raise HTTPException(status_code=400, detail="An email address is required to subscribe")

    frontend_url = settings.FRONTEND_URL
    success_url = request.successUrl or f"{frontend_url}/dashboard?success=true"
    cancel_url = request.cancelUrl or f"{frontend_url}/pricing?canceled=true"

    try:
        checkout_session = stripe.checkout.Session.create(
            line_items=[
                {
                    'price': request.priceId,
                    'quantity': 1,
                },
            ],
            mode='subscription',
            success_url=success_url,
            cancel_url=cancel_url,
            # The webhook finds the account by this email
            customer_email=profile.email,
            client_reference_id=user.uid,
            metadata={'user_id': user.uid, 'plan': request.plan}
        )
        return {"url": checkout_session.url}
    except stripe.StripeError as e:
        logger.error(f"Failed to create checkout session for {user.uid}: {e}")
        raise HTTPException(status_code=400, detail="Could not start checkout")
