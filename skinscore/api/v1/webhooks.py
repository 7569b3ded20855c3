from fastapi import APIRouter, Request
from skinscore.core.exceptions import (
    InvalidPayload,
    InvalidSignature,
    StoreUnavailable,
    WebhookHandlerError,
    WebhookSignatureError,
)
from skinscore.schemas.webhook import WebhookAck
from skinscore.services.webhook_processor import webhook_processor
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/stripe", response_model=WebhookAck, include_in_schema=False)
async def stripe_webhook(request: Request):
    """
    Handle Stripe webhook events.

    400 tells Stripe the delivery is permanently rejected; 500 makes it
    retry. Anything that verifies is acknowledged, including event types
    we do not handle.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        event = webhook_processor.construct_event(payload, sig_header)
    except InvalidSignature as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise WebhookSignatureError("Invalid signature")
    except InvalidPayload as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise WebhookSignatureError("Invalid payload")

    logger.info(f"Stripe webhook event: {event.type} ({event.id})")

    try:
        await webhook_processor.dispatch(event)
    except StoreUnavailable:
        logger.error(f"Store unavailable while handling {event.type} ({event.id}); Stripe will retry")
        raise WebhookHandlerError()

    return WebhookAck(received=True)
