from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


# Domain errors. These never carry HTTP semantics; routers translate them.

class InvalidSignature(Exception):
    """Raised when a webhook payload fails Stripe signature verification."""


class InvalidPayload(Exception):
    """Raised when a verified webhook body cannot be decoded into an event."""


class AccountNotFound(Exception):
    """Raised when no profile matches a lookup. Non-fatal for webhooks."""

    def __init__(self, lookup: str):
        super().__init__(f"No profile found for {lookup}")
        self.lookup = lookup


class StoreUnavailable(Exception):
    """Raised when MongoDB cannot be reached. Transient; callers should retry."""


class AlreadyOnWaitlist(Exception):
    """Raised when an email signs up for the waitlist twice."""

    def __init__(self, email: str):
        super().__init__(f"{email} is already on the waitlist")
        self.email = email


# HTTP errors

class WebhookSignatureError(HTTPException):
    """Exception raised when a webhook cannot be verified or decoded."""

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message
        )


class WebhookHandlerError(HTTPException):
    """Exception raised when a webhook could not be applied and should be redelivered."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook handler failed"
        )


class QuotaExceededError(HTTPException):
    """Exception raised when a free account has used up its allowance."""

    def __init__(
        self,
        message: str,
        allowance: Optional[Dict[str, Any]] = None,
        resets_at: Optional[datetime] = None
    ):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "Limit reached",
                "message": message,
                "allowance": allowance,
                "resets_at": resets_at.isoformat() if resets_at else None,
            }
        )


class ServiceUnavailableError(HTTPException):
    """Exception raised when a dependency such as MongoDB is temporarily unreachable."""

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=message
        )


class AuthenticationError(HTTPException):
    """Exception raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )

