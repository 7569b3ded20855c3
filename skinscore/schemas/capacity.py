from pydantic import BaseModel, EmailStr
from typing import Dict, Optional


class CapacityStatus(BaseModel):
    available: bool
    spotsTaken: int
    spotsRemaining: int
    percentageTaken: int
    limit: int


class Reservation(BaseModel):
    granted: bool
    spotsTaken: int
    spotsRemaining: int


class WaitlistRequest(BaseModel):
    email: EmailStr


class WaitlistResponse(BaseModel):
    message: str
    email: str
    earlyBird: Reservation


class PaymentLinkResponse(BaseModel):
    available: Optional[bool] = None
    message: Optional[str] = None
    spotsTaken: Optional[int] = None
    spotsRemaining: Optional[int] = None
    link: Optional[str] = None
    links: Optional[Dict[str, str]] = None
