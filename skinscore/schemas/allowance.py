from pydantic import BaseModel
from typing import Literal, Optional, Union
from datetime import datetime

Remaining = Union[int, Literal["unlimited"]]


class ScanAllowance(BaseModel):
    """Scan allowance as returned to the client."""
    scansUsed: int
    scansRemaining: Remaining
    isPremium: bool
    canScan: bool
    limit: int
    resetsAt: Optional[datetime] = None


class ChatAllowance(BaseModel):
    """Daily AI chat allowance as returned to the client."""
    can_ask: bool
    questions_used: int
    questions_remaining: Remaining
    is_premium: bool
    limit: int
    resets_at: Optional[datetime] = None
