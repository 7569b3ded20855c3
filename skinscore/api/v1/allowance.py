from fastapi import APIRouter, Depends
from skinscore.api.v1.auth import get_current_user
from skinscore.schemas.allowance import ChatAllowance, ScanAllowance
from skinscore.schemas.profile import CurrentUser
from skinscore.services.allowance import Allowance
from skinscore.services.allowance_gate import chat_gate, scan_gate

router = APIRouter(prefix="/allowance", tags=["Allowance"])


def to_scan_allowance(allowance: Allowance) -> ScanAllowance:
    return ScanAllowance(
        scansUsed=allowance.used,
        scansRemaining=allowance.remaining,
        isPremium=allowance.is_premium,
        canScan=allowance.permitted,
        limit=allowance.limit,
        resetsAt=allowance.resets_at,
    )


def to_chat_allowance(allowance: Allowance) -> ChatAllowance:
    return ChatAllowance(
        can_ask=allowance.permitted,
        questions_used=allowance.used,
        questions_remaining=allowance.remaining,
        is_premium=allowance.is_premium,
        limit=allowance.limit,
        resets_at=allowance.resets_at,
    )


@router.get("/scans", response_model=ScanAllowance)
async def check_scan_allowance(user: CurrentUser = Depends(get_current_user)):
    """Monthly scan allowance for the current user."""
    return to_scan_allowance(await scan_gate.check(user.uid, user.email))


@router.get("/chat", response_model=ChatAllowance)
async def check_chat_allowance(user: CurrentUser = Depends(get_current_user)):
    """Daily AI question allowance for the current user."""
    return to_chat_allowance(await chat_gate.check(user.uid, user.email))
