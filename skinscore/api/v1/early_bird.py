from fastapi import APIRouter, HTTPException, status
from skinscore.core.exceptions import AlreadyOnWaitlist
from skinscore.schemas.capacity import CapacityStatus, WaitlistRequest, WaitlistResponse
from skinscore.services.capacity import early_bird_pool
from skinscore.services.waitlist import waitlist_service

router = APIRouter(tags=["Early Bird"])


@router.get("/early-bird-status", response_model=CapacityStatus)
async def early_bird_status():
    """How many early-bird seats are left. Read fresh on every call."""
    return await early_bird_pool.get_status()


@router.post("/waitlist", response_model=WaitlistResponse, status_code=status.HTTP_201_CREATED)
async def join_waitlist(request: WaitlistRequest):
    """Join the waitlist; the first signups also take an early-bird seat."""
    try:
        reservation = await waitlist_service.join(request.email)
    except AlreadyOnWaitlist:
        raise HTTPException(status_code=409, detail="This email is already on the waitlist")

    message = "Successfully added to waitlist"
    if not reservation.granted:
        message += ". Early bird spots are all taken."
    return WaitlistResponse(message=message, email=request.email, earlyBird=reservation)
