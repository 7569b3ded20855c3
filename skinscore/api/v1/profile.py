from fastapi import APIRouter, Depends
from skinscore.api.v1.auth import get_current_user
from skinscore.schemas.profile import CurrentUser, OnboardingUpdate, Profile
from skinscore.services.entitlement_store import entitlement_store

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/me", response_model=Profile, response_model_by_alias=False)
async def get_my_profile(user: CurrentUser = Depends(get_current_user)):
    """Get the caller's profile, creating it on first sign-in."""
    return await entitlement_store.get_or_create_profile(user.uid, user.email)


@router.put("/onboarding", response_model=Profile, response_model_by_alias=False)
async def complete_onboarding(
    update: OnboardingUpdate,
    user: CurrentUser = Depends(get_current_user)
):
    """Record onboarding and consent flags."""
    await entitlement_store.get_or_create_profile(user.uid, user.email)
    await entitlement_store.update_profile(user.uid, update.model_dump(exclude_none=True))
    return await entitlement_store.get_profile(user.uid)
