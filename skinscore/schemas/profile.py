from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class Profile(BaseModel):
    """A user profile as stored in the profiles collection."""
    id: str = Field(alias="_id")
    email: Optional[str] = None
    is_premium: bool = False

    # Scan usage; the counter belongs to the month starting at scans_reset_at
    monthly_scans_used: int = 0
    scans_reset_at: Optional[datetime] = None
    total_scans: int = 0

    # AI chat usage; the counter belongs to the day starting at questions_reset_at
    daily_questions_used: int = 0
    questions_reset_at: Optional[datetime] = None

    onboarding_completed: bool = False
    medical_disclaimer_accepted: bool = False
    data_consent: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        extra = "ignore"


class OnboardingUpdate(BaseModel):
    """Flags recorded when the user finishes onboarding."""
    onboarding_completed: bool = True
    medical_disclaimer_accepted: Optional[bool] = None
    data_consent: Optional[bool] = None


class CurrentUser(BaseModel):
    """The authenticated caller."""
    uid: str
    email: Optional[str] = None
