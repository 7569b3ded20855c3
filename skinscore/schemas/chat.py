from pydantic import BaseModel, Field
from typing import List, Optional

from skinscore.schemas.allowance import ChatAllowance


class ScanContext(BaseModel):
    """Latest scan results the advisor can personalize with."""
    overall_score: Optional[int] = None
    skin_type: Optional[str] = None
    issues: List[str] = Field(default_factory=list)


class AskRequest(BaseModel):
    """Request model for an AI chat question."""
    message: str = Field(..., min_length=1, max_length=2000, description="The user's question")
    scanContext: Optional[ScanContext] = None


class AskResponse(BaseModel):
    message: str
    allowance: ChatAllowance

