from pydantic import BaseModel, Field
from typing import Any, Dict

from skinscore.schemas.allowance import ScanAllowance


class ScanRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Base64 image, optionally a data URL")


class ScanResponse(BaseModel):
    analysis: Dict[str, Any]
    allowance: ScanAllowance
