from fastapi import APIRouter, HTTPException, Depends
from skinscore.ai.vision import SkinAnalyzer, skin_analyzer
from skinscore.api.v1.auth import get_current_user
from skinscore.api.v1.allowance import to_scan_allowance
from skinscore.core.exceptions import QuotaExceededError
from skinscore.schemas.scan import ScanRequest, ScanResponse
from skinscore.schemas.profile import CurrentUser
from skinscore.services.allowance_gate import scan_gate
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scans", tags=["Scans"])


def get_skin_analyzer() -> SkinAnalyzer:
    return skin_analyzer


@router.post("/analyze", response_model=ScanResponse)
async def analyze_scan(
    request: ScanRequest,
    user: CurrentUser = Depends(get_current_user),
    analyzer: SkinAnalyzer = Depends(get_skin_analyzer)
):
    """Score a skin photo, counting it against the monthly scan allowance."""
    decision = await scan_gate.consume(user.uid, user.email)
    if not decision.permitted:
        allowance = to_scan_allowance(decision.allowance)
        raise QuotaExceededError(
            message=(
                f"You've used all {allowance.limit} free scans this month. "
                "Upgrade to Premium for unlimited scans."
            ),
            allowance=allowance.model_dump(mode="json"),
            resets_at=decision.allowance.resets_at
        )

    try:
        analysis = await analyzer.analyze(request.image)
    except Exception as e:
        logger.error(f"Skin analysis error for user {user.uid}: {e}")
        await scan_gate.refund(user.uid, decision)
        raise HTTPException(status_code=500, detail="Failed to analyze image")

    return ScanResponse(analysis=analysis, allowance=to_scan_allowance(decision.allowance))
