from fastapi import APIRouter, HTTPException, Depends
from skinscore.ai.advisor import SkinAdvisor, skin_advisor
from skinscore.api.v1.auth import get_current_user
from skinscore.api.v1.allowance import to_chat_allowance
from skinscore.core.exceptions import QuotaExceededError
from skinscore.schemas.chat import AskRequest, AskResponse
from skinscore.schemas.profile import CurrentUser
from skinscore.services.allowance_gate import chat_gate
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_skin_advisor() -> SkinAdvisor:
    return skin_advisor


@router.post("/ask", response_model=AskResponse)
async def ask_question(
    request: AskRequest,
    user: CurrentUser = Depends(get_current_user),
    advisor: SkinAdvisor = Depends(get_skin_advisor)
):
    """
    Ask the skincare advisor a question.

    Free accounts get a small number of questions per day; the question is
    counted before the model is called and given back if the call fails.
    """
    decision = await chat_gate.consume(user.uid, user.email)
    if not decision.permitted:
        allowance = to_chat_allowance(decision.allowance)
        raise QuotaExceededError(
            message=(
                f"You've used your {allowance.limit} free questions today. "
                "Upgrade to Premium for unlimited access."
            ),
            allowance=allowance.model_dump(mode="json"),
            resets_at=decision.allowance.resets_at
        )

    try:
        answer = await advisor.ask(
            user_id=user.uid,
            question=request.message,
            scan_context=request.scanContext.model_dump() if request.scanContext else None
        )
    except Exception as e:
        logger.error(f"AI chat error for user {user.uid}: {e}")
        await chat_gate.refund(user.uid, decision)
        raise HTTPException(status_code=500, detail="Failed to process request")

    return AskResponse(message=answer, allowance=to_chat_allowance(decision.allowance))
