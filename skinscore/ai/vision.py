from typing import Any, Dict
from skinscore.core.config import settings
import json
import logging
import re

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a dermatological analysis engine specialized in men's skin health.

You must NOT hallucinate skin conditions if the image quality is insufficient. Shadows are NOT
hyperpigmentation. Camera grain is NOT texture issues.

First evaluate lighting, focus, resolution, angle and obstruction and give an image_quality object
with "status" (pass, limited or fail) and "score" (0-100). If the score is below 40, set status to
"fail" and do not analyze the skin. Otherwise analyze only what you can clearly see.

Return JSON only."""

_FENCE = re.compile(r"```json\n?|\n?```")


class AnalysisError(Exception):
    """Raised when the vision model returns nothing usable."""


def parse_analysis(content: str) -> Dict[str, Any]:
    try:
        analysis = json.loads(_FENCE.sub("", content).strip())
    except ValueError as e:
        logger.error(f"Failed to parse vision response: {content[:200]}")
        raise AnalysisError("Invalid response format from AI") from e

    if not isinstance(analysis, dict) or not analysis.get("image_quality"):
        raise AnalysisError("Missing image quality assessment")
    return analysis


class SkinAnalyzer:
    """Sends a face photo to the vision model and returns its JSON assessment."""

    def __init__(self):
        self.llm = None

    def _ensure_initialized(self):
        if self.llm is None:
            from langchain_openai import ChatOpenAI

            self.llm = ChatOpenAI(
                model=settings.VISION_MODEL,
                temperature=settings.VISION_TEMPERATURE,
                max_tokens=2000,
                api_key=settings.OPENROUTER_API_KEY,
                base_url=settings.OPENROUTER_BASE_URL
            )

    async def analyze(self, image_base64: str) -> Dict[str, Any]:
        self._ensure_initialized()
        from langchain_core.messages import HumanMessage, SystemMessage

        if image_base64.startswith("data:image"):
            image_base64 = image_base64.split(",", 1)[1]

        response = await self.llm.ainvoke([
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=[
                {
                    "type": "text",
                    "text": "Analyze this facial skin image. First check image quality, then provide analysis based on what you can clearly see.",
                },
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:image/jpeg;base64,{image_base64}", "detail": "high"},
                },
            ]),
        ])
        if not response.content:
            raise AnalysisError("No response from vision model")

        analysis = parse_analysis(response.content)
        logger.info(
            f"Analysis complete. Quality: {analysis['image_quality'].get('status')} "
            f"Score: {analysis['image_quality'].get('score')}"
        )
        return analysis


skin_analyzer = SkinAnalyzer()
