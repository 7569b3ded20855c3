from langchain_mongodb import MongoDBChatMessageHistory
from typing import Any, Dict, Optional
from skinscore.core.config import settings
import logging

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful skincare advisor for a men's skin health platform.

CRITICAL RULES - NEVER VIOLATE:
1. You are NOT a doctor. You CANNOT diagnose any condition.
2. ALWAYS recommend consulting a dermatologist for medical concerns.
3. You provide general skincare education and product guidance ONLY.
4. If anyone mentions concerning symptoms (pain, infection, spreading, bleeding, etc.), urge them to see a doctor immediately.
5. NEVER claim to treat, cure, or diagnose any condition.

RESPONSE STYLE:
- Keep responses concise (2-3 paragraphs max)
- Be friendly and supportive
- Use simple language, avoid medical jargon
- When discussing products, mention ingredients (salicylic acid, niacinamide, etc.) not brands
- Always end concerning questions with "Please consult a dermatologist if you're worried."
"""


def get_session_history(session_id: str):
    """MongoDB-backed chat history; one conversation per user."""
    return MongoDBChatMessageHistory(
        connection_string=settings.MONGO_URI,
        session_id=session_id,
        database_name=settings.MONGO_DB_NAME,
        collection_name="ai_chat_messages",
        history_size=settings.CHAT_HISTORY_LIMIT
    )


def build_scan_context(scan_context: Optional[Dict[str, Any]]) -> str:
    if not scan_context:
        return "No scan data available."
    issues = scan_context.get("issues") or []
    return (
        f"User's latest scan data: Overall score {scan_context.get('overall_score', 'unknown')}/100. "
        f"Skin type: {scan_context.get('skin_type', 'unknown')}. "
        f"Issues detected: {', '.join(issues) if issues else 'None significant'}. "
        "Use this context to personalize your response."
    )


class SkinAdvisor:
    """Skincare Q&A chat that remembers each user's recent messages."""

    def __init__(self):
        self.chain_with_history = None

    def _ensure_initialized(self):
        """Lazy initialization of the chat chain."""
        if self.chain_with_history is None:
            logger.info("Initializing SkinAdvisor components...")
            # Import here to avoid heavy startup cost
            from langchain_openai import ChatOpenAI
            from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
            from langchain_core.runnables.history import RunnableWithMessageHistory

            llm = ChatOpenAI(
                model=settings.CHAT_MODEL,
                temperature=settings.LLM_TEMPERATURE,
                max_tokens=500,
                api_key=settings.OPENROUTER_API_KEY,
                base_url=settings.OPENROUTER_BASE_URL
            )
            prompt = ChatPromptTemplate.from_messages([
                ("system", SYSTEM_PROMPT),
                ("system", "{scan_context}"),
                MessagesPlaceholder(variable_name="history"),
                ("human", "{question}"),
            ])
            self.chain_with_history = RunnableWithMessageHistory(
                prompt | llm,
                get_session_history,
                input_messages_key="question",
                history_messages_key="history",
            )
            logger.info("SkinAdvisor initialized.")

    async def ask(
        self,
        user_id: str,
        question: str,
        scan_context: Optional[Dict[str, Any]] = None
    ) -> str:
        self._ensure_initialized()
        response = await self.chain_with_history.ainvoke(
            {"question": question, "scan_context": build_scan_context(scan_context)},
            config={"configurable": {"session_id": user_id}}
        )
        return response.content


skin_advisor = SkinAdvisor()
