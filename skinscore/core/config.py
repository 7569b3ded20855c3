from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "skinscore"

    # OpenRouter Configuration (OpenAI-compatible API)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"

    # Model Configuration
    CHAT_MODEL: str = "openai/gpt-4o"
    VISION_MODEL: str = "openai/gpt-4o"
    LLM_TEMPERATURE: float = 0.7
    VISION_TEMPERATURE: float = 0.2  # Lower temperature for consistent JSON
    CHAT_HISTORY_LIMIT: int = 10

    # Free tier allowances
    FREE_SCAN_LIMIT: int = 5  # per calendar month
    FREE_CHAT_LIMIT: int = 3  # per day
    EARLY_BIRD_LIMIT: int = 100

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "SkinScore"

    # Frontend Configuration
    FRONTEND_URL: str = "http://localhost:3000"

    # Stripe Configuration
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_WEBHOOK_TOLERANCE: int = 300  # seconds
    STRIPE_LINK_MONTHLY: str = ""
    STRIPE_LINK_ANNUAL: str = ""
    STRIPE_LINK_EARLY_BIRD: str = ""

    # Testing Configuration
    TEST_MODE: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra env variables


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
