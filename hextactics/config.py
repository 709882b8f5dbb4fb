"""Application configuration using environment variables."""
import os
from functools import lru_cache
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    # Server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = _env_bool("DEBUG", "false")

    # CORS - Frontend URL
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Presentation pacing (milliseconds, handed to the pacer callback)
    ACTION_DELAY_MS: int = int(os.getenv("ACTION_DELAY_MS", "300"))
    ENEMY_TURN_DELAY_MS: int = int(os.getenv("ENEMY_TURN_DELAY_MS", "500"))

    # Game Constants
    USE_MODIFIER_DECK: bool = _env_bool("USE_MODIFIER_DECK", "true")
    CARDS_TO_PLAY: int = 2
    LONG_REST_HEAL: int = int(os.getenv("LONG_REST_HEAL", "2"))
    MAX_LOG_MESSAGES: int = int(os.getenv("MAX_LOG_MESSAGES", "50"))
    MAX_HISTORY: int = 50

    # Content tables (defaults to the bundled JSON files)
    CONTENT_DIR: Optional[str] = os.getenv("CONTENT_DIR") or None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
