from pydantic_settings import BaseSettings
from functools import lru_cache
import os

class Settings(BaseSettings):
    # API Keys
    openai_api_key: str = ""

    # LLM
    openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 30.0
    llm_max_retries: int = 2  # Only for rate limits / 5xx, never auth or malformed
    llm_backoff_seconds: float = 1.0

    # Role profile language handling
    language_detection_enabled: bool = True
    default_language: str = "English"

    # Growth plan size policy
    growth_plan_min_items: int = 3
    growth_plan_max_items: int = 8
    growth_plan_strict_count: bool = True

    # Sessions
    jwt_secret: str = "change-me"
    session_ttl_days: int = 30
    session_cookie_name: str = "session"
    session_cookie_secure: bool = True

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""

    # Database - DATABASE_URL from the platform, fallback to SQLite for local
    database_url: str = None

    # App Settings
    app_name: str = "GrowthForge"
    app_version: str = "1.0.0"
    debug: bool = False
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Rate limiting (slowapi)
    rate_limit_enabled: bool = True
    generation_rate_limit: str = "20/hour"
    auth_rate_limit: str = "10/minute"

    # API Settings
    backend_host: str = "0.0.0.0"
    backend_port: int = int(os.getenv("PORT", "8000"))

    class Config:
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Auto-detect database URL (the field itself also picks up DATABASE_URL)
        platform_db = self.database_url or os.getenv("DATABASE_URL")
        if platform_db:
            # Platforms hand out postgres:// or postgresql://, SQLAlchemy async needs postgresql+asyncpg://
            if platform_db.startswith("postgres://"):
                self.database_url = platform_db.replace("postgres://", "postgresql+asyncpg://", 1)
            elif platform_db.startswith("postgresql://"):
                self.database_url = platform_db.replace("postgresql://", "postgresql+asyncpg://", 1)
            else:
                self.database_url = platform_db
        else:
            # Fallback to local SQLite
            self.database_url = "sqlite+aiosqlite:///./database/growthforge.db"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
