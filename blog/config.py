import logging

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Blog Platform"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./blog.db"

    # Security settings
    secret_key: str = DEFAULT_SECRET_KEY
    session_cookie_name: str = "session_token"
    session_expire_seconds: int = 60 * 60 * 24 * 7

    # Session store (in-memory when unset)
    redis_url: str | None = None

    # Views from the same address inside this window are not counted twice
    view_dedup_window_minutes: int = 5

    # CORS settings
    allowed_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()

if settings.secret_key == DEFAULT_SECRET_KEY:
    logger.warning("Using default SECRET_KEY. This is insecure and should be changed in production!")
