"""
Centralized application configuration.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Campaign Content Engine"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = f"sqlite:///{DATA_DIR / 'campaigns.db'}"

    # Anthropic Claude (text generation)
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 8000
    claude_temperature: float = 0.7
    generation_timeout_seconds: float = 120.0

    # Campaign scheduler
    scheduler_enabled: bool = True
    scheduler_poll_seconds: int = 60
    scheduler_max_concurrent: int = 3
    scheduler_batch_size: int = 20
    generation_lock_ttl_minutes: int = 15  # locks older than this are considered stale

    # Content pipeline
    default_product_limit: int = 3
    words_per_section: int = 300  # expected words per H2 section
    default_timezone: str = "UTC"  # for campaigns created without one

    # Shopify Admin API (publish collaborator)
    shopify_api_version: str = "2024-10"
    shopify_timeout_seconds: float = 30.0

    # JWT Authentication (tokens are issued by the dashboard)
    jwt_secret_key: str = "your-super-secret-key-change-in-production-min-32-chars"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Encryption for store access tokens (Fernet key)
    encryption_key: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings."""
    return Settings()
