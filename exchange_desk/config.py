"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env
file as a fallback. The .env file is gitignored; .env.example is the template.

Pydantic Settings resolves values in this order:
  1. Environment variables (highest priority)
  2. .env file values
  3. Defaults defined here (lowest priority)

Usage:
    from exchange_desk.config import get_settings
    settings = get_settings()

The engine and the FastAPI app are built from a Settings instance passed in
explicitly, so tests can construct their own without touching the cached one.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the exchange desk service.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: signs access tokens
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Exchange Desk"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for local use; any async SQLAlchemy URL (asyncpg) in production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/exchange.db"

    # --- Authentication ---
    # REQUIRED: no default, forces a real secret per deployment
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # --- Ledger ---
    # Every new wallet is opened with a zero balance in these currencies
    BASE_CURRENCIES: list[str] = ["USD", "LYD"]

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:5173"]


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, built on first use."""
    return Settings()
