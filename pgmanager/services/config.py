"""Application configuration loading.

Loads settings from .env file and environment variables with sensible defaults.
Validates values and provides clear error messages.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./pgmanager.db"
DEFAULT_RENT_DUE_DAY = 5
DEV_TOKEN_SECRET = "dev-insecure-token-secret-change-me-in-production"


@dataclass
class AppConfig:
    """Configuration for the API server, CLI and services."""

    database_url: str = DEFAULT_DATABASE_URL
    """SQLAlchemy database URL (default: local SQLite)"""

    log_file: str = "logs/server.log"
    """Path to log file (default: logs/server.log)"""

    log_level: str = "INFO"
    """Root logging level name"""

    rent_due_day: int = DEFAULT_RENT_DUE_DAY
    """Day of month on which rent falls due (1..28)"""

    token_secret: str = DEV_TOKEN_SECRET
    """HS256 key used to sign principal bearer tokens (JWT)"""

    environment: str = "development"
    """Deployment environment name; "production" enforces an explicit TOKEN_SECRET"""

    api_host: str = "0.0.0.0"
    api_port: int = 8000


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def load_config() -> AppConfig:
    """
    Load configuration from .env file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (DATABASE_URL, RENT_DUE_DAY, TOKEN_SECRET, etc.)
    2. .env file in project root
    3. Default values

    Returns:
        AppConfig with all settings

    Raises:
        ValueError: If configuration is missing or invalid
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    environment = os.getenv("APP_ENV", "development").lower()
    rent_due_day = _parse_int("RENT_DUE_DAY", os.getenv("RENT_DUE_DAY", str(DEFAULT_RENT_DUE_DAY)))
    api_port = _parse_int("API_PORT", os.getenv("API_PORT", "8000"))
    token_secret = os.getenv("TOKEN_SECRET")

    # Day 29+ does not exist in every month
    if not 1 <= rent_due_day <= 28:
        raise ValueError(f"RENT_DUE_DAY must be between 1 and 28, got {rent_due_day}")

    if not token_secret:
        if environment == "production":
            raise ValueError(
                "TOKEN_SECRET not configured. "
                "Set TOKEN_SECRET environment variable or in .env file"
            )
        token_secret = DEV_TOKEN_SECRET

    return AppConfig(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        log_file=os.getenv("LOG_FILE", "logs/server.log"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        rent_due_day=rent_due_day,
        token_secret=token_secret,
        environment=environment,
        api_host=os.getenv("API_HOST", "0.0.0.0"),
        api_port=api_port,
    )


__all__ = ["AppConfig", "load_config", "DEFAULT_DATABASE_URL", "DEFAULT_RENT_DUE_DAY"]
