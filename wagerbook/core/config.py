"""
Application configuration with environment-specific settings.

Supported environment files (loaded in order of precedence):
1. .env.{ENVIRONMENT} (e.g., .env.production, .env.development)
2. .env (fallback)

Required secrets for production:
- DATABASE_URL
- THE_ODDS_API_KEY (odds provider candidates are skipped without it)
"""
import os
import logging
from pathlib import Path
from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import ConfigDict

# Get the project root directory (2 levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent

DEFAULT_DATABASE_URL = "sqlite:///./wagerbook.db"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment-specific configuration."""

    # Environment
    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    model_config = ConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Allow extra fields from .env
    )

    # Application
    APP_NAME: str = "Wagerbook"
    APP_VERSION: str = "1.0.0"

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # League calendar
    CURRENT_SEASON: int = 2025

    # Scores provider (ESPN public API)
    ESPN_BASE_URL: str = "https://site.api.espn.com/apis/site/v2/sports/football/nfl"

    # Odds provider (The Odds API)
    THE_ODDS_API_KEY: str = ""
    ODDS_API_BASE_URL: str = "https://api.the-odds-api.com/v4"
    ODDS_API_SPORT_KEY: str = "americanfootball_nfl"
    ODDS_API_REGIONS: str = "us"

    HTTP_TIMEOUT: float = 30.0

    # Identity resolution thresholds (0-100)
    MATCH_MIN_CONFIDENCE: int = 70
    MATCH_FALLBACK_MIN_CONFIDENCE: int = 60

    # Settlement
    SETTLEMENT_PUSH_POLICY: Literal["loss", "push"] = "loss"

    # Group members - comma-separated string for env var parsing
    GROUP_MEMBERS_STR: str = "will,dio,rosen,charlie"

    # Scheduler
    REPAIR_CRON_HOUR: int = 6  # Eastern
    SETTLE_INTERVAL_MINUTES: int = 30

    @property
    def GROUP_MEMBERS(self) -> list[str]:
        """Get group member ids, lowercased."""
        return [m.strip().lower() for m in self.GROUP_MEMBERS_STR.split(",") if m.strip()]

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    def validate_required_secrets(self) -> list[str]:
        """
        Validate that required secrets are set for the current environment.

        Returns:
            List of missing secret names (empty if all present)
        """
        missing = []

        if self.is_production() and self.DATABASE_URL == DEFAULT_DATABASE_URL:
            missing.append("DATABASE_URL")

        if self.is_production() and not self.THE_ODDS_API_KEY:
            missing.append("THE_ODDS_API_KEY")

        return missing


def _load_env_file() -> Path:
    """
    Load the appropriate environment file based on ENVIRONMENT variable.

    Loads in order of precedence:
    1. .env.{ENVIRONMENT} (e.g., .env.production, .env.development)
    2. .env (fallback)
    """
    environment = os.getenv("ENVIRONMENT", "development")

    env_file = PROJECT_ROOT / f".env.{environment}"
    if env_file.exists():
        logger.info(f"Loading environment from {env_file.name}")
        return env_file

    default_env = PROJECT_ROOT / ".env"
    if default_env.exists():
        logger.info(f"Loading environment from .env (environment: {environment})")
        return default_env

    logger.debug(f"No environment file found for '{environment}' (checked .env.{environment}, .env)")
    return default_env


_env_file = _load_env_file()


class _SettingsWithEnvFile(Settings):
    model_config = ConfigDict(
        env_file=str(_env_file),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


settings = _SettingsWithEnvFile()

# Validate secrets on startup
missing_secrets = settings.validate_required_secrets()
if missing_secrets:
    logger.warning(f"Missing required secrets for {settings.ENVIRONMENT}: {', '.join(missing_secrets)}")
    if settings.is_production():
        raise ValueError(
            f"Cannot start in production with missing secrets: {', '.join(missing_secrets)}. "
            f"Please set these environment variables in .env.production"
        )
