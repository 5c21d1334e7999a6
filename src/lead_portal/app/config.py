"""Application configuration via Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Resolve .env from the project root regardless of CWD
_ENV_FILE = Path(__file__).resolve().parents[3] / ".env"


class Settings(BaseSettings):
    """Central configuration loaded from environment variables / .env file."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./lead_portal.db"

    # CORS / Frontend
    cors_origins: str = "http://localhost:5173"

    # Logging: empty means INFO in debug mode, WARNING otherwise
    log_level: str = ""

    # General
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list.

        In debug mode, returns ["*"] to allow any origin.
        """
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def resolved_log_level(self) -> int:
        """Numeric logging level, honouring an explicit LOG_LEVEL override."""
        if self.log_level:
            level = logging.getLevelName(self.log_level.strip().upper())
            if isinstance(level, int):
                return level
        return logging.INFO if self.debug else logging.WARNING


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
