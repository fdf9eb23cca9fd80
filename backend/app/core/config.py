"""
config.py — Centralized Application Configuration Loader

Purpose:
- Define a single source of truth for application settings.
- Load and validate environment variables from `.env` or OS environment.

Covers:
- Logging level and CORS origins for the API process
- Simulated latency for the stand-in pipeline stage functions
- Polling cadence for clients following an analysis

This module does NOT:
- Start the pipeline or touch the analysis store.
- Make external API calls.
- Modify runtime settings.
"""

from pathlib import Path
from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/app/core/config.py
# .env should be at: backend/.env
_CONFIG_DIR = Path(__file__).parent  # backend/app/core
_BACKEND_DIR = _CONFIG_DIR.parent.parent  # backend
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    _ENV_FILE_PATH = str(_ENV_FILE.resolve())
else:
    # Fallback: use relative path (pydantic will look in CWD)
    _ENV_FILE_PATH = ".env"


class Settings(BaseSettings):
    """
    Settings container for the analysis backend.

    Everything is held in-process: the analysis store lives for the
    lifetime of the server and nothing is persisted to disk.
    """
    APP_NAME: str = Field(
        "Repository Valuation Backend",
        description="Title reported by the FastAPI application",
    )
    LOG_LEVEL: str = Field(
        "INFO",
        description="Root log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    CORS_ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API from a browser",
    )

    # Pipeline
    STAGE_DELAY_SECONDS: float = Field(
        2.0,
        description="Simulated latency of each stand-in stage function (seconds)",
    )

    # Client sync (polling)
    ANALYSIS_API_BASE_URL: str = Field(
        "http://localhost:8000/api/v1",
        description="Base URL used by the polling client",
    )
    ANALYSIS_POLL_INTERVAL_SECONDS: float = Field(
        2.0,
        description="Delay between two fetches while an analysis is running",
    )
    ANALYSIS_POLL_TIMEOUT_SECONDS: float = Field(
        120.0,
        description="Give up polling after this many seconds",
    )
    HTTP_TIMEOUT_SECONDS: int = Field(
        30,
        description="HTTP timeout for client requests (seconds)",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Upper-case and strip the configured level."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator(
        "STAGE_DELAY_SECONDS",
        "ANALYSIS_POLL_INTERVAL_SECONDS",
        "ANALYSIS_POLL_TIMEOUT_SECONDS",
    )
    @classmethod
    def non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Singleton pattern — settings imported anywhere will reference same object.
settings = Settings()
