"""
Configuration management for Ethos.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. Sensitive values (database URLs)
should be set via environment variables or a .env file.

Usage:
    from ethos.config import settings
    print(settings.database_url)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    database_url: str = Field(
        default="sqlite:///./ethos.db",
        description="SQLAlchemy connection URL for the tournament database",
    )

    # Pool settings are ignored for SQLite
    db_pool_size: int = Field(
        default=5,
        description="Number of connections to keep in the pool",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max additional connections beyond pool_size",
    )

    # ==========================================================================
    # Scoring Configuration
    # ==========================================================================

    default_judge_questions: int = Field(
        default=3,
        description="Judge question count (Q) when the event rubric does not set one",
    )
    default_comment_max_score: int = Field(
        default=20,
        description="Max score per judge question when the rubric does not set one",
    )
    enforce_judge_windows: bool = Field(
        default=False,
        description=(
            "Restrict judges to writing scores only inside their own question "
            "window. When False, windows are advisory and only drive auto-submission."
        ),
    )

    # ==========================================================================
    # Bye Compensation
    # ==========================================================================

    bye_default_differential: float = Field(
        default=3.0,
        description="Differential awarded to a bye team (also the floor for averaged values)",
    )
    bye_update_tolerance: float = Field(
        default=0.01,
        description="ScoreDiffLog entries are only rewritten when the value moves more than this",
    )
    system_admin_id: str = Field(
        default="system",
        description="Admin identity recorded on automatic bye adjustment logs",
    )
    system_admin_name: str = Field(
        default="System (Bye Compensation)",
        description="Admin display name recorded on automatic bye adjustment logs",
    )

    # ==========================================================================
    # Outbox
    # ==========================================================================

    outbox_batch_size: int = Field(
        default=50,
        description="Maximum pending outbox events handled per dispatch pass",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to",
    )
    api_port: int = Field(
        default=8000,
        description="Port for the API server",
    )
    api_reload: bool = Field(
        default=False,
        description="Enable auto-reload for development",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="console",
        description="Log format: 'json' for production, 'console' for dev",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return lower_v

    @field_validator("default_judge_questions")
    @classmethod
    def validate_judge_questions(cls, v: int) -> int:
        if v < 1:
            raise ValueError("default_judge_questions must be at least 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
