"""
Triage Configuration Management

Centralized, environment-driven configuration for the triage pipeline.
Values are read from the process environment and an optional ``.env`` file,
validated once at startup, and handed to components explicitly through the
triage session rather than read from globals.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class EnvironmentType(str, Enum):
    """Valid environment types for configuration context."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class TriageSettings(BaseSettings):
    """
    Settings for the mailbox, classification provider, queue and pipeline limits.

    Secrets are held as ``SecretStr`` so they never end up in logs or reprs.
    """
    # Environment Configuration
    ENVIRONMENT: EnvironmentType = Field(
        default=EnvironmentType.DEVELOPMENT,
        description="Runtime environment context"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )
    LOG_FILE: Optional[str] = Field(
        default="logs/inbox_triage.log",
        description="Log file path; empty disables file logging"
    )

    # Classification provider
    COHERE_API_KEY: SecretStr = Field(
        ...,
        description="Bearer token for the text-generation endpoint"
    )
    COHERE_API_URL: str = Field(
        default="https://api.cohere.ai/v1/generate",
        description="Text-generation endpoint"
    )
    COHERE_MODEL: str = Field(
        default="command-light",
        description="Model used for intent classification"
    )
    CLASSIFIER_MAX_TOKENS: int = Field(
        default=10,
        description="Maximum tokens generated per classification"
    )
    CLASSIFIER_TEMPERATURE: float = Field(
        default=0.5,
        description="Sampling temperature for classification"
    )
    RATE_LIMIT_COOLDOWN_SECONDS: float = Field(
        default=60.0,
        description="Fixed cooldown after a rate-limit response"
    )
    RATE_LIMIT_MAX_ATTEMPTS: int = Field(
        default=5,
        description="Maximum classification attempts while rate limited"
    )

    # Pipeline limits
    TRIAGE_CONCURRENCY: int = Field(
        default=5,
        description="Maximum messages triaged concurrently in one pass"
    )
    UNREAD_MAX_RESULTS: int = Field(
        default=100,
        description="Maximum unread message ids listed per pass"
    )
    POLL_INTERVAL_SECONDS: float = Field(
        default=120.0,
        description="Interval between triage passes in run mode"
    )

    # Mailbox provider
    GOOGLE_CLIENT_ID: str = Field(
        ...,
        description="OAuth client id"
    )
    GOOGLE_CLIENT_SECRET: SecretStr = Field(
        ...,
        description="OAuth client secret"
    )
    GOOGLE_REFRESH_TOKEN: SecretStr = Field(
        ...,
        description="Stored refresh token for the mailbox owner"
    )
    GOOGLE_TOKEN_URI: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="OAuth token endpoint"
    )

    # Processing queue
    REDIS_URL: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for the processing queue"
    )
    QUEUE_NAME: str = Field(
        default="emailQueue",
        description="Name of the processing queue"
    )
    QUEUE_KEY_PREFIX: str = Field(
        default="inbox_triage:",
        description="Prefix for Redis keys"
    )
    JOB_NAME: str = Field(
        default="processEmail",
        description="Job type used for every processing job"
    )
    QUEUE_BLOCK_MS: int = Field(
        default=5000,
        description="Blocking read timeout for the consumer"
    )
    QUEUE_CLAIM_IDLE_MS: int = Field(
        default=60000,
        description="Idle time before an unacknowledged job is re-delivered"
    )

    @field_validator(
        "CLASSIFIER_MAX_TOKENS",
        "RATE_LIMIT_COOLDOWN_SECONDS",
        "TRIAGE_CONCURRENCY",
        "UNREAD_MAX_RESULTS",
        "POLL_INTERVAL_SECONDS",
        "QUEUE_BLOCK_MS",
        "QUEUE_CLAIM_IDLE_MS",
    )
    @classmethod
    def validate_positive(cls, value):
        """Reject zero and negative limits."""
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    @field_validator("RATE_LIMIT_MAX_ATTEMPTS")
    @classmethod
    def validate_max_attempts(cls, value: int) -> int:
        """Keep the rate-limit retry loop bounded."""
        if not 1 <= value <= 100:
            raise ValueError("RATE_LIMIT_MAX_ATTEMPTS must be between 1 and 100")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Upper-case the configured level name."""
        return value.upper()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }


def get_settings(**overrides) -> TriageSettings:
    """
    Load and validate triage settings.

    Keyword overrides take precedence over the environment, which is how
    tests and the command line inject values.

    Raises:
        ValidationError: If configuration fails validation
    """
    return TriageSettings(**overrides)
