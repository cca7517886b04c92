"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "TestPrep API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Seed data
    # JSON file of questions and tests loaded into the in-memory stores at
    # startup; see app.services.seed for the layout.
    SEED_DATA_PATH: Optional[str] = None

    # Session timer
    # Seconds between countdown ticks. Production always ticks once per second;
    # tests shrink this to drive the auto-submit path quickly.
    TIMER_TICK_INTERVAL_SECONDS: float = Field(
        default=1.0,
        gt=0.0,
        description="Interval between countdown ticks in seconds",
    )

    # Completed sessions
    # Submitted sessions are dropped; only their result IDs are remembered so a
    # late request can be pointed at the result.
    COMPLETED_SESSION_LOOKUP_SIZE: int = Field(
        default=10000,
        ge=0,
        description="Number of submitted session IDs mapped to their result IDs",
    )

    # Scoring
    # Numeric answers are compared exactly unless a tolerance is configured.
    NUMERIC_ANSWER_TOLERANCE: float = Field(
        default=0.0,
        ge=0.0,
        description="Absolute tolerance for numeric answers (0 = exact match)",
    )

    # Performance analytics
    STRONG_ACCURACY_THRESHOLD: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Accuracy percentage at or above which a topic is a strength",
    )
    WEAK_ACCURACY_THRESHOLD: float = Field(
        default=50.0,
        ge=0.0,
        le=100.0,
        description="Accuracy percentage below which a topic is a weakness",
    )
    DEFAULT_CLASSIFICATION: str = Field(
        default="Other",
        min_length=1,
        description="Subject/topic/subtopic used when a question has no tag",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_accuracy_thresholds(self) -> Self:
        """Validate that the weak threshold does not exceed the strong threshold."""
        if self.WEAK_ACCURACY_THRESHOLD > self.STRONG_ACCURACY_THRESHOLD:
            raise ValueError(
                "WEAK_ACCURACY_THRESHOLD must not exceed STRONG_ACCURACY_THRESHOLD, "
                f"got weak={self.WEAK_ACCURACY_THRESHOLD}, "
                f"strong={self.STRONG_ACCURACY_THRESHOLD}"
            )
        return self


settings = Settings()
