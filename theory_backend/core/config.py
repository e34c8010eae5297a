"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Theory Practice API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]

    # Security
    # IMPORTANT: These MUST be set in .env file - no defaults for security
    SECRET_KEY: str = Field(
        ..., description="Secret used to sign the practice session cookie (required)"
    )
    JWT_SECRET_KEY: str = Field(
        ..., description="Secret used to verify identity tokens (required)"
    )
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Practice session pointer (signed cookie holding the active test ID)
    PRACTICE_SESSION_COOKIE: str = "practice_session"
    PRACTICE_SESSION_MAX_AGE: int = 60 * 60 * 4  # 4 hours

    # Question selection
    # Answers given within this window are withheld from new tests unless the
    # matching repeat flag is set. 3 months = 90 days.
    PREVIOUS_ANSWER_WINDOW_DAYS: int = Field(default=90, ge=1)
    # When True, a question the learner has ever answered incorrectly is
    # withheld unless repeats of incorrect answers are requested, regardless
    # of when it was answered. When False, incorrect answers only count
    # inside PREVIOUS_ANSWER_WINDOW_DAYS, the same as correct answers.
    EXCLUDE_ALL_TIME_INCORRECT: bool = True
    # Skip questions whose audio extract is already used in the same test
    AVOID_REPEATED_EXTRACTS: bool = False

    # Test sizing
    TEST_MIN_QUESTIONS: int = Field(default=5, ge=1)
    TEST_MAX_QUESTIONS: int = Field(default=50, ge=1)
    PRACTICE_QUESTION_COUNTS: List[int] = [5, 10, 15, 20, 25]
    # Practice tests with a time limit get this many seconds per question
    PRACTICE_SECONDS_PER_QUESTION: int = Field(default=60, ge=1)
    RECENT_ANSWERS_LIMIT: int = 20

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_test_sizing(self) -> Self:
        """Validate question count bounds and practice choices."""
        if self.TEST_MIN_QUESTIONS > self.TEST_MAX_QUESTIONS:
            raise ValueError(
                f"TEST_MIN_QUESTIONS ({self.TEST_MIN_QUESTIONS}) must not exceed "
                f"TEST_MAX_QUESTIONS ({self.TEST_MAX_QUESTIONS})"
            )
        if not self.PRACTICE_QUESTION_COUNTS:
            raise ValueError("PRACTICE_QUESTION_COUNTS must not be empty")
        out_of_range = [
            count
            for count in self.PRACTICE_QUESTION_COUNTS
            if not self.TEST_MIN_QUESTIONS <= count <= self.TEST_MAX_QUESTIONS
        ]
        if out_of_range:
            raise ValueError(
                f"PRACTICE_QUESTION_COUNTS outside "
                f"{self.TEST_MIN_QUESTIONS}-{self.TEST_MAX_QUESTIONS}: {out_of_range}"
            )
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
