"""
Configuration settings for the revision engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".revision_engine",
        description="Directory holding the JSON key-value buckets",
    )
    max_attempts: int = Field(
        default=50,
        ge=1,
        description="Maximum number of quiz attempts kept in the attempt log",
    )

    # ========================================
    # Focus time estimate
    # ========================================
    practice_seconds_per_question: int = Field(
        default=45,
        description="Estimated seconds per question in Practice mode",
    )
    timed_seconds_per_question: int = Field(
        default=60,
        description="Estimated seconds per question in Timed mode",
    )
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used for calendar-day bucketing",
    )

    # ========================================
    # Mastery and weak-topic thresholds
    # ========================================
    mastery_min_samples: int = Field(
        default=3,
        description="Topics below this many graded questions are not ranked",
    )
    mastery_full_coverage: int = Field(
        default=20,
        description="Graded questions at which the coverage discount disappears",
    )
    weak_min_samples: int = Field(
        default=5,
        description="Minimum graded questions for the accuracy and slowness rules",
    )
    weak_accuracy_below: int = Field(
        default=60,
        description="Accuracy strictly below this flags a topic as weak",
    )
    weak_slow_seconds: int = Field(
        default=60,
        description="Average seconds per question strictly above this flags a topic as slow",
    )
    weak_wrong_count: int = Field(
        default=3,
        description="Wrong answers at or above this flag a topic as weak",
    )

    # ========================================
    # Quiz generation backend
    # ========================================
    quiz_api_url: str = Field(
        default="http://localhost:5001/api",
        description="Base URL of the quiz generation backend",
    )
    quiz_api_timeout_ms: int = Field(
        default=600000,
        description="Quiz generation request timeout in milliseconds",
    )
    quiz_api_retry_attempts: int = Field(
        default=2,
        ge=1,
        description="Attempts on timeout or 5xx before giving up",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Log level for the CLI sink",
    )

    def get_stats_config(self) -> dict[str, Any]:
        """Get StatsAggregator keyword arguments."""
        return {
            "practice_seconds": self.practice_seconds_per_question,
            "timed_seconds": self.timed_seconds_per_question,
            "timezone": self.timezone,
        }

    def get_mastery_config(self) -> dict[str, Any]:
        """Get MasteryClassifier keyword arguments."""
        return {
            "min_samples": self.mastery_min_samples,
            "full_coverage": self.mastery_full_coverage,
            "weak_min_samples": self.weak_min_samples,
            "weak_accuracy_below": self.weak_accuracy_below,
            "weak_slow_seconds": self.weak_slow_seconds,
            "weak_wrong_count": self.weak_wrong_count,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
