"""
Configuration settings for the flashdeck review engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

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
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///flashdeck.db",
        description="SQLAlchemy connection string (SQLite or PostgreSQL)",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Memory Model / Scheduling
    # ========================================
    desired_retention: float = Field(
        default=0.9,
        gt=0.0,
        lt=1.0,
        description="Target retrievability at which a card becomes due",
    )
    max_interval_days: int = Field(
        default=36500,
        ge=1,
        description="Ceiling on any scheduled interval (days)",
    )
    relearn_interval_days: int = Field(
        default=1,
        ge=0,
        description="Interval after a lapse, regardless of stability",
    )

    # ========================================
    # Study Queue
    # ========================================
    max_new_cards: int = Field(
        default=5,
        ge=0,
        description="Maximum never-reviewed cards added to one queue",
    )
    default_session_size: int = Field(
        default=10,
        ge=1,
        description="Queue size used when the caller passes no limit",
    )
    max_queue_size: int = Field(
        default=200,
        ge=1,
        description="Largest limit a caller may request",
    )
    shuffle_new_cards: bool = Field(
        default=False,
        description="Shuffle new cards instead of keeping deck order",
    )

    # ========================================
    # Quiz Synthesis
    # ========================================
    quiz_true_probability: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Probability a true/false item shows the card's own answer",
    )
    quiz_max_distractors: int = Field(
        default=3,
        ge=2,
        description="Distractors drawn for a synthesized multiple-choice item",
    )
    quiz_seed: int | None = Field(
        default=None,
        description="Seed for quiz randomness (None for a fresh seed per process)",
    )
    quiz_sibling_limit: int = Field(
        default=200,
        ge=1,
        description="Deck cards considered as distractor sources",
    )

    # ========================================
    # Load Warnings
    # ========================================
    load_floor: int = Field(
        default=50,
        description="Daily reviews above which a spike warning may fire",
    )
    load_ceiling: int = Field(
        default=100,
        description="Daily reviews at which a warning always fires",
    )
    load_ratio: float = Field(
        default=1.5,
        description="Multiple of the 7-day average that counts as a spike",
    )

    # ========================================
    # Grading
    # ========================================
    session_minimum_reviews: int = Field(
        default=1,
        ge=1,
        description="Reviews needed before a session gets a letter grade",
    )
    deck_minimum_reviews: int = Field(
        default=10,
        ge=1,
        description="Reviews needed before a deck gets a letter grade",
    )
    deck_recent_reviews: int = Field(
        default=30,
        ge=1,
        description="Most recent reviews used to grade a deck",
    )

    # ========================================
    # Concurrency
    # ========================================
    conflict_retries: int = Field(
        default=2,
        ge=0,
        description="Retries after a concurrent update to the same memory state",
    )

    def get_queue_config(self) -> dict[str, int | bool]:
        """Get study queue configuration as a dictionary."""
        return {
            "max_new_cards": self.max_new_cards,
            "default_session_size": self.default_session_size,
            "max_queue_size": self.max_queue_size,
            "shuffle_new_cards": self.shuffle_new_cards,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
