"""
SQLAlchemy models for the review engine.

Tables:
- cards: deck cards with type-specific fields (choices as JSON)
- memory_states: current memory per (learner, card), versioned
- reviews: append-only review log
- study_sessions: session bookkeeping
- deck_scores: recomputed d7/d30/d90 windows per (learner, deck)

Column types are portable between SQLite and PostgreSQL.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all tables."""


class CardRecord(Base):
    """A card; ``card_type`` selects which optional columns are meaningful."""

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    deck_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    card_type: Mapped[str] = mapped_column(String(32), nullable=False, default="basic")
    front: Mapped[str] = mapped_column(Text, nullable=False)
    back: Mapped[str | None] = mapped_column(Text)
    choices: Mapped[list | None] = mapped_column(JSON)  # [{"text": ..., "is_correct": ...}]
    explanation: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    mnemonic: Mapped[str | None] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (Index("idx_cards_deck_position", "deck_id", "position"),)

    def __repr__(self) -> str:
        return f"<CardRecord id={self.id} deck={self.deck_id} type={self.card_type}>"


class MemoryStateRecord(Base):
    """Current memory state; ``version`` increments on every write."""

    __tablename__ = "memory_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    card_id: Mapped[str] = mapped_column(ForeignKey("cards.id", ondelete="CASCADE"), nullable=False)
    stability: Mapped[float] = mapped_column(Float, nullable=False)
    difficulty: Mapped[float] = mapped_column(Float, nullable=False)
    interval_days: Mapped[int] = mapped_column(Integer, nullable=False)
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reviewed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reps: Mapped[int] = mapped_column(Integer, default=1)
    lapses: Mapped[int] = mapped_column(Integer, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("learner_id", "card_id", name="uq_memory_state_learner_card"),
        Index("idx_memory_state_due", "learner_id", "due_at"),
    )

    def __repr__(self) -> str:
        return f"<MemoryStateRecord learner={self.learner_id} card={self.card_id} v{self.version}>"


class ReviewRecord(Base):
    """One review; never updated."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    card_id: Mapped[str] = mapped_column(ForeignKey("cards.id", ondelete="CASCADE"), nullable=False)
    deck_id: Mapped[str] = mapped_column(String(64), nullable=False)
    session_id: Mapped[str | None] = mapped_column(ForeignKey("study_sessions.id", ondelete="SET NULL"))
    rating: Mapped[str] = mapped_column(String(16), nullable=False)
    scheduled_for: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    interval_days: Mapped[int] = mapped_column(Integer, nullable=False)
    stability: Mapped[float] = mapped_column(Float, nullable=False)
    difficulty: Mapped[float] = mapped_column(Float, nullable=False)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        Index("idx_reviews_learner_deck_time", "learner_id", "deck_id", "reviewed_at"),
        Index("idx_reviews_session", "session_id"),
        Index("idx_reviews_card", "learner_id", "card_id"),
    )


class SessionRecord(Base):
    """A study session."""

    __tablename__ = "study_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    deck_id: Mapped[str] = mapped_column(String(64), nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    seconds_active: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (Index("idx_sessions_learner_deck", "learner_id", "deck_id", "started_at"),)


class DeckScoreRecord(Base):
    """One recomputed score window."""

    __tablename__ = "deck_scores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    deck_id: Mapped[str] = mapped_column(String(64), nullable=False)
    score_window: Mapped[str] = mapped_column(String(8), nullable=False)  # d7 | d30 | d90
    accuracy_pct: Mapped[float] = mapped_column(Float, default=0.0)
    stability_avg: Mapped[float] = mapped_column(Float, default=0.0)
    lapses: Mapped[int] = mapped_column(Integer, default=0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("learner_id", "deck_id", "score_window", name="uq_deck_score_window"),
    )
