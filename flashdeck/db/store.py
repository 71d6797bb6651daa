"""
SQL Store: SQLAlchemy implementation of the repository protocols.

Every public method runs in its own transaction. Database failures are
logged and re-raised as InternalError; a lost optimistic-version race on a
memory state is raised as ConflictError.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator, Iterable, Sequence
from contextlib import contextmanager
from datetime import datetime

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from flashdeck.core.cards import Card, card_from_dict, card_to_dict
from flashdeck.core.errors import ConflictError, FlashdeckError, InternalError
from flashdeck.core.models import (
    DeckScore,
    MemoryState,
    Rating,
    Review,
    ScoreWindow,
    StudySession,
    as_utc,
)
from flashdeck.db.database import Database
from flashdeck.db.models import (
    CardRecord,
    DeckScoreRecord,
    MemoryStateRecord,
    ReviewRecord,
    SessionRecord,
)


# =============================================================================
# Row <-> record conversion
# =============================================================================


def _card(row: CardRecord) -> Card:
    return card_from_dict({
        "id": row.id,
        "deck_id": row.deck_id,
        "type": row.card_type,
        "front": row.front,
        "back": row.back,
        "choices": row.choices,
        "explanation": row.explanation,
        "notes": row.notes,
        "mnemonic": row.mnemonic,
        "position": row.position,
    })


def _state(row: MemoryStateRecord) -> MemoryState:
    return MemoryState(
        learner_id=row.learner_id,
        card_id=row.card_id,
        stability=row.stability,
        difficulty=row.difficulty,
        interval_days=row.interval_days,
        due_at=as_utc(row.due_at),
        reviewed_at=as_utc(row.reviewed_at),
        reps=row.reps,
        lapses=row.lapses,
        version=row.version,
    )


def _review(row: ReviewRecord) -> Review:
    return Review(
        id=row.id,
        learner_id=row.learner_id,
        card_id=row.card_id,
        deck_id=row.deck_id,
        session_id=row.session_id,
        rating=Rating(row.rating),
        scheduled_for=as_utc(row.scheduled_for) if row.scheduled_for else None,
        reviewed_at=as_utc(row.reviewed_at),
        interval_days=row.interval_days,
        stability=row.stability,
        difficulty=row.difficulty,
        time_spent_seconds=row.time_spent_seconds or 0,
    )


def _session(row: SessionRecord) -> StudySession:
    return StudySession(
        id=row.id,
        learner_id=row.learner_id,
        deck_id=row.deck_id,
        started_at=as_utc(row.started_at),
        ended_at=as_utc(row.ended_at) if row.ended_at else None,
        seconds_active=row.seconds_active or 0,
    )


def _deck_score(row: DeckScoreRecord) -> DeckScore:
    return DeckScore(
        learner_id=row.learner_id,
        deck_id=row.deck_id,
        window=ScoreWindow(row.score_window),
        accuracy_pct=row.accuracy_pct,
        stability_avg=row.stability_avg,
        lapses=row.lapses,
        review_count=row.review_count,
        updated_at=as_utc(row.updated_at),
    )


class SqlStore:
    """Card, memory state, review, session and deck score store."""

    def __init__(self, db: Database):
        self.db = db

    @contextmanager
    def _transaction(self, action: str) -> Generator[Session, None, None]:
        try:
            with self.db.session_scope() as session:
                yield session
        except FlashdeckError:
            raise
        except SQLAlchemyError as exc:
            logger.exception(f"Store failure during {action}")
            raise InternalError() from exc

    # =========================================================================
    # Cards
    # =========================================================================

    def add_cards(self, cards: Iterable[Card]) -> int:
        """Insert or replace cards. Returns the number written."""
        count = 0
        with self._transaction("add_cards") as session:
            for card in cards:
                data = card_to_dict(card)
                session.merge(CardRecord(
                    id=data["id"],
                    deck_id=data["deck_id"],
                    card_type=data["type"],
                    front=data["front"],
                    back=data["back"],
                    choices=data.get("choices"),
                    explanation=data["explanation"],
                    notes=data["notes"],
                    mnemonic=data["mnemonic"],
                    position=data["position"],
                ))
                count += 1
        logger.info(f"Stored {count} cards")
        return count

    def get_card(self, card_id: str) -> Card | None:
        with self._transaction("get_card") as session:
            row = session.get(CardRecord, card_id)
            return _card(row) if row else None

    def deck_exists(self, deck_id: str) -> bool:
        with self._transaction("deck_exists") as session:
            found = session.scalar(select(CardRecord.id).where(CardRecord.deck_id == deck_id).limit(1))
            return found is not None

    def list_deck_cards(self, deck_id: str, limit: int | None = None) -> list[Card]:
        stmt = (
            select(CardRecord)
            .where(CardRecord.deck_id == deck_id)
            .order_by(CardRecord.position, CardRecord.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._transaction("list_deck_cards") as session:
            return [_card(row) for row in session.scalars(stmt)]

    # =========================================================================
    # Memory states
    # =========================================================================

    def get_state(self, learner_id: str, card_id: str) -> MemoryState | None:
        stmt = select(MemoryStateRecord).where(
            MemoryStateRecord.learner_id == learner_id,
            MemoryStateRecord.card_id == card_id,
        )
        with self._transaction("get_state") as session:
            row = session.scalar(stmt)
            return _state(row) if row else None

    def list_deck_states(self, learner_id: str, deck_id: str) -> list[MemoryState]:
        stmt = (
            select(MemoryStateRecord)
            .join(CardRecord, CardRecord.id == MemoryStateRecord.card_id)
            .where(MemoryStateRecord.learner_id == learner_id, CardRecord.deck_id == deck_id)
        )
        with self._transaction("list_deck_states") as session:
            return [_state(row) for row in session.scalars(stmt)]

    def list_due_states(self, learner_id: str, deck_id: str, now: datetime, limit: int) -> list[MemoryState]:
        stmt = (
            select(MemoryStateRecord)
            .join(CardRecord, CardRecord.id == MemoryStateRecord.card_id)
            .where(
                MemoryStateRecord.learner_id == learner_id,
                CardRecord.deck_id == deck_id,
                MemoryStateRecord.due_at <= as_utc(now),
            )
            .order_by(MemoryStateRecord.due_at, MemoryStateRecord.card_id)
            .limit(limit)
        )
        with self._transaction("list_due_states") as session:
            return [_state(row) for row in session.scalars(stmt)]

    def save_review(self, state: MemoryState, review: Review, expected_version: int | None) -> MemoryState:
        values = {
            "stability": state.stability,
            "difficulty": state.difficulty,
            "interval_days": state.interval_days,
            "due_at": as_utc(state.due_at),
            "reviewed_at": as_utc(state.reviewed_at),
            "reps": state.reps,
            "lapses": state.lapses,
        }
        new_version = (expected_version or 0) + 1

        with self._transaction("save_review") as session:
            if expected_version is None:
                session.add(MemoryStateRecord(
                    learner_id=state.learner_id,
                    card_id=state.card_id,
                    version=new_version,
                    **values,
                ))
                try:
                    session.flush()
                except IntegrityError:
                    raise ConflictError(
                        f"Memory state for card {state.card_id} was created concurrently",
                        {"card_id": state.card_id},
                    ) from None
            else:
                result = session.execute(
                    update(MemoryStateRecord)
                    .where(
                        MemoryStateRecord.learner_id == state.learner_id,
                        MemoryStateRecord.card_id == state.card_id,
                        MemoryStateRecord.version == expected_version,
                    )
                    .values(version=new_version, **values)
                )
                if result.rowcount != 1:
                    raise ConflictError(
                        f"Memory state for card {state.card_id} changed during review",
                        {"card_id": state.card_id, "expected_version": expected_version},
                    )

            session.add(ReviewRecord(
                learner_id=review.learner_id,
                card_id=review.card_id,
                deck_id=review.deck_id,
                session_id=review.session_id,
                rating=review.rating.value,
                scheduled_for=as_utc(review.scheduled_for) if review.scheduled_for else None,
                reviewed_at=as_utc(review.reviewed_at),
                interval_days=review.interval_days,
                stability=review.stability,
                difficulty=review.difficulty,
                time_spent_seconds=review.time_spent_seconds,
            ))

            if review.session_id is not None and review.time_spent_seconds:
                # Increment in SQL; concurrent reviews in one session must not overwrite each other
                session.execute(
                    update(SessionRecord)
                    .where(SessionRecord.id == review.session_id)
                    .values(seconds_active=func.coalesce(SessionRecord.seconds_active, 0) + review.time_spent_seconds)
                )

        state.version = new_version
        return state

    # =========================================================================
    # Reviews
    # =========================================================================

    @staticmethod
    def _review_filters(
        learner_id: str | None,
        deck_id: str | None = None,
        card_id: str | None = None,
        session_id: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list:
        filters = []
        if learner_id is not None:
            filters.append(ReviewRecord.learner_id == learner_id)
        if deck_id is not None:
            filters.append(ReviewRecord.deck_id == deck_id)
        if card_id is not None:
            filters.append(ReviewRecord.card_id == card_id)
        if session_id is not None:
            filters.append(ReviewRecord.session_id == session_id)
        if since is not None:
            filters.append(ReviewRecord.reviewed_at >= as_utc(since))
        if until is not None:
            filters.append(ReviewRecord.reviewed_at <= as_utc(until))
        return filters

    def list_reviews(
        self,
        learner_id: str | None = None,
        *,
        deck_id: str | None = None,
        card_id: str | None = None,
        session_id: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[Review]:
        stmt = (
            select(ReviewRecord)
            .where(*self._review_filters(learner_id, deck_id, card_id, session_id, since, until))
            .order_by(ReviewRecord.reviewed_at.desc(), ReviewRecord.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._transaction("list_reviews") as session:
            return [_review(row) for row in session.scalars(stmt)]

    def count_reviews(
        self,
        learner_id: str,
        *,
        deck_id: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> int:
        stmt = select(func.count(ReviewRecord.id)).where(
            *self._review_filters(learner_id, deck_id, since=since, until=until)
        )
        with self._transaction("count_reviews") as session:
            return session.scalar(stmt) or 0

    def count_distinct_cards(
        self,
        learner_id: str,
        deck_id: str | None = None,
        *,
        session_id: str | None = None,
    ) -> int:
        stmt = select(func.count(func.distinct(ReviewRecord.card_id))).where(
            *self._review_filters(learner_id, deck_id, session_id=session_id)
        )
        with self._transaction("count_distinct_cards") as session:
            return session.scalar(stmt) or 0

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, learner_id: str, deck_id: str, started_at: datetime) -> StudySession:
        row = SessionRecord(
            id=str(uuid.uuid4()),
            learner_id=learner_id,
            deck_id=deck_id,
            started_at=as_utc(started_at),
            seconds_active=0,
        )
        with self._transaction("create_session") as session:
            session.add(row)
            session.flush()
            return _session(row)

    def get_session(self, session_id: str) -> StudySession | None:
        with self._transaction("get_session") as session:
            row = session.get(SessionRecord, session_id)
            return _session(row) if row else None

    def update_session(self, study_session: StudySession) -> StudySession:
        with self._transaction("update_session") as session:
            row = session.get(SessionRecord, study_session.id)
            if row is None:
                raise InternalError(f"Session {study_session.id} disappeared during update")
            row.ended_at = as_utc(study_session.ended_at) if study_session.ended_at else None
            row.seconds_active = study_session.seconds_active
            return _session(row)

    def count_sessions(self, learner_id: str, deck_id: str) -> int:
        stmt = select(func.count(SessionRecord.id)).where(
            SessionRecord.learner_id == learner_id, SessionRecord.deck_id == deck_id
        )
        with self._transaction("count_sessions") as session:
            return session.scalar(stmt) or 0

    def last_session(self, learner_id: str, deck_id: str) -> StudySession | None:
        stmt = (
            select(SessionRecord)
            .where(SessionRecord.learner_id == learner_id, SessionRecord.deck_id == deck_id)
            .order_by(SessionRecord.started_at.desc())
            .limit(1)
        )
        with self._transaction("last_session") as session:
            row = session.scalar(stmt)
            return _session(row) if row else None

    # =========================================================================
    # Deck scores
    # =========================================================================

    def save_deck_scores(self, scores: Sequence[DeckScore]) -> None:
        with self._transaction("save_deck_scores") as session:
            for score in scores:
                row = session.scalar(select(DeckScoreRecord).where(
                    DeckScoreRecord.learner_id == score.learner_id,
                    DeckScoreRecord.deck_id == score.deck_id,
                    DeckScoreRecord.score_window == score.window.value,
                ))
                if row is None:
                    row = DeckScoreRecord(
                        learner_id=score.learner_id,
                        deck_id=score.deck_id,
                        score_window=score.window.value,
                    )
                    session.add(row)
                row.accuracy_pct = score.accuracy_pct
                row.stability_avg = score.stability_avg
                row.lapses = score.lapses
                row.review_count = score.review_count
                row.updated_at = as_utc(score.updated_at)

    def list_deck_scores(self, learner_id: str, deck_id: str) -> list[DeckScore]:
        stmt = select(DeckScoreRecord).where(
            DeckScoreRecord.learner_id == learner_id, DeckScoreRecord.deck_id == deck_id
        )
        order = {window.value: index for index, window in enumerate(ScoreWindow)}
        with self._transaction("list_deck_scores") as session:
            rows = sorted(session.scalars(stmt), key=lambda row: order[row.score_window])
            return [_deck_score(row) for row in rows]
