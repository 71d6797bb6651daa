"""
Study Service - the operations exposed to the web/API layer.

Provides:
- submit_review: apply a rating, persist the new memory state and review
- get_queue: due + new cards for study mode, or quiz items for quiz mode
- get_session_performance / get_deck_performance: graded summaries
- start_session / end_session: study session bookkeeping
- refresh_deck_scores / get_deck_scores: d7/d30/d90 windows
- get_card_performance: per-card easy/medium/hard labels
- submit_quiz_answer: check a quiz answer and record it as a review
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from loguru import logger

from config import Settings, get_settings
from flashdeck.core.cards import Card
from flashdeck.core.errors import ConflictError, NotFoundError, ValidationError
from flashdeck.core.models import DeckScore, Rating, Review, ScoreWindow, StudySession, as_utc, utcnow
from flashdeck.core.ports import CardStore, DeckScoreStore, MemoryStateStore, ReviewStore, SessionStore
from flashdeck.quiz.answers import AnswerResult, check_answer
from flashdeck.quiz.items import QuizItem
from flashdeck.quiz.synthesizer import QuizConfig, QuizItemSynthesizer
from flashdeck.scheduling.memory_model import MemoryModel
from flashdeck.scheduling.queue_builder import QueueBuilder, QueueConfig
from flashdeck.scheduling.scheduler import ReviewScheduler, SchedulerConfig
from flashdeck.study.load_monitor import LoadConfig, LoadMonitor, LoadWarning
from flashdeck.study.scoring import (
    CardPerformance,
    GradeConfig,
    ScoreAggregator,
    card_performance,
    compute_deck_scores,
)

QUEUE_MODES = ("study", "quiz")


@dataclass
class ReviewOutcome:
    """Result of one submitted review."""

    card_id: str
    rating: Rating
    interval_days: int
    next_due_at: datetime
    stability: float
    difficulty: float
    retrievability: float


@dataclass
class QueueStats:
    due: int
    new: int
    total: int


@dataclass
class QueueResult:
    """Queue contents plus counts and an optional load warning."""

    mode: str
    items: list[Card] | list[QuizItem]
    stats: QueueStats
    warning: LoadWarning | None = None


@dataclass
class SessionPerformance:
    """Graded summary of one study session."""

    session_id: str
    grade: str | None
    success_rate: float | None
    cards_reviewed: int
    seconds_active: int


@dataclass
class DeckPerformance:
    """Graded summary of a learner's recent history in a deck."""

    deck_id: str
    grade: str | None
    success_rate: float | None
    total_cards_reviewed: int
    total_sessions: int
    recent_reviews: int
    last_study_date: datetime | None = None
    session: SessionPerformance | None = None


@dataclass
class Collaborators:
    """The stores the service reads and writes."""

    cards: CardStore
    states: MemoryStateStore
    reviews: ReviewStore
    sessions: SessionStore
    scores: DeckScoreStore

    @classmethod
    def from_store(cls, store: Any) -> Collaborators:
        """Use one object that implements every protocol (e.g. SqlStore)."""
        return cls(cards=store, states=store, reviews=store, sessions=store, scores=store)


class StudyService:
    """Facade over scheduling, queueing, quiz synthesis and grading."""

    def __init__(
        self,
        stores: Collaborators,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        self.settings = settings or get_settings()
        self.stores = stores
        self.rng = rng or random.Random(self.settings.quiz_seed)

        self.scheduler = ReviewScheduler(MemoryModel(), SchedulerConfig.from_settings(self.settings))
        self.queue_builder = QueueBuilder(
            stores.cards, stores.states, QueueConfig.from_settings(self.settings), self.rng
        )
        self.synthesizer = QuizItemSynthesizer(QuizConfig.from_settings(self.settings), self.rng)
        self.load_monitor = LoadMonitor(stores.reviews, LoadConfig.from_settings(self.settings))
        self.grades = GradeConfig.from_settings(self.settings)
        self.aggregator = ScoreAggregator(self.grades)

    # =========================================================================
    # Reviews
    # =========================================================================

    def submit_review(
        self,
        learner_id: str,
        card_id: str,
        rating: str | Rating,
        session_id: str | None = None,
        time_spent_seconds: int = 0,
        deck_id: str | None = None,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """
        Record a review and reschedule the card.

        Raises:
            ValidationError: Unknown rating or negative time spent
            NotFoundError: Card, deck or session not visible to the learner
            ConflictError: Another review of the same card kept winning the race
        """
        rating = Rating.parse(rating)
        if time_spent_seconds is None or time_spent_seconds < 0:
            raise ValidationError("time_spent_seconds must be zero or positive")

        card = self.stores.cards.get_card(card_id)
        if card is None or (deck_id is not None and card.deck_id != deck_id):
            raise NotFoundError("Card", card_id)

        if session_id is not None:
            session = self._owned_session(session_id, learner_id)
            if session.deck_id != card.deck_id:
                raise NotFoundError("Session", session_id)

        now = as_utc(now or utcnow())
        retries = self.settings.conflict_retries
        for attempt in range(retries + 1):
            current = self.stores.states.get_state(learner_id, card_id)
            scheduled = self.scheduler.review(learner_id, card_id, current, rating, now)
            review = Review(
                learner_id=learner_id,
                card_id=card_id,
                deck_id=card.deck_id,
                session_id=session_id,
                rating=rating,
                scheduled_for=scheduled.scheduled_for,
                reviewed_at=now,
                interval_days=scheduled.interval_days,
                stability=scheduled.estimate.stability,
                difficulty=scheduled.estimate.difficulty,
                time_spent_seconds=time_spent_seconds,
            )
            try:
                saved = self.stores.states.save_review(
                    scheduled.state, review, current.version if current else None
                )
                break
            except ConflictError:
                if attempt >= retries:
                    logger.warning(f"Giving up on {card_id} for {learner_id} after {attempt + 1} conflicts")
                    raise
                logger.warning(f"Concurrent review of {card_id} for {learner_id}, retrying")

        logger.info(
            f"Review recorded: learner={learner_id} card={card_id} rating={rating.value} "
            f"interval={saved.interval_days}d"
        )
        return ReviewOutcome(
            card_id=card_id,
            rating=rating,
            interval_days=saved.interval_days,
            next_due_at=saved.due_at,
            stability=saved.stability,
            difficulty=saved.difficulty,
            retrievability=scheduled.estimate.retrievability,
        )

    def submit_quiz_answer(
        self,
        learner_id: str,
        item: QuizItem,
        answer: Any,
        session_id: str | None = None,
        time_spent_seconds: int = 0,
        now: datetime | None = None,
    ) -> tuple[AnswerResult, ReviewOutcome]:
        """Check a quiz answer; correct counts as "good", wrong as "again"."""
        result = check_answer(item, answer)
        outcome = self.submit_review(
            learner_id,
            item.card_id,
            result.rating,
            session_id=session_id,
            time_spent_seconds=time_spent_seconds,
            deck_id=item.deck_id,
            now=now,
        )
        return result, outcome

    # =========================================================================
    # Queue
    # =========================================================================

    def get_queue(
        self,
        learner_id: str,
        deck_id: str,
        limit: int | None = None,
        mode: str = "study",
        now: datetime | None = None,
    ) -> QueueResult:
        """
        Build the next study or quiz queue for a deck.

        Quiz mode silently drops cards that cannot be rendered as any
        question shape, so ``stats.total`` may be lower than due + new.
        """
        if mode not in QUEUE_MODES:
            raise ValidationError(f"Mode must be one of: {', '.join(QUEUE_MODES)}", {"mode": str(mode)})
        if not self.stores.cards.deck_exists(deck_id):
            raise NotFoundError("Deck", deck_id)

        now = as_utc(now or utcnow())
        queue = self.queue_builder.build(deck_id, learner_id, limit, now)

        deck_cards = self.stores.cards.list_deck_cards(deck_id)
        by_id = {card.id: card for card in deck_cards}
        selected = [by_id[card_id] for card_id in queue.card_ids if card_id in by_id]

        if mode == "quiz":
            siblings = deck_cards[: self.settings.quiz_sibling_limit]
            items = self.synthesizer.synthesize_many(selected, siblings)
        else:
            items = selected

        return QueueResult(
            mode=mode,
            items=items,
            stats=QueueStats(
                due=len(queue.due_card_ids),
                new=len(queue.new_card_ids),
                total=len(items),
            ),
            warning=self.load_monitor.check_load(learner_id, deck_id, now),
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def start_session(self, learner_id: str, deck_id: str, now: datetime | None = None) -> StudySession:
        if not self.stores.cards.deck_exists(deck_id):
            raise NotFoundError("Deck", deck_id)
        session = self.stores.sessions.create_session(learner_id, deck_id, as_utc(now or utcnow()))
        logger.info(f"Session {session.id} started: learner={learner_id} deck={deck_id}")
        return session

    def end_session(
        self,
        session_id: str,
        learner_id: str,
        seconds_active: int | None = None,
        now: datetime | None = None,
    ) -> StudySession:
        """
        Finalize a session.

        ``seconds_active`` defaults to the wall-clock time since the session
        started, or the review time already accumulated if that is larger.
        """
        session = self._owned_session(session_id, learner_id)
        now = as_utc(now or utcnow())

        if seconds_active is None:
            elapsed = int((now - as_utc(session.started_at)).total_seconds())
            seconds_active = max(session.seconds_active, elapsed, 0)
        elif seconds_active < 0:
            raise ValidationError("seconds_active must be zero or positive")

        session.ended_at = now
        session.seconds_active = seconds_active
        session = self.stores.sessions.update_session(session)
        logger.info(f"Session {session_id} ended after {seconds_active}s")
        return session

    def _owned_session(self, session_id: str, learner_id: str | None) -> StudySession:
        session = self.stores.sessions.get_session(session_id)
        if session is None or (learner_id is not None and session.learner_id != learner_id):
            raise NotFoundError("Session", session_id)
        return session

    # =========================================================================
    # Performance
    # =========================================================================

    def get_session_performance(self, session_id: str, learner_id: str | None = None) -> SessionPerformance:
        """Grade a session; grade and rate are None while it has no reviews."""
        session = self._owned_session(session_id, learner_id)
        reviews = self.stores.reviews.list_reviews(session.learner_id, session_id=session_id)
        result = self.aggregator.grade_session([review.rating for review in reviews])
        return SessionPerformance(
            session_id=session_id,
            grade=result.letter_grade if result else None,
            success_rate=result.success_rate if result else None,
            cards_reviewed=self.stores.reviews.count_distinct_cards(session.learner_id, session_id=session_id),
            seconds_active=session.seconds_active,
        )

    def get_deck_performance(
        self,
        learner_id: str,
        deck_id: str,
        session_id: str | None = None,
    ) -> DeckPerformance:
        """Grade the most recent reviews in a deck (no grade below the minimum sample)."""
        if not self.stores.cards.deck_exists(deck_id):
            raise NotFoundError("Deck", deck_id)

        recent = self.stores.reviews.list_reviews(
            learner_id, deck_id=deck_id, limit=self.grades.deck_recent_reviews
        )
        result = self.aggregator.grade_deck([review.rating for review in recent])
        last = self.stores.sessions.last_session(learner_id, deck_id)

        return DeckPerformance(
            deck_id=deck_id,
            grade=result.letter_grade if result else None,
            success_rate=result.success_rate if result else None,
            total_cards_reviewed=self.stores.reviews.count_distinct_cards(learner_id, deck_id),
            total_sessions=self.stores.sessions.count_sessions(learner_id, deck_id),
            recent_reviews=len(recent),
            last_study_date=last.started_at if last else None,
            session=self.get_session_performance(session_id, learner_id) if session_id else None,
        )

    def get_card_performance(self, learner_id: str, deck_id: str) -> list[CardPerformance]:
        if not self.stores.cards.deck_exists(deck_id):
            raise NotFoundError("Deck", deck_id)
        card_ids = [card.id for card in self.stores.cards.list_deck_cards(deck_id)]
        reviews = self.stores.reviews.list_reviews(learner_id, deck_id=deck_id)
        return card_performance(card_ids, reviews)

    # =========================================================================
    # Deck scores
    # =========================================================================

    def refresh_deck_scores(self, learner_id: str, deck_id: str, now: datetime | None = None) -> list[DeckScore]:
        """Recompute and store the d7/d30/d90 windows."""
        now = as_utc(now or utcnow())
        widest = max(window.days for window in ScoreWindow)
        reviews = self.stores.reviews.list_reviews(
            learner_id, deck_id=deck_id, since=now - timedelta(days=widest), until=now
        )
        scores = compute_deck_scores(learner_id, deck_id, reviews, now)
        self.stores.scores.save_deck_scores(scores)
        logger.info(f"Deck scores refreshed for {learner_id} in {deck_id} from {len(reviews)} reviews")
        return scores

    def get_deck_scores(self, learner_id: str, deck_id: str) -> list[DeckScore]:
        return self.stores.scores.list_deck_scores(learner_id, deck_id)
