"""
Queue Builder - selects the cards for one study pass.

Strategy:
1. Due cards (memory state due at or before now), most overdue first,
   capped only by the overall limit
2. New cards (no memory state yet), in deck order or shuffled, capped by
   max_new_cards and by whatever room the limit leaves
3. New cards always follow due cards
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from flashdeck.core.errors import ValidationError
from flashdeck.core.models import utcnow
from flashdeck.core.ports import CardStore, MemoryStateStore


@dataclass
class QueueConfig:
    """Caps for queue building."""

    max_new_cards: int = 5
    default_session_size: int = 10
    max_queue_size: int = 200
    shuffle_new_cards: bool = False

    @classmethod
    def from_settings(cls, settings) -> QueueConfig:
        return cls(**settings.get_queue_config())


@dataclass
class StudyQueue:
    """Ordered card ids for one study pass."""

    due_card_ids: list[str] = field(default_factory=list)
    new_card_ids: list[str] = field(default_factory=list)

    @property
    def card_ids(self) -> list[str]:
        """Due first, then new."""
        return self.due_card_ids + self.new_card_ids

    @property
    def total(self) -> int:
        return len(self.due_card_ids) + len(self.new_card_ids)

    @property
    def is_empty(self) -> bool:
        return self.total == 0


class QueueBuilder:
    """Builds due/new queues from stored memory states."""

    def __init__(
        self,
        cards: CardStore,
        states: MemoryStateStore,
        config: QueueConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.cards = cards
        self.states = states
        self.config = config or QueueConfig()
        self.rng = rng or random.Random()

    def validate_limit(self, limit: int | None) -> int:
        """Resolve the default limit and reject malformed ones."""
        if limit is None:
            return self.config.default_session_size
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise ValidationError(f"Limit must be an integer, got {limit!r}", {"limit": str(limit)})
        if limit < 1 or limit > self.config.max_queue_size:
            raise ValidationError(
                f"Limit must be between 1 and {self.config.max_queue_size}",
                {"limit": limit},
            )
        return limit

    def build(
        self,
        deck_id: str,
        learner_id: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> StudyQueue:
        """
        Select due and new cards for a learner in a deck.

        Args:
            deck_id: Deck to study
            learner_id: Learner whose memory states are consulted
            limit: Maximum total cards (defaults to default_session_size)
            now: Reference time for due checks

        Returns:
            StudyQueue with due ids (earliest due first) and new ids
        """
        limit = self.validate_limit(limit)
        now = now or utcnow()
        queue = StudyQueue()

        # 1. Due cards
        due_states = self.states.list_due_states(learner_id, deck_id, now, limit)
        queue.due_card_ids = [state.card_id for state in due_states][:limit]
        logger.debug(f"Found {len(queue.due_card_ids)} due cards in deck {deck_id}")

        # 2. New cards
        room = min(self.config.max_new_cards, limit - len(queue.due_card_ids))
        if room > 0:
            seen = {state.card_id for state in self.states.list_deck_states(learner_id, deck_id)}
            new_ids = [card.id for card in self.cards.list_deck_cards(deck_id) if card.id not in seen]
            if self.config.shuffle_new_cards:
                self.rng.shuffle(new_ids)
            queue.new_card_ids = new_ids[:room]
        logger.debug(f"Selected {len(queue.new_card_ids)} new cards")

        logger.info(
            f"Queue built for {learner_id} in {deck_id}: {len(queue.due_card_ids)} due + "
            f"{len(queue.new_card_ids)} new = {queue.total} cards"
        )
        return queue
