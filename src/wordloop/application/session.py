"""
Review session state machine.

Sequences due cards through one study run:

1. LOADING until the due set arrives (an empty set goes straight to COMPLETE)
2. ACTIVE while cards remain; each answer is scheduled and staged in the batch
3. At the end of a pass, missed cards become the next pass
4. COMPLETE once a pass ends with no misses
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum

from wordloop.domain.errors import InvalidInput
from wordloop.domain.models import Card, ScheduleUpdate
from wordloop.domain.scheduler import DEFAULT_POLICY, StagePolicy, schedule_review

from .batch import PendingUpdateBatch

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of a single answer event."""

    card: Card
    quality: int
    update: ScheduleUpdate
    missed: bool
    restarted: bool  # this answer ended a pass and started a pass over the misses
    complete: bool


@dataclass(frozen=True)
class SessionProgress:
    """
    Counters for a session lineage.

    remaining + missed + completed stays constant across answers and restarts.
    """

    remaining: int
    missed: int
    completed: int
    answered: int
    restarts: int


class ReviewSession:
    def __init__(
        self,
        policy: StagePolicy = DEFAULT_POLICY,
        batch: PendingUpdateBatch | None = None,
    ):
        self.policy = policy
        self.state = SessionState.LOADING
        self.batch = batch if batch is not None else PendingUpdateBatch()

        self._queue: list[Card] = []
        self._index = 0
        self._missed: list[Card] = []
        # Updates carried over in an unflushed batch are newer than the store's copy.
        self._latest: dict[str, ScheduleUpdate] = self.batch.snapshot()
        self._completed = 0
        self._answered = 0
        self._restarts = 0

    def load(self, cards: list[Card]) -> None:
        if self.state is not SessionState.LOADING:
            raise InvalidInput(f"session already loaded (state={self.state.value})")

        self._queue = list(cards)
        self._index = 0
        if self._queue:
            self.state = SessionState.ACTIVE
            logger.info(f"Session started with {len(self._queue)} due cards")
        else:
            self.state = SessionState.COMPLETE
            logger.info("Nothing due; session complete")

    @property
    def current_card(self) -> Card | None:
        if self.state is not SessionState.ACTIVE:
            return None
        return self._queue[self._index]

    @property
    def is_complete(self) -> bool:
        return self.state is SessionState.COMPLETE

    @property
    def missed_cards(self) -> list[Card]:
        return list(self._missed)

    def answer(self, quality: int, today: date | None = None) -> AnswerOutcome:
        """
        Apply an answer to the current card and advance.

        The update is computed from the card's latest state in this session,
        so a card answered again after a miss continues from the miss.
        """
        card = self.current_card
        if card is None:
            raise InvalidInput(f"no current card (state={self.state.value})")

        today = today or date.today()
        missed = self.policy.is_miss(quality)

        scheduled_from = card
        if card.id in self._latest:
            scheduled_from = card.with_schedule(self._latest[card.id])
        update = schedule_review(scheduled_from, quality, today, self.policy)

        self._latest[card.id] = update
        self.batch.stage(card.id, update)
        self._answered += 1

        if missed:
            # The original card goes back so the same prompt is practised again.
            self._missed.append(card)
            logger.debug(f"Card {card.id} missed (quality={quality})")
        else:
            self._completed += 1

        self._index += 1
        restarted = False
        if self._index >= len(self._queue):
            if self._missed:
                self._restart_with_missed()
                restarted = True
            else:
                self.state = SessionState.COMPLETE
                logger.info(
                    f"Session complete: {self._answered} answers, {self._restarts} restarts"
                )

        return AnswerOutcome(
            card=card,
            quality=quality,
            update=update,
            missed=missed,
            restarted=restarted,
            complete=self.is_complete,
        )

    def _restart_with_missed(self) -> None:
        # The queue is replaced, not merged.
        self._queue = self._missed
        self._missed = []
        self._index = 0
        self._restarts += 1
        logger.info(f"Restarting with {len(self._queue)} missed cards")

    def progress(self) -> SessionProgress:
        remaining = len(self._queue) - self._index if self.state is SessionState.ACTIVE else 0
        return SessionProgress(
            remaining=remaining,
            missed=len(self._missed),
            completed=self._completed,
            answered=self._answered,
            restarts=self._restarts,
        )
