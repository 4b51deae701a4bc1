"""
Domain models for vocabulary review.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, replace
from datetime import date

from .constants import DEFAULT_EASE_FACTOR, FIRST_STAGE


@dataclass(frozen=True)
class ScheduleUpdate:
    """
    Scheduling fields computed for a card after one answer.

    Attributes:
        review_stage: Stage index into the stage-interval table.
        ease_factor: Ease multiplier, already clamped and rounded.
        interval_days: Days until the card is due again.
        last_review: Date of the answer.
        next_review: last_review + interval_days.
    """

    review_stage: int
    ease_factor: float
    interval_days: int
    last_review: date
    next_review: date

    def to_fields(self) -> dict:
        """Wire mapping written to the word store."""
        return {
            "reviewStage": self.review_stage,
            "easeFactor": self.ease_factor,
            "intervalDays": self.interval_days,
            "lastReview": self.last_review.isoformat(),
            "nextReview": self.next_review.isoformat(),
        }


@dataclass(frozen=True)
class Card:
    """
    A vocabulary entry under review.

    Content fields come from the word store and are never changed by the
    core; only the scheduling block is replaced, via ``with_schedule``.
    """

    id: str
    content: str = ""
    type: str = "vocabulary"
    chinese_explain: str = ""

    # Optional content
    phonics: str | None = None
    eng_explain: str | None = None
    tags: str | None = None
    supplementary: str | None = None
    example: str | None = None
    synonyms: str | None = None
    antonyms: str | None = None
    note: str | None = None
    status: str | None = None
    lesson_date: date | None = None
    created_date: date | None = None

    # Scheduling
    review_stage: int = FIRST_STAGE
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    last_review: date | None = None
    next_review: date | None = None

    def with_schedule(self, update: ScheduleUpdate) -> "Card":
        return replace(
            self,
            review_stage=update.review_stage,
            ease_factor=update.ease_factor,
            interval_days=update.interval_days,
            last_review=update.last_review,
            next_review=update.next_review,
        )

    def is_due(self, today: date) -> bool:
        return self.next_review is None or self.next_review <= today
