"""
Spaced-repetition scheduler.

Maps (current scheduling state, answer quality) to the next scheduling
state. This is a pure computation module with no I/O.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .constants import (
    DEFAULT_PASS_THRESHOLD,
    FIRST_STAGE,
    MAX_EASE_FACTOR,
    MAX_QUALITY,
    MAX_STAGE,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    STAGE_INTERVALS,
)
from .errors import InvalidInput
from .models import Card, ScheduleUpdate


def _check_quality(quality: int) -> None:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInput(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidInput(
            f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )


def compute_next_ease_factor(current_ease_factor: float, quality: int) -> float:
    """
    Recalculate the ease factor after an answer of the given quality.

    EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02)), clamped to
    [1.3, 2.5] and rounded to two decimals.
    """
    _check_quality(quality)

    miss = MAX_QUALITY - quality
    new_ease_factor = current_ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    new_ease_factor = max(MIN_EASE_FACTOR, min(MAX_EASE_FACTOR, new_ease_factor))
    return round(new_ease_factor, 2)


def compute_next_interval(
    new_stage: int,
    new_ease_factor: float,
    table: tuple[int, ...] = STAGE_INTERVALS,
) -> int:
    """Interval in days: the stage's base interval scaled by the ease factor."""
    if isinstance(new_stage, bool) or not isinstance(new_stage, int):
        raise InvalidInput(f"stage must be an integer, got {new_stage!r}")
    if not 0 <= new_stage < len(table):
        raise InvalidInput(f"stage {new_stage} is outside the interval table")
    # Half-up rounding: 1 day at ease 2.5 is 3 days, not 2.
    return math.floor(table[new_stage] * new_ease_factor + 0.5)


def compute_next_review_date(today: date, interval_days: int) -> date:
    # Calendar days from the review date, not from the review instant.
    if interval_days < 0:
        raise InvalidInput(f"interval must be non-negative, got {interval_days}")
    if isinstance(today, datetime):
        today = today.date()
    return today + timedelta(days=interval_days)


@dataclass(frozen=True)
class StagePolicy:
    """
    Rule for moving a card between review stages.

    A pass (quality >= pass_threshold) advances one stage, capped at
    max_stage. A miss resets to first_stage.
    """

    pass_threshold: int = DEFAULT_PASS_THRESHOLD
    first_stage: int = FIRST_STAGE
    max_stage: int = MAX_STAGE

    def __post_init__(self):
        if not MIN_QUALITY < self.pass_threshold <= MAX_QUALITY:
            raise InvalidInput(
                f"pass_threshold must be between {MIN_QUALITY + 1} and {MAX_QUALITY}"
            )
        if not 0 <= self.first_stage <= self.max_stage < len(STAGE_INTERVALS):
            raise InvalidInput(
                f"stage range {self.first_stage}..{self.max_stage} does not fit the interval table"
            )

    def is_miss(self, quality: int) -> bool:
        _check_quality(quality)
        return quality < self.pass_threshold

    def next_stage(self, stage: int, quality: int) -> int:
        if self.is_miss(quality):
            return self.first_stage
        # Out-of-range stored stages are pulled back into the policy's range.
        stage = max(self.first_stage, min(self.max_stage, stage))
        return min(stage + 1, self.max_stage)


DEFAULT_POLICY = StagePolicy()


def schedule_review(
    card: Card,
    quality: int,
    today: date,
    policy: StagePolicy = DEFAULT_POLICY,
) -> ScheduleUpdate:
    """Compute the complete scheduling update for one answer on *card*."""
    new_stage = policy.next_stage(card.review_stage, quality)
    new_ease_factor = compute_next_ease_factor(card.ease_factor, quality)
    interval_days = compute_next_interval(new_stage, new_ease_factor)
    if isinstance(today, datetime):
        today = today.date()

    return ScheduleUpdate(
        review_stage=new_stage,
        ease_factor=new_ease_factor,
        interval_days=interval_days,
        last_review=today,
        next_review=compute_next_review_date(today, interval_days),
    )
