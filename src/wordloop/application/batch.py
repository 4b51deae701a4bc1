"""
Pending update batch.

Scheduling updates accumulate here during a session and go to the word
store as one write. The batch keeps two halves: *pending* (answers not yet
sent) and *in flight* (the mapping handed to the current or last failed
write). A failed write leaves the in-flight half untouched so the retry
submits exactly the same content.
"""

import logging

from wordloop.domain.models import ScheduleUpdate

logger = logging.getLogger(__name__)


class PendingUpdateBatch:
    def __init__(self):
        self._pending: dict[str, ScheduleUpdate] = {}
        self._in_flight: dict[str, ScheduleUpdate] | None = None

    def stage(self, card_id: str, update: ScheduleUpdate) -> None:
        """Record the latest update for a card. Later answers overwrite earlier ones."""
        self._pending[card_id] = update

    def begin_flush(self) -> dict[str, ScheduleUpdate]:
        """
        Return the mapping to write next.

        If an earlier write failed, its mapping is returned unchanged and new
        answers stay pending for the following batch. Otherwise everything
        pending moves in flight.
        """
        if self._in_flight is None:
            if not self._pending:
                return {}
            self._in_flight = self._pending
            self._pending = {}
            logger.debug(f"Moved {len(self._in_flight)} updates in flight")
        return self._in_flight

    def commit(self) -> None:
        """Forget the in-flight half after the store accepted it."""
        self._in_flight = None

    @property
    def in_flight(self) -> dict[str, ScheduleUpdate] | None:
        return self._in_flight

    def has_pending(self) -> bool:
        return bool(self._pending) or bool(self._in_flight)

    def snapshot(self) -> dict[str, ScheduleUpdate]:
        """Merged view of everything not yet persisted; pending entries win."""
        merged = dict(self._in_flight or {})
        merged.update(self._pending)
        return merged

    def __len__(self) -> int:
        return len(self.snapshot())

    def __contains__(self, card_id: str) -> bool:
        return card_id in self._pending or card_id in (self._in_flight or {})
