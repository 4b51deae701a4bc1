"""
Review Service — Application layer orchestrator.

Loads the due set from the word store, feeds answers to the session and
flushes the pending batch back, one write at a time.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date

from wordloop.domain.constants import FLUSH_RETRIES, RETRY_DELAY
from wordloop.domain.errors import InvalidInput, StoreUnavailable
from wordloop.domain.ports import IdentityGate, WordStore
from wordloop.domain.scheduler import DEFAULT_POLICY, StagePolicy

from .session import AnswerOutcome, ReviewSession

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Application service for one user's review sessions.

    Follows Dependency Inversion: depends on the WordStore and IdentityGate
    abstractions, not concrete adapter implementations.
    """

    def __init__(
        self,
        store: WordStore,
        gate: IdentityGate,
        policy: StagePolicy = DEFAULT_POLICY,
        max_retries: int = FLUSH_RETRIES,
        retry_delay: float = RETRY_DELAY,
        clock: Callable[[], date] = date.today,
    ):
        """
        Args:
            store: The word store (port) to read due cards from and write to.
            gate: Identity gate checked before every write.
            policy: Stage transition rule handed to each session.
            max_retries: Extra write attempts after a StoreUnavailable failure.
            retry_delay: Seconds to wait between write attempts.
            clock: Returns the review date.
        """
        self._store = store
        self._gate = gate
        self.policy = policy
        self.max_retries = max(0, max_retries)
        self.retry_delay = retry_delay
        self._clock = clock
        self._flush_lock = asyncio.Lock()
        self.session: ReviewSession | None = None

    async def start(self) -> ReviewSession:
        """
        Start a new session from the store's due set.

        Raises:
            StoreUnavailable: The due set could not be read. No session is started.
        """
        cards = await self._store.fetch_due_cards()
        # Unwritten updates from a replaced session carry over with its batch.
        batch = self.session.batch if self.session is not None else None
        session = ReviewSession(self.policy, batch=batch)
        session.load(cards)
        self.session = session
        return session

    def answer(self, quality: int) -> AnswerOutcome:
        if self.session is None:
            raise InvalidInput("no session started")
        return self.session.answer(quality, self._clock())

    async def flush(self) -> int:
        """
        Write every pending update to the store.

        Only one flush runs at a time; answers accepted meanwhile go out in
        the next batch of the same call.

        Returns:
            Number of card updates written. 0 when nothing was pending.

        Raises:
            NotAuthorized: No valid credential. The batch is kept for a later retry.
            StoreUnavailable: All attempts failed. The batch is kept intact.
        """
        if self.session is None:
            return 0

        batch = self.session.batch
        written = 0
        async with self._flush_lock:
            while batch.has_pending():
                token = self._gate.get_token()
                in_flight = batch.begin_flush()
                fields = {card_id: update.to_fields() for card_id, update in in_flight.items()}
                await self._write_with_retry(fields, token)
                batch.commit()
                written += len(fields)
                logger.info(f"Flushed {len(fields)} review updates")
        return written

    async def close(self) -> None:
        await self._store.close()

    async def _write_with_retry(self, fields: dict[str, dict], token: str) -> None:
        attempt = 0
        while True:
            try:
                await self._store.update_review(fields, token)
                return
            except StoreUnavailable as e:
                if attempt >= self.max_retries:
                    logger.error(
                        f"Flush failed after {attempt + 1} attempts; keeping {len(fields)} updates: {e}"
                    )
                    raise
                attempt += 1
                logger.warning(f"Flush attempt {attempt} failed, retrying: {e}")
                await asyncio.sleep(self.retry_delay)
