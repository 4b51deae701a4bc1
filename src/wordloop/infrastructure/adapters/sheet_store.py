import logging
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from wordloop.domain.constants import REQUEST_TIMEOUT
from wordloop.domain.errors import NotAuthorized, StoreUnavailable
from wordloop.domain.models import Card
from wordloop.domain.ports import WordStore

from .wire import StoreFailure, StoreResponse, WordItem

_response_adapter: TypeAdapter[StoreResponse] = TypeAdapter(StoreResponse)

AUTH_ERROR_MARKERS = ("token", "auth", "unauthor", "forbidden", "whitelist")


class SheetWordStore(WordStore):
    """Adapter for a spreadsheet web-app endpoint (getList / updateReview)."""

    def __init__(
        self,
        url: str,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.logger = logging.getLogger(__name__)
        self.url = url
        self.timeout = timeout
        self._client = client
        self._clock = clock

    async def __aenter__(self) -> "SheetWordStore":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def fetch_due_cards(self) -> list[Card]:
        result = await self._request("GET", params={"action": "getList"})
        if result is None:
            result = []
        if not isinstance(result, list):
            raise StoreUnavailable(f"getList returned {type(result).__name__}, expected a list")

        # getList returns the whole sheet; due selection happens here.
        today = self._clock()
        cards: list[Card] = []
        for raw in result:
            try:
                item = WordItem.model_validate(raw)
            except ValidationError as e:
                row_id = raw.get("id") if isinstance(raw, dict) else None
                self.logger.warning(f"Skipping malformed word {row_id!r}: {e}")
                continue
            if item.is_deleted:
                continue
            card = item.to_card()
            if card.is_due(today):
                cards.append(card)

        self.logger.info(f"Fetched {len(cards)} due cards from {self.url}")
        return cards

    async def update_review(self, fields: dict[str, dict], token: str) -> None:
        payload = {"op": "updateReview", "token": token, "fields": fields}
        await self._request("POST", json=payload)
        self.logger.info(f"Wrote {len(fields)} review updates")

    async def _request(self, method: str, **kwargs: Any) -> Any:
        try:
            resp = await self._get_client().request(method, self.url, **kwargs)
        except httpx.HTTPError as e:
            self.logger.error(f"Word store {method} failed: {e}")
            raise StoreUnavailable(f"word store unreachable: {e}") from e

        if resp.status_code in (401, 403):
            raise NotAuthorized(f"word store rejected credentials ({resp.status_code})")
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(f"Word store {method} returned {resp.status_code}")
            raise StoreUnavailable(f"word store returned {resp.status_code}") from e

        try:
            data = _response_adapter.validate_python(resp.json())
        except (ValueError, ValidationError) as e:
            raise StoreUnavailable(f"word store sent an unexpected response: {e}") from e

        if isinstance(data, StoreFailure):
            if any(marker in data.error.lower() for marker in AUTH_ERROR_MARKERS):
                raise NotAuthorized(data.error)
            raise StoreUnavailable(data.error)
        return data.result
