"""
File Word Store — Infrastructure adapter for a local YAML word list.

The file holds a top-level ``words:`` list of items using the same
camelCase keys as the spreadsheet. Handy offline and as a fixture store.
"""

import logging
import os
import tempfile
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from wordloop.domain.errors import StoreUnavailable
from wordloop.domain.models import Card
from wordloop.domain.ports import WordStore

from .wire import WordItem

logger = logging.getLogger(__name__)


class FileWordStore(WordStore):
    """
    Reads and writes words in a YAML file.

    Due selection: active words whose nextReview is unset or not after today.
    The token argument of update_review is accepted and ignored; a local
    file has no credential check of its own.
    """

    def __init__(self, path: Path, clock: Callable[[], date] = date.today):
        self.path = Path(path)
        self._clock = clock

    def _load_raw(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            logger.warning(f"Word file not found: {self.path}")
            return []
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreUnavailable(f"could not read {self.path}: {e}") from e

        words = data.get("words", []) if isinstance(data, dict) else data
        if not isinstance(words, list):
            raise StoreUnavailable(f"{self.path}: 'words' must be a list")
        if not all(isinstance(w, dict) for w in words):
            raise StoreUnavailable(f"{self.path}: every word must be a mapping")
        return words

    def _save_raw(self, words: list[dict[str, Any]]) -> None:
        text = yaml.safe_dump(
            {"words": words}, allow_unicode=True, sort_keys=False, default_flow_style=False
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreUnavailable(f"could not write {self.path}: {e}") from e

    async def fetch_due_cards(self) -> list[Card]:
        today = self._clock()
        cards: list[Card] = []
        for raw in self._load_raw():
            try:
                item = WordItem.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed word {raw.get('id')!r}: {e}")
                continue
            if item.is_deleted:
                continue
            card = item.to_card()
            if card.is_due(today):
                cards.append(card)

        logger.info(f"Loaded {len(cards)} due cards from {self.path}")
        return cards

    async def update_review(self, fields: dict[str, dict], token: str) -> None:
        words = self._load_raw()
        remaining = dict(fields)
        for raw in words:
            key = str(raw.get("id"))
            if key in remaining:
                raw.update(remaining.pop(key))

        if remaining:
            logger.warning(f"Updates for unknown word ids ignored: {sorted(remaining)}")
        self._save_raw(words)
        logger.info(f"Saved {len(fields) - len(remaining)} review updates to {self.path}")
