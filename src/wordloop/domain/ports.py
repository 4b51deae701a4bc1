"""
Ports (interfaces) for the word store and the identity gate.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card


class WordStore(ABC):
    """
    Port for reading due cards and persisting scheduling updates.

    Implementations:
        - SheetWordStore: Spreadsheet web-app endpoint over HTTP.
        - FileWordStore: Local YAML word list.
    """

    @abstractmethod
    async def fetch_due_cards(self) -> list[Card]:
        """
        Fetch the cards that are due for review.

        Selecting what counts as due is the store's responsibility.

        Raises:
            StoreUnavailable: The store could not be read.
        """
        pass

    @abstractmethod
    async def update_review(self, fields: dict[str, dict], token: str) -> None:
        """
        Persist a whole batch of scheduling updates.

        Args:
            fields: Mapping of card id -> wire scheduling fields.
            token: Credential from the identity gate.

        Raises:
            NotAuthorized: The store rejected the credential.
            StoreUnavailable: The write failed; nothing is assumed persisted.
        """
        pass

    async def close(self) -> None:
        """Release connections held by the store. No-op by default."""
        return None


class IdentityGate(ABC):
    """Port answering "may the current user write?"."""

    @abstractmethod
    def is_authorized(self) -> bool:
        pass

    @abstractmethod
    def get_token(self) -> str:
        """
        Return a credential usable for a write.

        Raises:
            NotAuthorized: No valid credential is available.
        """
        pass
