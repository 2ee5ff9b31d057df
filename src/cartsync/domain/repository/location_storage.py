"""Abstract durable storage for the user's selected location."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LocationStorage(ABC):

    @abstractmethod
    async def load(self) -> Any | None:
        """Return the persisted payload, or None if nothing is stored."""

    @abstractmethod
    async def save(self, payload: dict[str, Any]) -> None:
        """Persist *payload*, replacing any previous value."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove the persisted payload."""
