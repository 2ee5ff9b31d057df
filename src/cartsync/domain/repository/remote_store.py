"""Abstract Remote Store — the durable, shared copy of carts and boards.

Defined in the domain layer so engines never depend on infrastructure.
Rows are plain dicts; every row carries its identity under ``"id"``.

Implementations raise ``RemoteStoreError`` for I/O failures so callers
can tell a transient outage apart from a programming error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

Row = dict[str, Any]

CART_COLLECTION = "cart"
BOARD_COLLECTION = "customization_boards"
BRANCH_COLLECTION = "branches"


class ChangeAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """One change-feed notification: what happened to which row."""

    collection: str
    action: ChangeAction
    payload: Row = field(default_factory=dict)


ChangeHandler = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


class RemoteStore(ABC):

    @abstractmethod
    async def list_documents(self, collection: str, filters: dict[str, Any] | None = None) -> list[Row]:
        """Return every row whose fields equal all of *filters*."""

    @abstractmethod
    async def create_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Row:
        """Insert a row and return it, id included."""

    @abstractmethod
    async def update_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Row:
        """Merge *fields* into an existing row and return the result."""

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Remove a row."""

    @abstractmethod
    def subscribe(self, collections: list[str], handler: ChangeHandler) -> Unsubscribe:
        """Register *handler* for changes in *collections*; return a canceller."""
