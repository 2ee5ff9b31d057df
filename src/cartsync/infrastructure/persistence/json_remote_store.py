"""JSON-file-backed implementation of RemoteStore.

The whole store is one file shaped ``{collection: {row_id: row}}``.  The
change feed is in-process: subscribers see events for writes made
through this instance, delivered on the next loop iteration.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from cartsync.domain.exceptions import RemoteStoreError
from cartsync.domain.repository.remote_store import (
    ChangeAction,
    ChangeEvent,
    ChangeHandler,
    RemoteStore,
    Row,
    Unsubscribe,
)


class JsonRemoteStore(RemoteStore):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._handlers: list[tuple[frozenset[str], ChangeHandler]] = []
        self._ensure_file()

    # --- RemoteStore interface ------------------------------------------------

    async def list_documents(self, collection: str, filters: dict[str, Any] | None = None) -> list[Row]:
        rows = self._load().get(collection, {})
        filters = filters or {}
        return [
            dict(row)
            for row in rows.values()
            if all(row.get(k) == v for k, v in filters.items())
        ]

    async def create_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Row:
        data = self._load()
        rows = data.setdefault(collection, {})
        if doc_id in rows:
            raise RemoteStoreError(f"Document '{doc_id}' already exists in {collection}")
        row = {**fields, "id": doc_id}
        rows[doc_id] = row
        self._persist(data)
        self._publish(collection, ChangeAction.CREATE, row)
        return dict(row)

    async def update_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> Row:
        data = self._load()
        row = data.get(collection, {}).get(doc_id)
        if row is None:
            raise RemoteStoreError(f"Document '{doc_id}' not found in {collection}")
        row.update(fields)
        row["id"] = doc_id
        self._persist(data)
        self._publish(collection, ChangeAction.UPDATE, row)
        return dict(row)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        data = self._load()
        row = data.get(collection, {}).pop(doc_id, None)
        if row is None:
            raise RemoteStoreError(f"Document '{doc_id}' not found in {collection}")
        self._persist(data)
        self._publish(collection, ChangeAction.DELETE, row)

    def subscribe(self, collections: list[str], handler: ChangeHandler) -> Unsubscribe:
        entry = (frozenset(collections), handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    # --- Change feed ----------------------------------------------------------

    def _publish(self, collection: str, action: ChangeAction, row: Row) -> None:
        if not self._handlers:
            return
        event = ChangeEvent(collection=collection, action=action, payload=dict(row))
        loop = asyncio.get_running_loop()
        for collections, handler in list(self._handlers):
            if collection in collections:
                loop.call_soon(handler, event)

    # --- File helpers ---------------------------------------------------------

    def _load(self) -> dict[str, dict[str, Row]]:
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise RemoteStoreError(f"Cannot read {self._file_path}: {exc}") from exc

    def _persist(self, data: dict[str, dict[str, Row]]) -> None:
        try:
            self._file_path.write_text(
                json.dumps(data, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise RemoteStoreError(f"Cannot write {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("{}", encoding="utf-8")
