"""JSON-file-backed implementation of LocationStorage."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from cartsync.domain.exceptions import RemoteStoreError
from cartsync.domain.repository.location_storage import LocationStorage


class JsonLocationStorage(LocationStorage):
    """Keeps the selected location in a single small JSON file."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path

    async def load(self) -> Any | None:
        if not self._file_path.exists():
            return None
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise RemoteStoreError(f"Cannot read {self._file_path}: {exc}") from exc

    async def save(self, payload: dict[str, Any]) -> None:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(
                json.dumps(payload, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise RemoteStoreError(f"Cannot write {self._file_path}: {exc}") from exc

    async def clear(self) -> None:
        try:
            self._file_path.unlink(missing_ok=True)
        except OSError as exc:
            raise RemoteStoreError(f"Cannot remove {self._file_path}: {exc}") from exc
