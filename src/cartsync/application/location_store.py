"""Location Store — detected vs. explicitly selected location.

States: hydrating -> hydrated.  Until ``hydrate()`` finishes, the selected
location is *unknown*, which is not the same as "no selection".
"""

from __future__ import annotations

import logging
from typing import Callable

from cartsync.domain.exceptions import RemoteStoreError, ValidationError
from cartsync.domain.model.location import DetectedLocation, SelectedLocation
from cartsync.domain.model.value_objects import Coordinate
from cartsync.domain.repository.location_storage import LocationStorage

logger = logging.getLogger(__name__)

SelectionListener = Callable[[SelectedLocation], object]


class LocationStore:

    def __init__(
        self,
        storage: LocationStorage,
        listeners: list[SelectionListener] | None = None,
    ) -> None:
        self._storage = storage
        self._listeners: list[SelectionListener] = list(listeners or [])
        self.detected: DetectedLocation | None = None
        self.selected: SelectedLocation | None = None
        self.is_deliverable: bool | None = None
        self.hydrated = False

    def add_listener(self, listener: SelectionListener) -> None:
        """Call *listener* with every new selection, before it is committed."""
        self._listeners.append(listener)

    async def hydrate(self) -> None:
        """Restore the persisted selection once.

        Always ends hydrated: an unreadable or corrupt record degrades to
        "no selection" instead of leaving the store stuck.
        """
        if self.hydrated:
            return
        try:
            raw = await self._storage.load()
            if raw is not None:
                self.selected = SelectedLocation.from_raw(raw)
        except (RemoteStoreError, ValidationError) as exc:
            logger.warning("Could not restore selected location: %s", exc)
            self.selected = None
        finally:
            self.hydrated = True

    def set_detected(self, location: DetectedLocation | None) -> None:
        self.detected = location

    async def set_selected(self, location: SelectedLocation) -> None:
        """Select *location* and persist it.

        Listeners (the cart) run first, so a cart cannot outlive a
        cross-country move.  A failed write keeps the in-memory selection.
        """
        for listener in self._listeners:
            listener(location)

        self.selected = location
        self.is_deliverable = None
        try:
            await self._storage.save(location.to_raw())
        except RemoteStoreError as exc:
            logger.warning("Could not persist selected location: %s", exc)

    async def clear_selected(self) -> None:
        self.selected = None
        self.is_deliverable = None
        try:
            await self._storage.clear()
        except RemoteStoreError as exc:
            logger.warning("Could not remove persisted location: %s", exc)

    def set_is_deliverable(self, deliverable: bool) -> None:
        self.is_deliverable = deliverable

    # --- Queries --------------------------------------------------------------

    def get_active_country(self) -> str | None:
        if self.selected is not None:
            return self.selected.country
        if self.detected is not None:
            return self.detected.country
        return None

    def get_active_coordinate(self) -> Coordinate | None:
        if self.selected is not None:
            return self.selected.coordinate
        if self.detected is not None:
            return self.detected.coordinate
        return None
