"""Application service: Detect Location use case.

Location is advisory: any failure comes back as ``granted=False``
instead of an exception.
"""

from __future__ import annotations

import logging

from cartsync.application.dto import DetectionResult
from cartsync.application.location_store import LocationStore
from cartsync.domain.model.location import DetectedLocation
from cartsync.domain.repository.geolocator import GeolocationError, Geolocator

logger = logging.getLogger(__name__)

UNKNOWN_COUNTRY = "Unknown"
MODES = ("full", "country-only")


class DetectLocationHandler:

    def __init__(self, geolocator: Geolocator, location_store: LocationStore) -> None:
        self._geolocator = geolocator
        self._location_store = location_store

    async def handle(self, mode: str = "full") -> DetectionResult:
        if mode not in MODES:
            raise ValueError(f"Unknown detection mode {mode!r}")

        try:
            granted = await self._geolocator.request_permission()
        except GeolocationError as exc:
            logger.warning("Location permission request failed: %s", exc)
            return DetectionResult(granted=False, error=str(exc))
        if not granted:
            logger.warning("Location permission not granted")
            return DetectionResult(granted=False)

        try:
            coordinate = await self._geolocator.current_position()
        except GeolocationError as exc:
            logger.warning("Location detection failed: %s", exc)
            return DetectionResult(granted=False, error=str(exc))

        try:
            country = await self._geolocator.reverse_geocode(coordinate)
        except GeolocationError as exc:
            logger.warning("Reverse geocode failed, using coordinates only: %s", exc)
            country = None
        country = country or UNKNOWN_COUNTRY

        if mode == "country-only":
            self._location_store.set_detected(DetectedLocation(country=country))
            return DetectionResult(granted=True, country=country)

        self._location_store.set_detected(DetectedLocation(country=country, coordinate=coordinate))
        return DetectionResult(granted=True, country=country, coordinate=coordinate)
