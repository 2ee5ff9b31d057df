"""Geolocator that reports a position supplied up front (CLI, scripts)."""

from __future__ import annotations

from cartsync.domain.model.value_objects import Coordinate
from cartsync.domain.repository.geolocator import GeolocationError, Geolocator


class FixedGeolocator(Geolocator):

    def __init__(
        self,
        coordinate: Coordinate | None,
        country: str | None = None,
        granted: bool = True,
    ) -> None:
        self._coordinate = coordinate
        self._country = country
        self._granted = granted

    async def request_permission(self) -> bool:
        return self._granted

    async def current_position(self) -> Coordinate:
        if self._coordinate is None:
            raise GeolocationError("No position available")
        return self._coordinate

    async def reverse_geocode(self, coordinate: Coordinate) -> str | None:
        return self._country
