"""Abstract device geolocation provider."""

from __future__ import annotations

from abc import ABC, abstractmethod

from cartsync.domain.model.value_objects import Coordinate


class GeolocationError(Exception):
    """The device could not produce a position."""


class Geolocator(ABC):

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for foreground location access; True if granted."""

    @abstractmethod
    async def current_position(self) -> Coordinate:
        """Return the freshest high-accuracy fix, or raise GeolocationError."""

    @abstractmethod
    async def reverse_geocode(self, coordinate: Coordinate) -> str | None:
        """Return the country for *coordinate*, or None if unknown."""
