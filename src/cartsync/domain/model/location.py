"""Detected and user-selected locations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.value_objects import Coordinate


@dataclass(frozen=True)
class DetectedLocation:
    """What device geolocation produced.

    ``coordinate`` is None in country-only mode.  Never persisted.
    """

    country: str
    coordinate: Coordinate | None = None


@dataclass(frozen=True)
class SelectedLocation:
    """What the user explicitly chose; overrides detection when present."""

    country: str
    name: str
    coordinate: Coordinate

    def __post_init__(self) -> None:
        if not self.country or not self.country.strip():
            raise ValidationError("Selected location needs a country")

    def to_raw(self) -> dict[str, Any]:
        return {
            "country": self.country,
            "name": self.name,
            "latitude": self.coordinate.latitude,
            "longitude": self.coordinate.longitude,
        }

    @staticmethod
    def from_raw(raw: Any) -> SelectedLocation:
        """Rebuild a persisted selection, raising ValidationError if malformed."""
        if not isinstance(raw, dict):
            raise ValidationError("Persisted location must be an object")
        try:
            coordinate = Coordinate(float(raw["latitude"]), float(raw["longitude"]))
            return SelectedLocation(
                country=str(raw["country"]),
                name=str(raw.get("name") or ""),
                coordinate=coordinate,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed persisted location: {exc}") from exc
