"""Fulfillment branches.

Branches are server-owned reference data; this package only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass

from cartsync.domain.model.value_objects import Coordinate


@dataclass(frozen=True)
class Branch:
    id: str
    country: str
    city: str
    name: str
    coordinate: Coordinate
    delivery_radius_km: float


@dataclass(frozen=True)
class RankedBranch:
    """A branch evaluated against one user coordinate.

    Computed fresh on every evaluation, never persisted.
    """

    branch: Branch
    distance_km: float
    eta_minutes: float
    deliverable: bool

    @property
    def id(self) -> str:
        return self.branch.id

    @property
    def name(self) -> str:
        return self.branch.name

    @property
    def country(self) -> str:
        return self.branch.country
