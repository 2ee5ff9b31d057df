"""Great-circle distance and delivery-time estimates.

Pure functions.  Invalid coordinates yield NaN, which propagates instead
of raising.
"""

from __future__ import annotations

import math

from cartsync.domain.model.value_objects import Coordinate

EARTH_RADIUS_KM = 6371.0
AVERAGE_SPEED_KMH = 20.0  # avg city traffic


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between *a* and *b* in kilometres."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    if h > 1.0:  # rounding near antipodes
        h = 1.0
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def eta_minutes(distance: float, average_speed_kmh: float = AVERAGE_SPEED_KMH) -> float:
    """Minutes to cover *distance* km at a constant average speed."""
    return distance / average_speed_kmh * 60
