"""Domain service: Branch Selection.

Decides which branch, if any, can deliver to a coordinate.  A branch is
deliverable when the coordinate lies inside its delivery radius *and*
the estimated trip fits under the configured ETA ceiling.
"""

from __future__ import annotations

from dataclasses import dataclass

from cartsync.domain.exceptions import ContractViolationError, ValidationError
from cartsync.domain.model.branch import Branch, RankedBranch
from cartsync.domain.model.value_objects import Coordinate
from cartsync.domain.service.geo import AVERAGE_SPEED_KMH, distance_km, eta_minutes

MAX_DELIVERY_MIN = 60.0       # normal limit
MAX_BAD_CONDITION_MIN = 90.0  # extreme case


@dataclass(frozen=True)
class DeliveryRules:
    """Speed and delivery-time limits used to judge deliverability.

    Exactly one ETA ceiling applies per evaluation: the normal one, or the
    extended one while ``bad_conditions`` is switched on.
    """

    average_speed_kmh: float = AVERAGE_SPEED_KMH
    max_delivery_minutes: float = MAX_DELIVERY_MIN
    max_bad_condition_minutes: float = MAX_BAD_CONDITION_MIN
    bad_conditions: bool = False

    def __post_init__(self) -> None:
        if self.average_speed_kmh <= 0:
            raise ValidationError("Average delivery speed must be positive")
        if self.max_delivery_minutes <= 0 or self.max_bad_condition_minutes <= 0:
            raise ValidationError("Delivery time ceilings must be positive")

    @property
    def eta_ceiling_minutes(self) -> float:
        if self.bad_conditions:
            return self.max_bad_condition_minutes
        return self.max_delivery_minutes


def rank_branches(
    branches: list[Branch],
    user_coordinate: Coordinate,
    rules: DeliveryRules | None = None,
) -> list[RankedBranch]:
    """Evaluate every branch against *user_coordinate*, preserving input order."""
    _require_candidates(branches)
    rules = rules or DeliveryRules()

    ranked: list[RankedBranch] = []
    for branch in branches:
        distance = distance_km(user_coordinate, branch.coordinate)
        eta = eta_minutes(distance, rules.average_speed_kmh)
        ranked.append(
            RankedBranch(
                branch=branch,
                distance_km=distance,
                eta_minutes=eta,
                deliverable=(
                    distance <= branch.delivery_radius_km
                    and eta <= rules.eta_ceiling_minutes
                ),
            )
        )
    return ranked


def select_best_branch(
    branches: list[Branch],
    user_coordinate: Coordinate,
    rules: DeliveryRules | None = None,
) -> RankedBranch | None:
    """Return the closest deliverable branch, or None if none can deliver.

    Equidistant branches keep their input order (``sorted`` is stable).
    """
    deliverable = [
        rb for rb in rank_branches(branches, user_coordinate, rules) if rb.deliverable
    ]
    if not deliverable:
        return None
    return sorted(deliverable, key=lambda rb: rb.distance_km)[0]


def _require_candidates(branches: object) -> None:
    # Empty input is a caller bug and must stay distinct from a None result.
    if not isinstance(branches, (list, tuple)):
        raise ContractViolationError(
            f"Expected a sequence of branches, got {type(branches).__name__}"
        )
    if not branches:
        raise ContractViolationError("Expected at least one candidate branch")
