"""Customization snapshots attached to cart lines and boards.

A ``CartCustomization`` is copied from the catalog when the user picks it,
so later catalog price changes never touch existing lines.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.value_objects import Money

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Extra"
DEFAULT_TYPE = "custom"


@dataclass(frozen=True)
class CartCustomization:
    id: str
    name: str
    price: Money
    quantity: int = 1
    type: str = DEFAULT_TYPE

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Customization id is required")
        if not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValidationError(
                f"Customization quantity must be a positive integer, got {self.quantity!r}"
            )

    @property
    def line_total(self) -> Money:
        return self.price * self.quantity

    def to_raw(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price.amount),
            "quantity": self.quantity,
            "type": self.type,
        }


def extras_total(customizations: tuple[CartCustomization, ...] | list[CartCustomization]) -> Money:
    """Sum of price x quantity over every customization."""
    total = Money.zero()
    for c in customizations:
        total = total + c.line_total
    return total


def dump_customizations(customizations) -> str:
    """Serialize to the JSON string stored in cart and board rows."""
    return json.dumps([c.to_raw() for c in customizations])


def parse_customizations(raw: Any) -> list[CartCustomization]:
    """Turn whatever a row carries into a typed customization list.

    Accepts a JSON string, an already-decoded list, or nothing.  Corrupt
    input degrades to an empty list; individual bad entries are skipped.
    This is the only place row payloads become ``CartCustomization`` objects.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Failed to parse customizations: %r", raw)
            return []
    if not isinstance(raw, list):
        logger.warning("Unexpected customizations type: %s", type(raw).__name__)
        return []

    result: list[CartCustomization] = []
    for entry in raw:
        customization = _normalize(entry)
        if customization is not None:
            result.append(customization)
    return result


def _normalize(entry: Any) -> CartCustomization | None:
    if not isinstance(entry, dict):
        logger.warning("Skipping customization entry %r: not an object", entry)
        return None

    cid = entry.get("id") or entry.get("$id") or uuid.uuid4().hex
    try:
        price = Money.of(entry.get("price") if entry.get("price") is not None else 0)
        quantity = int(entry.get("quantity") or 1)
    except (ValidationError, TypeError, ValueError):
        logger.warning("Skipping customization %s: bad price or quantity", cid)
        return None

    return CartCustomization(
        id=str(cid),
        name=entry.get("name") or DEFAULT_NAME,
        price=price,
        quantity=max(quantity, 1),
        type=entry.get("type") or DEFAULT_TYPE,
    )
