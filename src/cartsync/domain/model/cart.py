"""Cart lines, their identity key, and the cart's fulfillment context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from urllib.parse import quote

from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.customization import CartCustomization, extras_total
from cartsync.domain.model.value_objects import Money


def composite_key(item_id: str, customizations: Iterable[CartCustomization]) -> str:
    """Identity of a cart line.

    Built from the item id plus every customization rendered as
    ``id:quantity``, sorted by id, so the order the user picked add-ons
    in never matters.  Ids are percent-escaped, so an id containing
    ``|``, ``:`` or ``,`` cannot collide with another line's key.

    >>> composite_key("burger", [])
    'burger'
    >>> composite_key("burger", [CartCustomization("a:1", "A", Money.of("1"))])
    'burger|a%3A1:1'
    """
    parts = sorted(f"{_escape(c.id)}:{c.quantity}" for c in customizations)
    if not parts:
        return _escape(item_id)
    return f"{_escape(item_id)}|{','.join(parts)}"


def _escape(value: str) -> str:
    return quote(value, safe="")


@dataclass
class CartItem:
    """One line of the cart.

    Two lines are the same line iff their composite keys match: the same
    menu item with different toppings stays on separate lines.

    ``cart_row_id`` is absent until the first write-through creates the
    remote row.
    """

    item_id: str
    name: str
    base_price: Money
    quantity: int = 1
    customizations: tuple[CartCustomization, ...] = ()
    cart_row_id: str | None = None
    image_url: str = ""
    note: str = ""

    def __post_init__(self) -> None:
        self.customizations = tuple(self.customizations)
        if self.quantity < 1:
            raise ValidationError("Cart line quantity must be at least 1")

    @property
    def composite_key(self) -> str:
        return composite_key(self.item_id, self.customizations)

    @property
    def extras_total(self) -> Money:
        return extras_total(self.customizations)

    @property
    def unit_price(self) -> Money:
        return self.base_price + self.extras_total

    @property
    def total_price(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CartMeta:
    """Which fulfillment context (branch + country) the cart belongs to."""

    branch_id: str | None = None
    branch_name: str | None = None
    country: str | None = None

    def is_replaced_by(self, other: CartMeta) -> bool:
        """True when adopting *other* moves the cart to another context.

        Only a value that was set and now differs counts; filling in a
        previously unset branch or country does not.
        """
        if self.branch_id is not None and other.branch_id != self.branch_id:
            return True
        if self.country is not None and other.country != self.country:
            return True
        return False


@dataclass
class CartSnapshot:
    """Read-only view of the cart at one instant."""

    meta: CartMeta
    items: list[CartItem] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> Money:
        total = Money.zero()
        for item in self.items:
            total = total + item.total_price
        return total
