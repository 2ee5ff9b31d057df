"""Data Transfer Objects — plain containers that cross layer boundaries."""

from __future__ import annotations

from dataclasses import dataclass, field

from cartsync.domain.model.board import Board
from cartsync.domain.model.customization import CartCustomization
from cartsync.domain.model.value_objects import Coordinate, Money


@dataclass(frozen=True)
class CartItemSpec:
    """Input: a menu item plus the add-ons the user picked."""

    item_id: str
    name: str
    base_price: Money
    customizations: tuple[CartCustomization, ...] = ()
    image_url: str = ""
    note: str = ""


@dataclass(frozen=True)
class MenuItemRef:
    """Input: the catalog item a board is being added to the cart for."""

    id: str
    name: str
    base_price: Money
    image_url: str = ""


@dataclass(frozen=True)
class BoardPayload:
    """Input: fields the customization picker saves on a board."""

    item_id: str
    name: str
    customizations: tuple[CartCustomization, ...] = ()
    item_name: str = ""
    item_image: str = ""


@dataclass(frozen=True)
class BoardFailure:
    board_id: str
    reason: str


@dataclass
class ConsumeReport:
    """Output: which boards went into the cart and which did not."""

    consumed: list[Board] = field(default_factory=list)
    failed: list[BoardFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class DetectionResult:
    """Output of a device location detection attempt."""

    granted: bool
    country: str | None = None
    coordinate: Coordinate | None = None
    error: str | None = None


@dataclass(frozen=True)
class CartLineDTO:
    """Output: a single cart line as displayed to the user."""

    name: str
    quantity: int
    extras: list[str]
    unit_price: str  # formatted, e.g. "6.00"
    line_total: str


@dataclass(frozen=True)
class CartDTO:
    """Output: the whole cart as displayed to the user."""

    branch_name: str | None
    country: str | None
    items: list[CartLineDTO]
    total_items: int
    total: str
