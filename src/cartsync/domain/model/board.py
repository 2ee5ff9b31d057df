"""Board aggregate — a named, reusable preset of customizations.

Lifecycle::

    ACTIVE --consume--> INACTIVE --reactivate--> ACTIVE
    ACTIVE | INACTIVE --archive--> ARCHIVED   (terminal)

A board belongs to exactly one user and is never hard-deleted in the
normal flow; archived boards stay listed as history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cartsync.domain.exceptions import InvalidTransitionError
from cartsync.domain.model.customization import CartCustomization, extras_total
from cartsync.domain.model.value_objects import Money


class BoardStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


@dataclass
class Board:
    id: str
    owner_id: str
    item_id: str
    name: str
    customizations: tuple[CartCustomization, ...] = ()
    item_name: str = ""
    item_image: str = ""
    is_active: bool = True
    archived: bool = False
    last_used_at: datetime | None = None

    def __post_init__(self) -> None:
        self.customizations = tuple(self.customizations)

    @property
    def status(self) -> BoardStatus:
        if self.archived:
            return BoardStatus.ARCHIVED
        return BoardStatus.ACTIVE if self.is_active else BoardStatus.INACTIVE

    @property
    def extras_total(self) -> Money:
        return extras_total(self.customizations)

    # --- State transitions ----------------------------------------------------

    def consume(self, at: datetime) -> None:
        """Transition ACTIVE -> INACTIVE after the board went into the cart."""
        if self.status != BoardStatus.ACTIVE:
            raise InvalidTransitionError(
                f"Cannot use board '{self.name}' — current status is "
                f"{self.status.value}, expected ACTIVE"
            )
        self.is_active = False
        self.last_used_at = at

    def reactivate(self) -> None:
        """Transition INACTIVE -> ACTIVE."""
        if self.status != BoardStatus.INACTIVE:
            raise InvalidTransitionError(
                f"Cannot reuse board '{self.name}' — current status is "
                f"{self.status.value}, expected INACTIVE"
            )
        self.is_active = True

    def archive(self) -> None:
        """Transition ACTIVE|INACTIVE -> ARCHIVED."""
        if self.status == BoardStatus.ARCHIVED:
            raise InvalidTransitionError(f"Board '{self.name}' is already archived")
        self.is_active = False
        self.archived = True
