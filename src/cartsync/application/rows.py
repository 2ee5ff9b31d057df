"""Mapping between domain objects and Remote Store rows.

Row payloads are duck-typed on the wire; everything is normalised here,
once per ingestion point.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.board import Board
from cartsync.domain.model.branch import Branch
from cartsync.domain.model.cart import CartItem
from cartsync.domain.model.customization import dump_customizations, parse_customizations
from cartsync.domain.model.value_objects import Coordinate, Money
from cartsync.domain.repository.remote_store import Row

logger = logging.getLogger(__name__)


def new_row_id() -> str:
    return uuid.uuid4().hex


# --- Cart rows ----------------------------------------------------------------


def cart_row_fields(user_id: str, item: CartItem) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "product_id": item.item_id,
        "product_name": item.name,
        "itemPrice": str(item.base_price.amount),
        "quantity": item.quantity,
        "is_checked_out": False,
        "note": item.note,
        "image_url": item.image_url,
        "customizations": dump_customizations(item.customizations),
        "cart_key": item.composite_key,
        "extrasTotal": str(item.extras_total.amount),
        "total": str(item.total_price.amount),
    }


def cart_item_from_row(row: Row) -> CartItem | None:
    """Rebuild a cart line; the key and totals are always recomputed.

    Returns None for rows too broken to represent a line.
    """
    try:
        return CartItem(
            item_id=str(row["product_id"]),
            name=row.get("product_name") or "",
            base_price=Money.of(row.get("itemPrice", row.get("price", 0)) or 0),
            quantity=max(int(row.get("quantity") or 1), 1),
            customizations=tuple(parse_customizations(row.get("customizations"))),
            cart_row_id=row.get("id"),
            image_url=row.get("image_url") or "",
            note=row.get("note") or "",
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        logger.warning("Skipping malformed cart row %s: %s", row.get("id"), exc)
        return None


# --- Board rows ---------------------------------------------------------------


def board_row_fields(board: Board) -> dict[str, Any]:
    return {
        "userId": board.owner_id,
        "itemId": board.item_id,
        "name": board.name,
        "customizations": dump_customizations(board.customizations),
        "extrasTotal": str(board.extras_total.amount),
        "itemName": board.item_name,
        "itemImage": board.item_image,
        "isActive": board.is_active,
        "archived": board.archived,
        "lastUsedAt": board.last_used_at.isoformat() if board.last_used_at else None,
    }


def board_from_row(row: Row) -> Board:
    last_used = row.get("lastUsedAt")
    return Board(
        id=row["id"],
        owner_id=row.get("userId", ""),
        item_id=row.get("itemId", ""),
        name=row.get("name") or "",
        customizations=tuple(parse_customizations(row.get("customizations"))),
        item_name=row.get("itemName") or "",
        item_image=row.get("itemImage") or "",
        is_active=bool(row.get("isActive", True)),
        archived=bool(row.get("archived", False)),
        last_used_at=datetime.fromisoformat(last_used) if last_used else None,
    )


# --- Branch rows --------------------------------------------------------------


def branch_from_row(row: Row) -> Branch:
    return Branch(
        id=row["id"],
        country=row["country"],
        city=row.get("city") or "",
        name=row.get("name") or "",
        coordinate=Coordinate(float(row["latitude"]), float(row["longitude"])),
        delivery_radius_km=float(row["deliveryRadiusKm"]),
    )


def branch_row_fields(branch: Branch) -> dict[str, Any]:
    return {
        "country": branch.country,
        "city": branch.city,
        "name": branch.name,
        "latitude": branch.coordinate.latitude,
        "longitude": branch.coordinate.longitude,
        "deliveryRadiusKm": branch.delivery_radius_km,
    }
