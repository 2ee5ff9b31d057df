"""Application service: Show Cart use case (query)."""

from __future__ import annotations

from cartsync.application.cart_engine import CartEngine
from cartsync.application.dto import CartDTO, CartLineDTO
from cartsync.domain.model.cart import CartSnapshot


class ShowCartHandler:

    def __init__(self, cart: CartEngine) -> None:
        self._cart = cart

    def handle(self) -> CartDTO:
        return self._to_dto(self._cart.snapshot())

    @staticmethod
    def _to_dto(snapshot: CartSnapshot) -> CartDTO:
        return CartDTO(
            branch_name=snapshot.meta.branch_name,
            country=snapshot.meta.country,
            items=[
                CartLineDTO(
                    name=item.name,
                    quantity=item.quantity,
                    extras=[
                        f"{c.name} x{c.quantity}" if c.quantity > 1 else c.name
                        for c in item.customizations
                    ],
                    unit_price=str(item.unit_price),
                    line_total=str(item.total_price),
                )
                for item in snapshot.items
            ],
            total_items=snapshot.total_items,
            total=str(snapshot.total_price),
        )
