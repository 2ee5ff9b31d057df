"""Integration tests for the Cart Engine.

Uses the in-memory fake Remote Store — no file I/O.
"""

import pytest

from cartsync.application.cart_engine import CartEngine
from cartsync.application.dto import CartItemSpec
from cartsync.application.session import Session
from cartsync.domain.model.cart import CartMeta
from cartsync.domain.model.customization import CartCustomization
from cartsync.domain.model.location import SelectedLocation
from cartsync.domain.model.value_objects import Coordinate, Money
from tests.fakes import FakeRemoteStore

CHEESE = CartCustomization(id="cheese", name="Cheese", price=Money.of("1"), quantity=1)
BACON = CartCustomization(id="bacon", name="Bacon", price=Money.of("2"), quantity=1)


def _burger(*extras: CartCustomization) -> CartItemSpec:
    return CartItemSpec(item_id="burger", name="Burger", base_price=Money.of("5"), customizations=extras)


def _setup(user_id: str | None = "u1", meta: CartMeta | None = CartMeta(branch_id="B1", country="NG")):
    """Build an engine on a fake store, bound to branch B1 by default."""
    remote = FakeRemoteStore()
    notices: list[str] = []
    cart = CartEngine(remote, Session(user_id), notify=notices.append, reload_delay=0.01)
    if meta is not None:
        cart.set_cart_meta(meta)
    return cart, remote, notices


class TestAddItemLocal:

    def test_requires_branch(self):
        cart, _, _ = _setup(user_id=None, meta=None)
        assert cart.add_item(_burger()) is None
        assert cart.items == []

    def test_first_add_creates_line(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE))
        [line] = cart.items
        assert line.quantity == 1
        assert line.total_price == Money.of("6")

    def test_identical_add_merges_into_one_line(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE))
        cart.add_item(_burger(CHEESE))
        [line] = cart.items
        assert line.quantity == 2

    def test_different_toppings_stay_separate(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE))
        cart.add_item(_burger(BACON))
        cart.add_item(_burger())
        assert len(cart.items) == 3

    def test_topping_order_does_not_split_lines(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE, BACON))
        cart.add_item(_burger(BACON, CHEESE))
        [line] = cart.items
        assert line.quantity == 2

    def test_signed_out_schedules_no_write(self):
        cart, _, _ = _setup(user_id=None)
        assert cart.add_item(_burger()) is None


class TestQuantityChanges:

    def test_increase_and_decrease(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE))
        cart.increase_qty("burger", [CHEESE])
        assert cart.find("burger", [CHEESE]).quantity == 2
        cart.decrease_qty("burger", [CHEESE])
        assert cart.find("burger", [CHEESE]).quantity == 1

    def test_decrease_from_one_removes_line(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE))
        cart.decrease_qty("burger", [CHEESE])
        assert cart.items == []

    def test_decrease_on_absent_line_is_noop(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE))
        cart.decrease_qty("burger", [CHEESE])
        assert cart.decrease_qty("burger", [CHEESE]) is None
        assert cart.items == []

    def test_increase_on_absent_line_is_noop(self):
        cart, _, _ = _setup(user_id=None)
        assert cart.increase_qty("burger", []) is None
        assert cart.items == []

    def test_remove_only_matching_line(self):
        cart, _, _ = _setup(user_id=None)
        cart.add_item(_burger(CHEESE))
        cart.add_item(_burger(BACON))
        cart.remove_item("burger", [CHEESE])
        [line] = cart.items
        assert line.customizations == (BACON,)

    def test_remove_absent_line_is_noop(self):
        cart, _, _ = _setup(user_id=None)
        assert cart.remove_item("pizza", []) is None


class TestTotals:

    def test_totals_use_customization_quantity(self):
        cart, _, _ = _setup(user_id=None)
        double_bacon = CartCustomization(id="bacon", name="Bacon", price=Money.of("2"), quantity=2)
        cart.add_item(_burger(double_bacon))
        cart.add_item(_burger(double_bacon))
        cart.add_item(CartItemSpec(item_id="fries", name="Fries", base_price=Money.of("3")))
        assert cart.get_total_items() == 3
        assert cart.get_total_price() == Money.of("21")  # (5 + 2x2) x 2 + 3


class TestSetCartMeta:

    def test_branch_change_empties_cart_and_notifies(self):
        cart, _, notices = _setup(user_id=None, meta=CartMeta(branch_id="B", country="NG"))
        cart.add_item(_burger())
        cart.set_cart_meta(CartMeta(branch_id="A", country="NG"))
        assert cart.items == []
        assert cart.cart_meta.branch_id == "A"
        assert len(notices) == 1
        assert "cleared" in notices[0]

    def test_first_branch_does_not_clear(self):
        cart, _, notices = _setup(user_id=None, meta=CartMeta(country="NG"))
        cart.set_cart_meta(CartMeta(branch_id="B1", country="NG"))
        cart.add_item(_burger())
        cart.set_cart_meta(CartMeta(branch_id="B1", branch_name="Ikeja", country="NG"))
        assert len(cart.items) == 1
        assert notices == []

    def test_empty_cart_context_change_has_no_notice(self):
        cart, _, notices = _setup(user_id=None)
        cart.set_cart_meta(CartMeta(branch_id="B2", country="NG"))
        assert notices == []
        assert cart.cart_meta.branch_id == "B2"

    def test_location_in_new_country_clears_cart(self):
        cart, _, notices = _setup(user_id=None)
        cart.add_item(_burger())
        cart.on_location_selected(SelectedLocation("GH", "Accra", Coordinate(5.6, -0.19)))
        assert cart.items == []
        assert cart.cart_meta == CartMeta(country="GH")
        assert len(notices) == 1

    def test_location_in_same_country_keeps_cart(self):
        cart, _, notices = _setup(user_id=None)
        cart.add_item(_burger())
        cart.on_location_selected(SelectedLocation("NG", "Lekki", Coordinate(6.44, 3.47)))
        assert len(cart.items) == 1
        assert cart.cart_meta.branch_id == "B1"
        assert notices == []


class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_add_increase_then_switch_branch(self):
        cart, remote, notices = _setup(meta=CartMeta(branch_id="B1", country="NG"))

        cart.add_item(_burger(CHEESE))
        [line] = cart.items
        assert line.total_price == Money.of("6")

        cart.increase_qty("burger", [CHEESE])
        assert line.quantity == 2
        assert line.total_price == Money.of("12")

        await cart.flush()
        [row] = remote.rows("cart")
        assert row["quantity"] == 2

        cart.set_cart_meta(CartMeta(branch_id="B2", country="NG"))
        assert cart.items == []
        await cart.flush()
        assert remote.rows("cart") == []
        assert len(notices) == 1
