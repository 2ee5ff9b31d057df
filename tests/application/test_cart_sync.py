"""Write-through, reconciliation and change-feed tests for the Cart Engine."""

import asyncio
import json

import pytest

from cartsync.application.cart_engine import CartEngine
from cartsync.application.dto import CartItemSpec
from cartsync.application.session import Session
from cartsync.domain.model.cart import CartMeta, composite_key
from cartsync.domain.model.customization import CartCustomization
from cartsync.domain.model.value_objects import Money
from cartsync.domain.repository.remote_store import ChangeAction, ChangeEvent
from tests.fakes import FakeRemoteStore, cart_event

CHEESE = CartCustomization(id="cheese", name="Cheese", price=Money.of("1"), quantity=1)


def _spec(item_id: str = "burger", *extras: CartCustomization) -> CartItemSpec:
    return CartItemSpec(item_id=item_id, name=item_id.title(), base_price=Money.of("5"), customizations=extras)


def _setup(reload_delay: float = 0.05, latency: float = 0.0):
    remote = FakeRemoteStore(latency=latency)
    cart = CartEngine(remote, Session("u1"), notify=lambda _: None, reload_delay=reload_delay)
    cart.set_cart_meta(CartMeta(branch_id="B1", country="NG"))
    return cart, remote


def _seed_row(remote: FakeRemoteStore, row_id: str, item_id: str, quantity: int, customizations="[]", user_id="u1"):
    extras = customizations if isinstance(customizations, str) else json.dumps(customizations)
    remote.seed("cart", row_id, {
        "user_id": user_id,
        "product_id": item_id,
        "product_name": item_id.title(),
        "itemPrice": "5",
        "quantity": quantity,
        "is_checked_out": False,
        "customizations": extras,
        "cart_key": item_id,
    })


class TestWriteThrough:

    @pytest.mark.asyncio
    async def test_insert_backfills_row_id(self):
        cart, remote = _setup()
        cart.add_item(_spec("burger", CHEESE))
        await cart.flush()

        [row] = remote.rows("cart")
        [line] = cart.items
        assert line.cart_row_id == row["id"]
        assert row["cart_key"] == composite_key("burger", [CHEESE])
        assert row["user_id"] == "u1"
        assert row["is_checked_out"] is False
        assert row["total"] == "6"

    @pytest.mark.asyncio
    async def test_second_add_updates_existing_row(self):
        cart, remote = _setup()
        cart.add_item(_spec())
        cart.add_item(_spec())
        await cart.flush()

        [row] = remote.rows("cart")
        assert row["quantity"] == 2
        assert [op for op, _ in remote.calls].count("create") == 1

    @pytest.mark.asyncio
    async def test_add_finds_row_created_elsewhere_by_key(self):
        cart, remote = _setup()
        _seed_row(remote, "r1", "burger", 4)
        cart.add_item(_spec())
        await cart.flush()

        [row] = remote.rows("cart")
        assert row["id"] == "r1"
        assert row["quantity"] == 1  # last write wins
        assert cart.items[0].cart_row_id == "r1"

    @pytest.mark.asyncio
    async def test_remove_deletes_remote_row(self):
        cart, remote = _setup()
        cart.add_item(_spec())
        cart.remove_item("burger")
        await cart.flush()
        assert remote.rows("cart") == []

    @pytest.mark.asyncio
    async def test_decrease_to_zero_deletes_remote_row(self):
        cart, remote = _setup()
        cart.add_item(_spec())
        await cart.flush()
        cart.decrease_qty("burger")
        await cart.flush()
        assert remote.rows("cart") == []

    @pytest.mark.asyncio
    async def test_failed_write_keeps_local_change(self):
        cart, remote = _setup()
        remote.fail.add("create")
        cart.add_item(_spec())
        await cart.flush()

        [line] = cart.items
        assert line.quantity == 1
        assert line.cart_row_id is None
        assert remote.rows("cart") == []

    @pytest.mark.asyncio
    async def test_local_update_visible_before_write_completes(self):
        cart, remote = _setup()
        task = cart.add_item(_spec())
        assert not task.done()
        assert cart.get_total_items() == 1
        assert remote.rows("cart") == []
        await task

    @pytest.mark.asyncio
    async def test_clear_deletes_every_known_row(self):
        cart, remote = _setup()
        cart.add_item(_spec("burger"))
        cart.add_item(_spec("fries"))
        await cart.flush()
        cart.clear_cart()
        assert cart.items == []
        await cart.flush()
        assert remote.rows("cart") == []

    @pytest.mark.asyncio
    async def test_clear_drops_queued_writes(self):
        cart, remote = _setup()
        cart.add_item(_spec("burger"))
        await cart.flush()

        cart.increase_qty("burger")  # queued, not yet run
        cart.clear_cart()
        await cart.flush()

        assert remote.rows("cart") == []
        assert ("update", "cart") not in remote.calls

    @pytest.mark.asyncio
    async def test_insert_in_flight_during_clear_is_cleaned_up(self):
        cart, remote = _setup(latency=0.01)
        cart.add_item(_spec("burger"))
        await asyncio.sleep(0)  # insert is now waiting on the store
        cart.clear_cart()
        await cart.flush()
        assert remote.rows("cart") == []
        assert ("create", "cart") in remote.calls

    @pytest.mark.asyncio
    async def test_remove_then_clear_deletes_both_rows(self):
        cart, remote = _setup()
        cart.add_item(_spec("burger"))
        cart.add_item(_spec("fries"))
        await cart.flush()

        cart.remove_item("burger")
        cart.clear_cart()
        await cart.flush()

        assert remote.rows("cart") == []
        assert [op for op, _ in remote.calls].count("delete") == 2

    @pytest.mark.asyncio
    async def test_update_of_row_deleted_elsewhere_recreates_it(self):
        cart, remote = _setup()
        cart.add_item(_spec())
        await cart.flush()
        [line] = cart.items
        await remote.delete_document("cart", line.cart_row_id)

        cart.increase_qty("burger")
        await cart.flush()
        assert line.cart_row_id is None
        assert remote.rows("cart") == []

        cart.increase_qty("burger")
        await cart.flush()
        [row] = remote.rows("cart")
        assert row["quantity"] == 3
        assert line.cart_row_id == row["id"]


class TestLoadFromServer:

    @pytest.mark.asyncio
    async def test_server_lines_appended(self):
        cart, remote = _setup()
        _seed_row(remote, "r1", "burger", 3)
        await cart.load_from_server()
        [line] = cart.items
        assert line.quantity == 3
        assert line.cart_row_id == "r1"
        assert line.total_price == Money.of("15")

    @pytest.mark.asyncio
    async def test_server_wins_for_shared_key(self):
        cart, remote = _setup()
        cart.add_item(_spec())
        await cart.flush()
        row_id = cart.items[0].cart_row_id
        await remote.update_document("cart", row_id, {"quantity": 7})

        await cart.load_from_server()
        [line] = cart.items
        assert line.quantity == 7

    @pytest.mark.asyncio
    async def test_local_only_lines_survive(self):
        cart, remote = _setup()
        remote.fail.add("create")
        cart.add_item(_spec("fries"))
        await cart.flush()
        remote.fail.clear()

        _seed_row(remote, "r1", "burger", 1)
        await cart.load_from_server()
        assert sorted(i.item_id for i in cart.items) == ["burger", "fries"]

    @pytest.mark.asyncio
    async def test_malformed_customizations_become_empty(self):
        cart, remote = _setup()
        _seed_row(remote, "r1", "burger", 1, customizations="{broken")
        _seed_row(remote, "r2", "fries", 2)
        await cart.load_from_server()
        assert len(cart.items) == 2
        burger = cart.find("burger", [])
        assert burger.customizations == ()

    @pytest.mark.asyncio
    async def test_key_recomputed_from_customizations(self):
        cart, remote = _setup()
        _seed_row(remote, "r1", "burger", 1, customizations=[CHEESE.to_raw()])
        await cart.load_from_server()
        assert cart.find("burger", [CHEESE]) is not None

    @pytest.mark.asyncio
    async def test_other_users_and_checked_out_rows_ignored(self):
        cart, remote = _setup()
        _seed_row(remote, "r1", "burger", 1, user_id="someone-else")
        _seed_row(remote, "r2", "fries", 1)
        await remote.update_document("cart", "r2", {"is_checked_out": True})
        await cart.load_from_server()
        assert cart.items == []

    @pytest.mark.asyncio
    async def test_read_failure_leaves_cart_untouched(self):
        cart, remote = _setup()
        cart.add_item(_spec())
        await cart.flush()
        remote.fail.add("list")
        await cart.load_from_server()
        assert len(cart.items) == 1

    @pytest.mark.asyncio
    async def test_signed_out_does_nothing(self):
        remote = FakeRemoteStore()
        cart = CartEngine(remote, Session(None))
        await cart.load_from_server()
        assert remote.calls == []

    @pytest.mark.asyncio
    async def test_row_id_gone_remotely_is_reset(self):
        cart, remote = _setup()
        cart.add_item(_spec())
        await cart.flush()
        [line] = cart.items
        await remote.delete_document("cart", line.cart_row_id)

        await cart.load_from_server()
        assert cart.items == [line]
        assert line.cart_row_id is None

        cart.increase_qty("burger")
        await cart.flush()
        [row] = remote.rows("cart")
        assert row["quantity"] == 2
        assert line.cart_row_id == row["id"]

    @pytest.mark.asyncio
    async def test_reload_after_branch_switch_sees_cleared_rows(self):
        cart, remote = _setup(latency=0.01)
        cart.add_item(_spec())
        await cart.flush()

        cart.set_cart_meta(CartMeta(branch_id="B2", country="NG"))
        await cart.load_from_server()

        assert cart.items == []
        assert remote.rows("cart") == []


class TestChangeFeed:

    @pytest.mark.asyncio
    async def test_subscribe_is_idempotent(self):
        cart, remote = _setup()
        cart.subscribe_to_change_feed()
        cart.subscribe_to_change_feed()
        assert remote.subscriber_count == 1
        await cart.close()
        assert remote.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_burst_collapses_into_one_reload(self):
        cart, remote = _setup(reload_delay=0.05)
        cart.subscribe_to_change_feed()
        _seed_row(remote, "r1", "burger", 2)

        for _ in range(5):
            remote.emit(cart_event("u1"))
        await asyncio.sleep(0.15)
        await cart.flush()

        assert remote.calls.count(("list", "cart")) == 1
        assert cart.items[0].quantity == 2
        await cart.close()

    @pytest.mark.asyncio
    async def test_other_users_events_ignored(self):
        cart, remote = _setup(reload_delay=0.01)
        cart.subscribe_to_change_feed()
        remote.emit(cart_event("someone-else", ChangeAction.CREATE))
        await asyncio.sleep(0.05)
        assert remote.calls == []
        await cart.close()

    @pytest.mark.asyncio
    async def test_delete_event_triggers_reload(self):
        cart, remote = _setup(reload_delay=0.01)
        cart.subscribe_to_change_feed()
        remote.emit(ChangeEvent("cart", ChangeAction.DELETE, {"user_id": "u1"}))
        await asyncio.sleep(0.05)
        await cart.flush()
        assert ("list", "cart") in remote.calls
        await cart.close()

    @pytest.mark.asyncio
    async def test_reload_after_clear_is_discarded(self):
        cart, remote = _setup(latency=0.01)
        _seed_row(remote, "r1", "burger", 1)

        load = asyncio.create_task(cart.load_from_server())
        await asyncio.sleep(0)  # load is now waiting on the store
        cart.clear_cart()
        await load
        assert cart.items == []

    @pytest.mark.asyncio
    async def test_close_cancels_pending_reload(self):
        cart, remote = _setup(reload_delay=0.05)
        cart.subscribe_to_change_feed()
        remote.emit(cart_event("u1"))
        await cart.close()
        await asyncio.sleep(0.1)
        assert remote.calls == []

    @pytest.mark.asyncio
    async def test_signed_out_does_not_subscribe(self):
        remote = FakeRemoteStore()
        cart = CartEngine(remote, Session(None))
        cart.subscribe_to_change_feed()
        assert remote.subscriber_count == 0
