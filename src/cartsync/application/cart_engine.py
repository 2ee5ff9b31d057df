"""Cart Engine — the canonical in-memory cart and its remote write-through.

Every mutation runs in two phases:

  Phase 1 — synchronous: the local cart changes immediately, so whatever
            renders it sees the new state within the same reaction.
  Phase 2 — a background task writes the change to the Remote Store.
            Failures are logged and never roll back phase 1; the next
            ``load_from_server()`` reconciles any drift.

Write tasks run strictly one after another in issue order.  Each task is
tagged with the cart generation it was issued under; ``clear_cart()``
starts a new generation, so inserts and updates queued before a clear are
dropped instead of re-creating rows afterwards.  Deletes always run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from cartsync.application.dto import CartItemSpec
from cartsync.application.rows import (
    cart_item_from_row,
    cart_row_fields,
    new_row_id,
)
from cartsync.application.session import Session
from cartsync.domain.exceptions import RemoteStoreError
from cartsync.domain.model.cart import CartItem, CartMeta, CartSnapshot, composite_key
from cartsync.domain.model.customization import CartCustomization
from cartsync.domain.model.location import SelectedLocation
from cartsync.domain.model.value_objects import Money
from cartsync.domain.repository.remote_store import (
    CART_COLLECTION,
    ChangeAction,
    ChangeEvent,
    RemoteStore,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

RELOAD_DELAY_SECONDS = 0.3

Notifier = Callable[[str], None]


def _log_notice(message: str) -> None:
    logger.warning(message)


class CartEngine:

    def __init__(
        self,
        remote: RemoteStore,
        session: Session,
        notify: Notifier | None = None,
        reload_delay: float = RELOAD_DELAY_SECONDS,
        collection: str = CART_COLLECTION,
    ) -> None:
        self._remote = remote
        self._session = session
        self._notify = notify or _log_notice
        self._reload_delay = reload_delay
        self._collection = collection

        self._items: list[CartItem] = []
        self._meta = CartMeta()
        self._generation = 0

        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        self._writes: set[asyncio.Task] = set()
        self._unsubscribe: Unsubscribe | None = None
        self._reload_timer: asyncio.TimerHandle | None = None

    # --- Reads ----------------------------------------------------------------

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def cart_meta(self) -> CartMeta:
        return self._meta

    def find(self, item_id: str, customizations: list[CartCustomization] | tuple = ()) -> CartItem | None:
        return self._find_by_key(composite_key(item_id, customizations))

    def get_total_items(self) -> int:
        return self.snapshot().total_items

    def get_total_price(self) -> Money:
        return self.snapshot().total_price

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(meta=self._meta, items=self.items)

    # --- Fulfillment context --------------------------------------------------

    def set_cart_meta(self, meta: CartMeta) -> asyncio.Task | None:
        """Adopt *meta*, emptying the cart first if the context changes.

        This is the single authority on "fulfillment context changed";
        location changes route through here too.
        """
        task = None
        if self._meta.is_replaced_by(meta):
            if self._items:
                where = meta.branch_name or meta.branch_id or meta.country or "the new location"
                self._notify(
                    f"Your cart was cleared: items from {self._describe_context()} "
                    f"may not be available at {where}."
                )
            logger.info(
                "Fulfillment context changed %s -> %s; clearing cart", self._meta, meta
            )
            task = self.clear_cart()
        self._meta = meta
        return task

    def on_location_selected(self, location: SelectedLocation) -> asyncio.Task | None:
        """Location Store hook: a new country invalidates the cart's branch."""
        if self._meta.country is None or self._meta.country == location.country:
            return None
        return self.set_cart_meta(CartMeta(country=location.country))

    # --- Mutations ------------------------------------------------------------

    def add_item(self, spec: CartItemSpec) -> asyncio.Task | None:
        """Add one unit of *spec*, merging into an existing identical line."""
        if not self._meta.branch_id:
            logger.warning("Cannot add '%s' to cart: no branch selected", spec.name)
            return None

        key = composite_key(spec.item_id, spec.customizations)
        line = self._find_by_key(key)
        if line is not None:
            line.quantity += 1
        else:
            line = CartItem(
                item_id=spec.item_id,
                name=spec.name,
                base_price=spec.base_price,
                quantity=1,
                customizations=spec.customizations,
                image_url=spec.image_url,
                note=spec.note,
            )
            self._items.append(line)

        return self._write_through(f"upsert {key}", self._upsert_row, line, self._row_fields(line))

    def remove_item(self, item_id: str, customizations: list[CartCustomization] | tuple = ()) -> asyncio.Task | None:
        line = self.find(item_id, customizations)
        if line is None:
            return None
        self._items.remove(line)
        return self._write_through(
            f"delete {line.composite_key}", self._delete_row, line, droppable=False
        )

    def increase_qty(self, item_id: str, customizations: list[CartCustomization] | tuple = ()) -> asyncio.Task | None:
        line = self.find(item_id, customizations)
        if line is None:
            return None
        line.quantity += 1
        return self._write_through(
            f"quantity {line.composite_key}", self._upsert_row, line, self._row_fields(line)
        )

    def decrease_qty(self, item_id: str, customizations: list[CartCustomization] | tuple = ()) -> asyncio.Task | None:
        line = self.find(item_id, customizations)
        if line is None:
            return None
        if line.quantity <= 1:
            self._items.remove(line)
            return self._write_through(
                f"delete {line.composite_key}", self._delete_row, line, droppable=False
            )
        line.quantity -= 1
        return self._write_through(
            f"quantity {line.composite_key}", self._upsert_row, line, self._row_fields(line)
        )

    def clear_cart(self) -> asyncio.Task | None:
        """Empty the cart locally and delete the remote rows behind it."""
        lines, self._items = self._items, []
        self._generation += 1
        if not lines:
            return None
        return self._write_through("clear", self._delete_rows, lines, droppable=False)

    # --- Reconciliation -------------------------------------------------------

    async def load_from_server(self) -> None:
        """Merge the user's open cart rows into the local cart.

        Server values win for lines present on both sides; local lines the
        server does not know about yet are kept, but lose a row id the
        server no longer has so the next write re-creates the row.

        Queued writes land first, so the read never sees rows a pending
        clear or delete is about to remove.
        """
        user_id = self._session.user_id
        if user_id is None:
            return

        while self._writes:
            await asyncio.gather(*list(self._writes))

        async with self._write_lock:
            generation = self._generation
            try:
                rows = await self._remote.list_documents(
                    self._collection, {"user_id": user_id, "is_checked_out": False}
                )
            except RemoteStoreError as exc:
                logger.warning("Could not load cart from server: %s", exc)
                return

        if generation != self._generation:
            logger.debug("Discarding cart reload issued before a clear")
            return

        listed = {row.get("id") for row in rows}
        for line in self._items:
            if line.cart_row_id is not None and line.cart_row_id not in listed:
                logger.info("Cart row %s is gone remotely; will re-create it", line.cart_row_id)
                line.cart_row_id = None

        for row in rows:
            incoming = cart_item_from_row(row)
            if incoming is None:
                continue
            existing = self._find_by_key(incoming.composite_key)
            if existing is None:
                self._items.append(incoming)
                continue
            existing.name = incoming.name
            existing.base_price = incoming.base_price
            existing.quantity = incoming.quantity
            existing.customizations = incoming.customizations
            existing.cart_row_id = incoming.cart_row_id
            existing.image_url = incoming.image_url
            existing.note = incoming.note

    def subscribe_to_change_feed(self) -> None:
        """Listen for cart changes made elsewhere; idempotent."""
        if self._unsubscribe is not None:
            return
        if self._session.user_id is None:
            logger.debug("Not subscribing to cart changes: signed out")
            return
        self._unsubscribe = self._remote.subscribe([self._collection], self._on_change)

    def _on_change(self, event: ChangeEvent) -> None:
        if event.action not in (ChangeAction.CREATE, ChangeAction.UPDATE, ChangeAction.DELETE):
            return
        user_id = self._session.user_id
        if user_id is None or event.payload.get("user_id") != user_id:
            return
        self._schedule_reload()

    def _schedule_reload(self) -> None:
        # Bursts of events collapse into one reload after the quiet period.
        if self._reload_timer is not None:
            self._reload_timer.cancel()
        loop = asyncio.get_running_loop()
        self._reload_timer = loop.call_later(self._reload_delay, self._start_reload)

    def _start_reload(self) -> None:
        self._reload_timer = None
        logger.info("Remote cart changed; reloading")
        self._track(asyncio.create_task(self.load_from_server()))

    # --- Lifecycle ------------------------------------------------------------

    async def flush(self) -> None:
        """Wait until every queued write and reload has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._reload_timer is not None:
            self._reload_timer.cancel()
            self._reload_timer = None
        await self.flush()

    # --- Write-through --------------------------------------------------------

    def _write_through(
        self,
        description: str,
        operation: Callable[..., Awaitable[None]],
        *args: Any,
        droppable: bool = True,
    ) -> asyncio.Task | None:
        """Queue *operation* behind earlier writes.

        A droppable write is skipped if the cart was cleared after it was
        issued.  Deletes are never droppable: removing a row is correct in
        any generation.
        """
        user_id = self._session.user_id
        if user_id is None:
            return None
        generation = self._generation if droppable else None
        task = asyncio.create_task(
            self._run_write(generation, user_id, description, operation, *args)
        )
        self._track(task)
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)
        return task

    async def _run_write(
        self,
        generation: int | None,
        user_id: str,
        description: str,
        operation: Callable[..., Awaitable[None]],
        *args: Any,
    ) -> None:
        async with self._write_lock:
            if generation is not None and generation != self._generation:
                logger.debug("Dropping stale cart write: %s", description)
                return
            try:
                await operation(user_id, *args)
            except RemoteStoreError as exc:
                logger.warning("Cart write failed (%s): %s", description, exc)

    async def _upsert_row(self, user_id: str, line: CartItem, fields: dict[str, Any]) -> None:
        row_id = line.cart_row_id
        if row_id is None:
            matches = await self._remote.list_documents(
                self._collection,
                {"user_id": user_id, "cart_key": fields["cart_key"], "is_checked_out": False},
            )
            if matches:
                row_id = matches[0]["id"]

        if row_id is None:
            row = await self._remote.create_document(self._collection, new_row_id(), fields)
            line.cart_row_id = row["id"]
            return

        try:
            await self._remote.update_document(
                self._collection,
                row_id,
                {"quantity": fields["quantity"], "total": fields["total"]},
            )
        except RemoteStoreError:
            # The row may be gone; the next write looks it up by key again.
            line.cart_row_id = None
            raise
        line.cart_row_id = row_id

    async def _delete_row(self, user_id: str, line: CartItem) -> None:
        if line.cart_row_id is None:
            return
        await self._remote.delete_document(self._collection, line.cart_row_id)

    async def _delete_rows(self, user_id: str, lines: list[CartItem]) -> None:
        # Row ids are read now, after earlier queued inserts back-filled them.
        failures = 0
        for line in lines:
            try:
                await self._delete_row(user_id, line)
            except RemoteStoreError as exc:
                failures += 1
                logger.warning("Could not delete cart row %s: %s", line.cart_row_id, exc)
        if failures:
            logger.warning("Cart clear left %d remote row(s) behind", failures)

    # --- Internal helpers -----------------------------------------------------

    def _row_fields(self, line: CartItem) -> dict[str, Any]:
        return cart_row_fields(self._session.user_id or "", line)

    def _find_by_key(self, key: str) -> CartItem | None:
        for item in self._items:
            if item.composite_key == key:
                return item
        return None

    def _track(self, task: asyncio.Task) -> None:
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _describe_context(self) -> str:
        return self._meta.branch_name or self._meta.branch_id or self._meta.country or "your previous branch"
