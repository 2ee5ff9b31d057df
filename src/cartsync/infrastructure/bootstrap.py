"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every store and engine is built once here and handed to its users.
"""

from __future__ import annotations

from dataclasses import dataclass

from cartsync.application.board_manager import BoardManager
from cartsync.application.cart_engine import CartEngine, Notifier
from cartsync.application.location_store import LocationStore
from cartsync.application.resolve_fulfillment import ResolveFulfillmentHandler
from cartsync.application.session import Session
from cartsync.domain.repository.remote_store import RemoteStore
from cartsync.infrastructure.config import Settings
from cartsync.infrastructure.persistence.json_location_storage import JsonLocationStorage
from cartsync.infrastructure.persistence.json_remote_store import JsonRemoteStore


@dataclass
class AppContext:
    settings: Settings
    session: Session
    remote: RemoteStore
    cart: CartEngine
    boards: BoardManager
    location: LocationStore
    fulfillment: ResolveFulfillmentHandler

    async def start(self) -> None:
        """Restore location, bind the cart to a branch, then sync it."""
        await self.location.hydrate()
        await self.fulfillment.handle()
        await self.cart.load_from_server()
        self.cart.subscribe_to_change_feed()

    async def stop(self) -> None:
        await self.cart.close()


def build_context(settings: Settings, notify: Notifier | None = None) -> AppContext:
    session = Session(user_id=settings.user_id)
    remote = JsonRemoteStore(settings.store_file)
    cart = CartEngine(remote, session, notify=notify, reload_delay=settings.reload_delay)
    location = LocationStore(
        JsonLocationStorage(settings.location_file),
        listeners=[cart.on_location_selected],
    )
    return AppContext(
        settings=settings,
        session=session,
        remote=remote,
        cart=cart,
        boards=BoardManager(remote, session, cart),
        location=location,
        fulfillment=ResolveFulfillmentHandler(remote, location, cart, settings.delivery),
    )
