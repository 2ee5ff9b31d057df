"""Application service: Resolve Fulfillment use case.

Location -> deliverable branch -> cart metadata.  Coordinates the
Location Store, the branch selector and the Cart Engine.
"""

from __future__ import annotations

import logging

from cartsync.application.cart_engine import CartEngine
from cartsync.application.location_store import LocationStore
from cartsync.application.rows import branch_from_row
from cartsync.domain.exceptions import RemoteStoreError
from cartsync.domain.model.branch import Branch, RankedBranch
from cartsync.domain.model.cart import CartMeta
from cartsync.domain.repository.remote_store import BRANCH_COLLECTION, RemoteStore
from cartsync.domain.service.branch_selector import DeliveryRules, select_best_branch

logger = logging.getLogger(__name__)


class ResolveFulfillmentHandler:

    def __init__(
        self,
        remote: RemoteStore,
        location_store: LocationStore,
        cart: CartEngine,
        rules: DeliveryRules | None = None,
    ) -> None:
        self._remote = remote
        self._location_store = location_store
        self._cart = cart
        self._rules = rules or DeliveryRules()

    async def handle(self) -> RankedBranch | None:
        """Pick the branch serving the active location and bind the cart to it.

        Steps:
        1. Read the active country and coordinate (selection beats detection).
        2. Fetch that country's branches.
        3. Select the closest deliverable one.
        4. Record deliverability and hand the context to the cart.
        """
        country = self._location_store.get_active_country()
        coordinate = self._location_store.get_active_coordinate()
        if country is None or coordinate is None:
            self._location_store.set_is_deliverable(False)
            return None

        branches = await self._branches_for(country)
        if not branches:
            logger.info("No branches in %s", country)
            self._location_store.set_is_deliverable(False)
            return None

        best = select_best_branch(branches, coordinate, self._rules)
        if best is None:
            self._location_store.set_is_deliverable(False)
            return None

        self._location_store.set_is_deliverable(True)
        self._cart.set_cart_meta(
            CartMeta(branch_id=best.id, branch_name=best.name, country=best.country)
        )
        return best

    async def _branches_for(self, country: str) -> list[Branch]:
        try:
            rows = await self._remote.list_documents(BRANCH_COLLECTION, {"country": country})
        except RemoteStoreError as exc:
            logger.warning("Could not fetch branches for %s: %s", country, exc)
            return []

        branches: list[Branch] = []
        for row in rows:
            try:
                branches.append(branch_from_row(row))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed branch %s: %s", row.get("id"), exc)
        return branches
