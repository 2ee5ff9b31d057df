"""Board Lifecycle Manager — saved customization presets for one user.

Owns the list of boards shown on one screen and keeps it in step with the
Remote Store.  State rules live on the ``Board`` aggregate; this class
orchestrates them with the cart and persistence.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from cartsync.application.cart_engine import CartEngine
from cartsync.application.dto import (
    BoardFailure,
    BoardPayload,
    CartItemSpec,
    ConsumeReport,
    MenuItemRef,
)
from cartsync.application.rows import board_from_row, board_row_fields, new_row_id
from cartsync.application.session import Session
from cartsync.domain.exceptions import (
    AuthenticationRequiredError,
    DomainException,
    EntityNotFoundError,
    RemoteStoreError,
    ValidationError,
)
from cartsync.domain.model.board import Board, BoardStatus
from cartsync.domain.repository.remote_store import BOARD_COLLECTION, RemoteStore

logger = logging.getLogger(__name__)

STATE_FIELDS = ("isActive", "archived", "lastUsedAt")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BoardManager:

    def __init__(
        self,
        remote: RemoteStore,
        session: Session,
        cart: CartEngine,
        clock: Callable[[], datetime] = _utcnow,
        collection: str = BOARD_COLLECTION,
    ) -> None:
        self._remote = remote
        self._session = session
        self._cart = cart
        self._clock = clock
        self._collection = collection
        self._boards: list[Board] = []

    @property
    def boards(self) -> list[Board]:
        return list(self._boards)

    def active_boards(self) -> list[Board]:
        return [b for b in self._boards if b.status == BoardStatus.ACTIVE]

    def get(self, board_id: str) -> Board:
        for board in self._boards:
            if board.id == board_id:
                return board
        raise EntityNotFoundError(f"Board '{board_id}' not found")

    # --- Queries --------------------------------------------------------------

    async def list_for_item(self, item_id: str | None = None) -> list[Board]:
        """Fetch the user's boards, optionally for one catalog item.

        A failed read logs and yields an empty list.
        """
        user_id = self._require_user()
        filters: dict[str, Any] = {"userId": user_id}
        if item_id:
            filters["itemId"] = item_id

        try:
            rows = await self._remote.list_documents(self._collection, filters)
        except RemoteStoreError as exc:
            logger.warning("Failed to fetch boards: %s", exc)
            return []

        boards: list[Board] = []
        for row in rows:
            try:
                boards.append(board_from_row(row))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed board %s: %s", row.get("id"), exc)
        self._boards = boards
        return self.boards

    # --- Editing --------------------------------------------------------------

    async def create(self, payload: BoardPayload) -> Board:
        """Save a new ACTIVE board.  Remote failures propagate."""
        user_id = self._require_user()
        if not payload.name or not payload.name.strip():
            raise ValidationError("Board name is required")

        board = Board(
            id="",
            owner_id=user_id,
            item_id=payload.item_id,
            name=payload.name.strip(),
            customizations=payload.customizations,
            item_name=payload.item_name,
            item_image=payload.item_image,
        )
        row = await self._remote.create_document(
            self._collection, new_row_id(), board_row_fields(board)
        )
        created = board_from_row(row)
        self._boards.append(created)
        return created

    async def update(self, board_id: str, payload: BoardPayload) -> Board:
        """Replace a board's content; its state is left as it was.

        Only the owner's boards can be edited; anyone else's board is
        reported as not found.
        """
        user_id = self._require_user()
        if not payload.name or not payload.name.strip():
            raise ValidationError("Board name is required")

        owned = await self._remote.list_documents(
            self._collection, {"id": board_id, "userId": user_id}
        )
        if not owned:
            raise EntityNotFoundError(f"Board '{board_id}' not found")

        draft = Board(
            id=board_id,
            owner_id=user_id,
            item_id=payload.item_id,
            name=payload.name.strip(),
            customizations=payload.customizations,
            item_name=payload.item_name,
            item_image=payload.item_image,
        )
        fields = {
            key: value
            for key, value in board_row_fields(draft).items()
            if key not in STATE_FIELDS
        }

        row = await self._remote.update_document(self._collection, board_id, fields)
        updated = board_from_row(row)
        self._replace(updated)
        return updated

    # --- State transitions ----------------------------------------------------

    async def consume_into_cart(self, board: Board, menu_item: MenuItemRef) -> Board:
        """Add the board's preset to the cart and mark it used.

        An identical cart line is incremented rather than duplicated; the
        board is spent either way.
        """
        self._require_user()
        if menu_item.id != board.item_id:
            raise ValidationError(
                f"Board '{board.name}' belongs to item '{board.item_id}', not '{menu_item.id}'"
            )
        if not self._cart.cart_meta.branch_id:
            raise ValidationError("Select a delivery branch before adding boards to the cart")

        board.consume(self._clock())
        self._cart.add_item(
            CartItemSpec(
                item_id=board.item_id,
                name=menu_item.name,
                base_price=menu_item.base_price,
                customizations=board.customizations,
                image_url=menu_item.image_url,
            )
        )
        await self._persist_status(board)
        return board

    async def reuse(self, board: Board) -> Board:
        board.reactivate()
        await self._persist_status(board)
        return board

    async def archive(self, board: Board) -> Board:
        board.archive()
        await self._persist_status(board)
        return board

    async def consume_all(self, boards: list[Board], menu_item: MenuItemRef) -> ConsumeReport:
        """Consume every ACTIVE board independently; report the ones that failed."""
        report = ConsumeReport()
        for board in boards:
            if board.status != BoardStatus.ACTIVE:
                continue
            try:
                await self.consume_into_cart(board, menu_item)
            except DomainException as exc:
                logger.warning("Board %s not added to cart: %s", board.id, exc)
                report.failed.append(BoardFailure(board_id=board.id, reason=str(exc)))
            else:
                report.consumed.append(board)
        return report

    # --- Internal helpers -----------------------------------------------------

    async def _persist_status(self, board: Board) -> None:
        self._replace(board)
        fields = {
            "isActive": board.is_active,
            "archived": board.archived,
        }
        if board.last_used_at is not None:
            fields["lastUsedAt"] = board.last_used_at.isoformat()
        try:
            await self._remote.update_document(self._collection, board.id, fields)
        except RemoteStoreError as exc:
            logger.warning("Failed to update board %s status: %s", board.id, exc)

    def _replace(self, board: Board) -> None:
        for i, existing in enumerate(self._boards):
            if existing.id == board.id:
                self._boards[i] = board
                return
        self._boards.append(board)

    def _require_user(self) -> str:
        if self._session.user_id is None:
            raise AuthenticationRequiredError("Sign in to use saved boards")
        return self._session.user_id
