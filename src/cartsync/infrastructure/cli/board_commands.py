"""CLI commands for saved customization boards."""

from __future__ import annotations

import click

from cartsync.application.dto import BoardPayload, MenuItemRef
from cartsync.domain.model.board import Board
from cartsync.domain.model.value_objects import Money
from cartsync.infrastructure.cli.common import extras_option, parse_extras, run_with_context


def _display_boards(boards: list[Board]) -> None:
    if not boards:
        click.echo("No boards found.")
        return

    click.echo(f"{'ID':<34} {'Name':<18} {'Item':<12} {'Status':<9} {'Extras':>8}")
    click.echo("-" * 85)
    for b in boards:
        click.echo(
            f"{b.id:<34} {b.name:<18} {b.item_id:<12} {b.status.value:<9} {str(b.extras_total):>8}"
        )


def _menu_item(board: Board, price: str, name: str | None) -> MenuItemRef:
    return MenuItemRef(
        id=board.item_id,
        name=name or board.item_name or board.item_id,
        base_price=Money.of(price),
        image_url=board.item_image,
    )


@click.command("list")
@click.option("--item", "item_id", default=None, help="Only boards for this menu item.")
@click.pass_obj
def board_list(settings, item_id: str | None) -> None:
    """List your saved boards."""

    async def action(app) -> list[Board]:
        return await app.boards.list_for_item(item_id)

    _display_boards(run_with_context(settings, action, start=False))


@click.command("create")
@click.option("--item", "item_id", required=True, help="Menu item ID.")
@click.option("--name", required=True, help="Board name.")
@click.option("--item-name", default="", help="Menu item display name.")
@extras_option
@click.pass_obj
def board_create(settings, item_id: str, name: str, item_name: str, extras: tuple[str, ...]) -> None:
    """Save a new board of customizations."""
    payload = BoardPayload(
        item_id=item_id,
        name=name,
        customizations=parse_extras(extras),
        item_name=item_name,
    )

    async def action(app) -> Board:
        return await app.boards.create(payload)

    board = run_with_context(settings, action, start=False)
    click.echo(f"Board '{board.name}' saved ({board.id})")


@click.command("use")
@click.option("--id", "board_id", required=True, help="Board ID.")
@click.option("--price", required=True, help="Menu item base price.")
@click.option("--name", default=None, help="Menu item name (defaults to the board's).")
@click.pass_obj
def board_use(settings, board_id: str, price: str, name: str | None) -> None:
    """Add a board to the cart."""

    async def action(app) -> Board:
        await app.boards.list_for_item()
        board = app.boards.get(board_id)
        await app.boards.consume_into_cart(board, _menu_item(board, price, name))
        await app.cart.flush()
        return board

    board = run_with_context(settings, action)
    click.echo(f"Board '{board.name}' added to cart.")


@click.command("use-all")
@click.option("--item", "item_id", required=True, help="Menu item ID.")
@click.option("--price", required=True, help="Menu item base price.")
@click.option("--name", default=None, help="Menu item name.")
@click.pass_obj
def board_use_all(settings, item_id: str, price: str, name: str | None) -> None:
    """Add every active board for an item to the cart."""

    async def action(app):
        boards = await app.boards.list_for_item(item_id)
        active = [b for b in boards if b.is_active and not b.archived]
        if not active:
            return None
        report = await app.boards.consume_all(active, _menu_item(active[0], price, name))
        await app.cart.flush()
        return report

    report = run_with_context(settings, action)
    if report is None:
        click.echo("No active boards for this item.")
        return
    click.echo(f"{len(report.consumed)} board(s) added to cart.")
    for failure in report.failed:
        click.secho(f"  {failure.board_id}: {failure.reason}", fg="red", err=True)


def _transition_command(name: str, help_text: str, method: str, done: str) -> click.Command:
    @click.command(name, help=help_text)
    @click.option("--id", "board_id", required=True, help="Board ID.")
    @click.pass_obj
    def command(settings, board_id: str) -> None:
        async def action(app) -> Board:
            await app.boards.list_for_item()
            board = app.boards.get(board_id)
            return await getattr(app.boards, method)(board)

        board = run_with_context(settings, action, start=False)
        click.echo(f"Board '{board.name}' {done}.")

    return command


board_reuse = _transition_command("reuse", "Make a used board active again.", "reuse", "reactivated")
board_archive = _transition_command("archive", "Archive a board.", "archive", "archived")
