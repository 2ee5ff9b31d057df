import logging
from dataclasses import replace
from pathlib import Path

import click

from cartsync.infrastructure.cli.board_commands import (
    board_archive,
    board_create,
    board_list,
    board_reuse,
    board_use,
    board_use_all,
)
from cartsync.infrastructure.cli.branch_commands import branch_add, branch_rank
from cartsync.infrastructure.cli.cart_commands import (
    cart_add,
    cart_clear,
    cart_decrease,
    cart_increase,
    cart_remove,
    cart_show,
)
from cartsync.infrastructure.cli.location_commands import (
    location_clear,
    location_detect,
    location_select,
    location_show,
)
from cartsync.infrastructure.config import ConfigurationError, Settings


@click.group()
@click.option("--user", default=None, help="Signed-in user ID (or CARTSYNC_USER).")
@click.option("--data-dir", type=click.Path(path_type=Path), default=None, help="Data directory.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log at INFO level.")
@click.pass_context
def cli(ctx: click.Context, user: str | None, data_dir: Path | None, verbose: bool) -> None:
    """cartsync — location-aware cart consistency engine"""
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))

    if user:
        settings = replace(settings, user_id=user)
    if data_dir:
        settings = replace(settings, data_dir=data_dir)

    logging.basicConfig(
        level=logging.INFO if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@cli.group()
def cart() -> None:
    """Manage the cart."""


@cli.group()
def board() -> None:
    """Manage saved customization boards."""


@cli.group()
def location() -> None:
    """Manage the delivery location."""


@cli.group()
def branch() -> None:
    """Manage fulfillment branches."""


# Register subcommands
cart.add_command(cart_add)
cart.add_command(cart_clear)
cart.add_command(cart_decrease)
cart.add_command(cart_increase)
cart.add_command(cart_remove)
cart.add_command(cart_show)
board.add_command(board_archive)
board.add_command(board_create)
board.add_command(board_list)
board.add_command(board_reuse)
board.add_command(board_use)
board.add_command(board_use_all)
location.add_command(location_clear)
location.add_command(location_detect)
location.add_command(location_select)
location.add_command(location_show)
branch.add_command(branch_add)
branch.add_command(branch_rank)
