"""CLI commands for the cart."""

from __future__ import annotations

import click

from cartsync.application.dto import CartDTO, CartItemSpec
from cartsync.application.show_cart import ShowCartHandler
from cartsync.domain.exceptions import DomainException
from cartsync.domain.model.value_objects import Money
from cartsync.infrastructure.cli.common import extras_option, parse_extras, run_with_context


def _display_cart(dto: CartDTO) -> None:
    where = dto.branch_name or "no branch selected"
    click.echo(f"Cart  ({where}{', ' + dto.country if dto.country else ''})")
    if not dto.items:
        click.echo("  Cart is empty.")
        return

    click.echo(f"  {'Item':<20} {'Qty':>5} {'Each':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(f"  {item.name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}")
        for extra in item.extras:
            click.echo(f"    + {extra}")
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Items':<20} {dto.total_items:>5} {dto.total:>21}")


async def _show(app) -> CartDTO:
    return ShowCartHandler(app.cart).handle()


@click.command("show")
@click.pass_obj
def cart_show(settings) -> None:
    """Show the current cart."""
    _display_cart(run_with_context(settings, _show))


@click.command("add")
@click.option("--item", "item_id", required=True, help="Menu item ID.")
@click.option("--name", required=True, help="Menu item name.")
@click.option("--price", required=True, help="Base price (e.g. 5.00).")
@extras_option
@click.pass_obj
def cart_add(settings, item_id: str, name: str, price: str, extras: tuple[str, ...]) -> None:
    """Add one unit of an item to the cart."""
    try:
        spec = CartItemSpec(
            item_id=item_id,
            name=name,
            base_price=Money.of(price),
            customizations=parse_extras(extras),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    async def action(app) -> CartDTO:
        if not app.cart.cart_meta.branch_id:
            raise click.ClickException("No branch delivers to your location; select a location first.")
        app.cart.add_item(spec)
        await app.cart.flush()
        return ShowCartHandler(app.cart).handle()

    _display_cart(run_with_context(settings, action))


def _line_command(name: str, help_text: str, method: str) -> click.Command:
    @click.command(name, help=help_text)
    @click.option("--item", "item_id", required=True, help="Menu item ID.")
    @extras_option
    @click.pass_obj
    def command(settings, item_id: str, extras: tuple[str, ...]) -> None:
        customizations = parse_extras(extras)

        async def action(app) -> CartDTO:
            if app.cart.find(item_id, customizations) is None:
                click.echo(f"No matching line for '{item_id}'; nothing changed.")
            getattr(app.cart, method)(item_id, customizations)
            await app.cart.flush()
            return ShowCartHandler(app.cart).handle()

        _display_cart(run_with_context(settings, action))

    return command


cart_remove = _line_command("remove", "Remove a cart line.", "remove_item")
cart_increase = _line_command("inc", "Increase a cart line's quantity by one.", "increase_qty")
cart_decrease = _line_command("dec", "Decrease a cart line's quantity by one.", "decrease_qty")


@click.command("clear")
@click.pass_obj
def cart_clear(settings) -> None:
    """Remove every line from the cart."""

    async def action(app) -> None:
        app.cart.clear_cart()
        await app.cart.flush()

    run_with_context(settings, action)
    click.echo("Cart cleared.")
