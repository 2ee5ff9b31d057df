"""CLI commands for the delivery location."""

from __future__ import annotations

import click

from cartsync.application.detect_location import DetectLocationHandler
from cartsync.domain.model.location import SelectedLocation
from cartsync.domain.model.value_objects import Coordinate
from cartsync.infrastructure.cli.common import run_with_context
from cartsync.infrastructure.geolocation.fixed_geolocator import FixedGeolocator


def _describe(app) -> None:
    selected = app.location.selected
    if selected is None:
        click.echo("No location selected.")
    else:
        click.echo(f"Selected: {selected.name or '-'} ({selected.country}) at {selected.coordinate}")
    branch = app.cart.cart_meta
    if branch.branch_id:
        click.echo(f"Delivering from: {branch.branch_name} ({branch.branch_id})")
    elif app.location.is_deliverable is False:
        click.echo("No branch delivers to this location.")


@click.command("show")
@click.pass_obj
def location_show(settings) -> None:
    """Show the selected location and the branch serving it."""

    async def action(app) -> None:
        _describe(app)

    run_with_context(settings, action)


@click.command("select")
@click.option("--country", required=True, help="Country name.")
@click.option("--name", default="", help="Display name (e.g. street or area).")
@click.option("--lat", type=float, required=True, help="Latitude.")
@click.option("--lng", type=float, required=True, help="Longitude.")
@click.pass_obj
def location_select(settings, country: str, name: str, lat: float, lng: float) -> None:
    """Select a delivery location (may clear the cart)."""

    async def action(app) -> None:
        await app.location.set_selected(
            SelectedLocation(country=country, name=name, coordinate=Coordinate(lat, lng))
        )
        await app.fulfillment.handle()
        await app.cart.flush()
        _describe(app)

    run_with_context(settings, action)


@click.command("clear")
@click.pass_obj
def location_clear(settings) -> None:
    """Forget the selected location."""

    async def action(app) -> None:
        await app.location.clear_selected()

    run_with_context(settings, action, start=False)
    click.echo("Selected location cleared.")


@click.command("detect")
@click.option("--lat", type=float, default=None, help="Reported latitude.")
@click.option("--lng", type=float, default=None, help="Reported longitude.")
@click.option("--country", default=None, help="Reported country.")
@click.option("--mode", type=click.Choice(["full", "country-only"]), default="full")
@click.option("--denied", is_flag=True, default=False, help="Simulate a denied permission.")
@click.pass_obj
def location_detect(settings, lat, lng, country, mode: str, denied: bool) -> None:
    """Run location detection against a reported position."""
    coordinate = Coordinate(lat, lng) if lat is not None and lng is not None else None
    geolocator = FixedGeolocator(coordinate, country=country, granted=not denied)

    async def action(app):
        await app.location.hydrate()
        return await DetectLocationHandler(geolocator, app.location).handle(mode)

    result = run_with_context(settings, action, start=False)
    if not result.granted:
        click.echo("Location unavailable" + (f": {result.error}" if result.error else "."))
        return
    where = f" at {result.coordinate}" if result.coordinate else ""
    click.echo(f"Detected {result.country}{where}")
