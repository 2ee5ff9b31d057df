"""CLI commands for fulfillment branches."""

from __future__ import annotations

import click

from cartsync.application.rows import branch_from_row, branch_row_fields
from cartsync.domain.model.branch import Branch
from cartsync.domain.model.value_objects import Coordinate
from cartsync.domain.repository.remote_store import BRANCH_COLLECTION
from cartsync.domain.service.branch_selector import rank_branches
from cartsync.infrastructure.cli.common import run_with_context


@click.command("add")
@click.option("--id", "branch_id", required=True, help="Branch ID.")
@click.option("--name", required=True, help="Branch name.")
@click.option("--country", required=True, help="Country.")
@click.option("--city", default="", help="City.")
@click.option("--lat", type=float, required=True, help="Latitude.")
@click.option("--lng", type=float, required=True, help="Longitude.")
@click.option("--radius", type=float, required=True, help="Delivery radius in km.")
@click.pass_obj
def branch_add(settings, branch_id, name, country, city, lat, lng, radius) -> None:
    """Register a branch."""
    branch = Branch(
        id=branch_id,
        country=country,
        city=city,
        name=name,
        coordinate=Coordinate(lat, lng),
        delivery_radius_km=radius,
    )

    async def action(app) -> None:
        await app.remote.create_document(BRANCH_COLLECTION, branch.id, branch_row_fields(branch))

    run_with_context(settings, action, start=False)
    click.echo(f"Branch '{name}' added ({branch_id})")


@click.command("rank")
@click.option("--country", required=True, help="Country to search.")
@click.option("--lat", type=float, required=True, help="Latitude.")
@click.option("--lng", type=float, required=True, help="Longitude.")
@click.pass_obj
def branch_rank(settings, country: str, lat: float, lng: float) -> None:
    """Rank a country's branches by distance from a point."""

    async def action(app):
        rows = await app.remote.list_documents(BRANCH_COLLECTION, {"country": country})
        return [branch_from_row(row) for row in rows]

    branches = run_with_context(settings, action, start=False)
    if not branches:
        click.echo(f"No branches found in {country}.")
        return

    ranked = sorted(
        rank_branches(branches, Coordinate(lat, lng), settings.delivery),
        key=lambda rb: rb.distance_km,
    )
    click.echo(f"{'ID':<12} {'Name':<20} {'km':>8} {'ETA min':>8} {'Delivers':>9}")
    click.echo("-" * 61)
    for rb in ranked:
        click.echo(
            f"{rb.id:<12} {rb.name:<20} {rb.distance_km:>8.2f} {rb.eta_minutes:>8.0f} "
            f"{'yes' if rb.deliverable else 'no':>9}"
        )
