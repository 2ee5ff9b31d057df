"""Helpers shared by the CLI command modules."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import click

from cartsync.domain.exceptions import DomainException, ValidationError
from cartsync.domain.model.customization import CartCustomization
from cartsync.domain.model.value_objects import Money
from cartsync.infrastructure.bootstrap import AppContext, build_context
from cartsync.infrastructure.config import Settings

T = TypeVar("T")

extras_option = click.option(
    "--extra",
    "extras",
    multiple=True,
    help="Customization as 'id:name:price[:qty]' (repeatable).",
)


def _notice(message: str) -> None:
    click.secho(message, fg="yellow", err=True)


def run_with_context(
    settings: Settings,
    action: Callable[[AppContext], Awaitable[T]],
    start: bool = True,
) -> T:
    """Build the app, run *action* on a fresh event loop, tear it down.

    Domain errors become ``click.ClickException`` so they print cleanly.
    """

    async def main() -> T:
        app = build_context(settings, notify=_notice)
        try:
            if start:
                await app.start()
            return await action(app)
        finally:
            await app.stop()

    try:
        return asyncio.run(main())
    except DomainException as exc:
        raise click.ClickException(str(exc))


def parse_extras(raw: tuple[str, ...]) -> tuple[CartCustomization, ...]:
    """Parse ('cheese:Cheese:1.00', 'bacon:Bacon:2:2') into customizations."""
    result: list[CartCustomization] = []
    for entry in raw:
        parts = entry.split(":")
        if len(parts) not in (3, 4):
            raise click.BadParameter(
                f"Invalid extra '{entry}'. Expected 'id:name:price[:qty]'."
            )
        cid, name, price = parts[:3]
        try:
            quantity = int(parts[3]) if len(parts) == 4 else 1
            result.append(
                CartCustomization(id=cid, name=name, price=Money.of(price), quantity=quantity)
            )
        except (ValueError, ValidationError) as exc:
            raise click.BadParameter(f"Invalid extra '{entry}': {exc}")
    return tuple(result)
