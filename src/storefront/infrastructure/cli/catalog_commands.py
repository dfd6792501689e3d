"""CLI commands for the catalog."""

from __future__ import annotations

import click

from storefront.application.list_variants import ListVariantsHandler
from storefront.infrastructure.bootstrap import variant_repository


@click.command("list")
@click.option("--all", "include_inactive", is_flag=True, default=False, help="Include inactive variants.")
def catalog_list(include_inactive: bool) -> None:
    """List catalog variants with stock and prices."""
    handler = ListVariantsHandler(variant_repo=variant_repository())
    lines = handler.handle(include_inactive=include_inactive)

    if not lines:
        click.echo("No variants found.")
        return

    click.echo(f"{'ID':<6} {'SKU':<14} {'Name':<30} {'Avail':>6} {'Status':<13} Prices")
    click.echo("-" * 90)
    for v in lines:
        prices = "; ".join(f"{key} {value}" for key, value in v.prices.items())
        click.echo(
            f"{v.id:<6} {v.sku:<14} {v.name:<30} {v.available:>6} {v.stock_status:<13} {prices}"
        )
