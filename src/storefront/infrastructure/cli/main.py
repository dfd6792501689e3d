from __future__ import annotations

from pathlib import Path

import click

from storefront.infrastructure.bootstrap import configure_store
from storefront.infrastructure.cli.cart_commands import (
    cart_add,
    cart_clear,
    cart_merge,
    cart_open,
    cart_remove,
    cart_show,
    cart_sweep,
    cart_sync_prices,
    cart_update,
    cart_validate,
)
from storefront.infrastructure.cli.catalog_commands import catalog_list
from storefront.infrastructure.cli.coupon_commands import (
    coupon_apply,
    coupon_check,
    coupon_list,
    coupon_remove,
)
from storefront.infrastructure.cli.order_commands import (
    order_cancel,
    order_checkout,
    order_complete,
    order_confirm,
    order_deliver,
    order_fail,
    order_hold,
    order_list,
    order_process,
    order_refund,
    order_ship,
    order_show,
    order_stats,
)
from storefront.utils import settings
from storefront.utils.logging import configure_logging


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the JSON data files (default: $STOREFRONT_DATA_DIR).",
)
@click.option("--log-level", default=None, help="Logging level (default: $STOREFRONT_LOG_LEVEL).")
def cli(data_dir: Path | None, log_level: str | None) -> None:
    """Storefront — carts, coupons and orders"""
    configure_logging(log_level or settings.LOG_LEVEL)
    if data_dir is not None:
        configure_store(data_dir)


@cli.group()
def catalog() -> None:
    """Browse the catalog."""


@cli.group()
def cart() -> None:
    """Manage shopping carts."""


@cli.group()
def coupon() -> None:
    """Apply and check coupons."""


@cli.group()
def order() -> None:
    """Check out and manage orders."""


# Register subcommands
catalog.add_command(catalog_list)
cart.add_command(cart_add)
cart.add_command(cart_clear)
cart.add_command(cart_merge)
cart.add_command(cart_open)
cart.add_command(cart_remove)
cart.add_command(cart_show)
cart.add_command(cart_sweep)
cart.add_command(cart_sync_prices)
cart.add_command(cart_update)
cart.add_command(cart_validate)
coupon.add_command(coupon_apply)
coupon.add_command(coupon_check)
coupon.add_command(coupon_list)
coupon.add_command(coupon_remove)
order.add_command(order_cancel)
order.add_command(order_checkout)
order.add_command(order_complete)
order.add_command(order_confirm)
order.add_command(order_deliver)
order.add_command(order_fail)
order.add_command(order_hold)
order.add_command(order_list)
order.add_command(order_process)
order.add_command(order_refund)
order.add_command(order_ship)
order.add_command(order_show)
order.add_command(order_stats)
