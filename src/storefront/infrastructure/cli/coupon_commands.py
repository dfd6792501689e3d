"""CLI commands for coupons."""

from __future__ import annotations

import click

from storefront.application.apply_coupon import ApplyCouponHandler
from storefront.application.check_coupon import CheckCouponHandler
from storefront.application.list_active_coupons import ListActiveCouponsHandler
from storefront.application.remove_coupon import RemoveCouponHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    cart_repository,
    coupon_repository,
    order_repository,
    unit_of_work,
)
from storefront.infrastructure.cli.cart_commands import display_cart


@click.command("apply")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
@click.option("--code", required=True, help="Coupon code (case-insensitive).")
def coupon_apply(cart_id: int, code: str) -> None:
    """Apply a coupon to a cart."""
    handler = ApplyCouponHandler(
        cart_repo=cart_repository(),
        coupon_repo=coupon_repository(),
        order_repo=order_repository(),
        uow=unit_of_work(),
    )

    try:
        dto = handler.handle(cart_id, code)
    except DomainException as exc:
        raise click.ClickException(f"{exc} ({exc.code})")

    display_cart(dto)


@click.command("remove")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
def coupon_remove(cart_id: int) -> None:
    """Remove the coupon from a cart."""
    handler = RemoveCouponHandler(cart_repo=cart_repository(), uow=unit_of_work())

    try:
        handler.handle(cart_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Coupon removed from cart #{cart_id}.")


@click.command("check")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
@click.option("--code", required=True, help="Coupon code (case-insensitive).")
def coupon_check(cart_id: int, code: str) -> None:
    """Dry-run a coupon against a cart."""
    handler = CheckCouponHandler(
        cart_repo=cart_repository(),
        coupon_repo=coupon_repository(),
        order_repo=order_repository(),
    )

    try:
        report = handler.handle(cart_id, code)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not report.exists:
        click.echo(f"Coupon {report.code} does not exist.")
        return
    for name, passed in report.checks.items():
        click.echo(f"  {name:<24} {'yes' if passed else 'NO'}")
    if report.is_applicable:
        click.echo(f"{report.code} ({report.description}) would save {report.discount}.")
    else:
        click.echo(f"{report.code} cannot be applied: {report.reason}")


@click.command("list")
@click.option("--site", "site_id", default=1, show_default=True, type=int, help="Site ID.")
def coupon_list(site_id: int) -> None:
    """List the coupons usable on a site right now."""
    rows = ListActiveCouponsHandler(coupon_repo=coupon_repository()).handle(site_id)

    if not rows:
        click.echo("No active coupons.")
        return

    click.echo(f"{'Code':<14} {'Offer':<16} {'Used':>5} {'Left':>6}  Valid until")
    click.echo("-" * 64)
    for r in rows:
        left = "-" if r.remaining_usages is None else str(r.remaining_usages)
        click.echo(
            f"{r.code:<14} {r.description:<16} {r.usage_count:>5} {left:>6}  "
            f"{r.valid_until or 'no end date'}"
        )
