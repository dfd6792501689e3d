"""CLI commands for the Cart aggregate."""

from __future__ import annotations

import click

from storefront.application.add_cart_item import AddCartItemHandler
from storefront.application.cleanup_expired_carts import CleanupExpiredCartsHandler
from storefront.application.clear_cart import ClearCartHandler
from storefront.application.dto import CartDTO
from storefront.application.get_or_create_cart import GetOrCreateCartHandler
from storefront.application.merge_guest_cart import MergeGuestCartHandler
from storefront.application.remove_cart_item import RemoveCartItemHandler
from storefront.application.show_cart import ShowCartHandler
from storefront.application.sync_cart_prices import SyncCartPricesHandler
from storefront.application.update_cart_item import UpdateCartItemHandler
from storefront.application.validate_cart import ValidateCartHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.owner import GuestOwner, Owner, UserOwner
from storefront.infrastructure.bootstrap import (
    cart_repository,
    unit_of_work,
    variant_repository,
)


def _owner(user_id: int | None, token: str | None) -> Owner | None:
    if user_id is not None and token is not None:
        raise click.BadParameter("Use either --user or --token, not both.")
    if user_id is not None:
        return UserOwner(user_id)
    if token is not None:
        return GuestOwner(token)
    return None


def display_cart(dto: CartDTO) -> None:
    """Shared formatting for displaying a cart."""
    click.echo(f"Cart #{dto.id}  ({dto.owner}, {dto.customer_type} {dto.currency})")
    click.echo(f"Expires:  {dto.expires_at}")
    click.echo()

    if dto.is_empty:
        click.echo("  (empty)")
    else:
        click.echo(f"  {'Line':<6} {'Product':<30} {'Qty':>5} {'Price':>12} {'Total':>12}")
        click.echo(f"  {'-'*69}")
        for item in dto.items:
            click.echo(
                f"  {item.id:<6} {item.display_name:<30} {item.quantity:>5} "
                f"{item.unit_price:>12} {item.line_total:>12}"
            )
        click.echo(f"  {'-'*69}")

    click.echo(f"  {'Subtotal':<43} {dto.subtotal:>26}")
    if dto.coupon_code:
        click.echo(f"  {'Discount (' + dto.coupon_code + ')':<43} {dto.discount:>26}")
    click.echo(f"  {'Shipping':<43} {dto.shipping:>26}")
    click.echo(f"  {'Total':<43} {dto.total:>26}")


@click.command("open")
@click.option("--site", "site_id", required=True, type=int, help="Site ID.")
@click.option("--user", "user_id", type=int, default=None, help="Registered user ID.")
@click.option("--token", default=None, help="Guest session token.")
@click.option("--currency", default="EUR", show_default=True, help="Cart currency.")
@click.option("--customer-type", default="B2C", show_default=True, help="B2C or B2B.")
def cart_open(
    site_id: int,
    user_id: int | None,
    token: str | None,
    currency: str,
    customer_type: str,
) -> None:
    """Get the owner's cart, or open a new one (a guest cart without owner)."""
    handler = GetOrCreateCartHandler(cart_repo=cart_repository(), uow=unit_of_work())

    try:
        result = handler.handle(
            site_id=site_id,
            owner=_owner(user_id, token),
            currency=currency,
            customer_type=customer_type,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result.is_new:
        click.echo(f"Cart #{result.cart.id} opened.")
    if result.session_token:
        click.echo(f"Guest token: {result.session_token}")
    display_cart(result.cart)


@click.command("show")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
def cart_show(cart_id: int) -> None:
    """Show a cart and its totals."""
    handler = ShowCartHandler(cart_repo=cart_repository())

    try:
        dto = handler.handle(cart_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("add")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
@click.option("--variant", "variant_id", required=True, type=int, help="Variant ID.")
@click.option("--qty", "quantity", default=1, show_default=True, type=int, help="Quantity.")
@click.option("--message", default=None, help="Custom message for the line.")
def cart_add(cart_id: int, variant_id: int, quantity: int, message: str | None) -> None:
    """Add a variant to a cart."""
    handler = AddCartItemHandler(
        cart_repo=cart_repository(),
        variant_repo=variant_repository(),
        uow=unit_of_work(),
    )

    try:
        dto = handler.handle(cart_id, variant_id, quantity, custom_message=message)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("update")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
@click.option("--item", "item_id", required=True, type=int, help="Cart line ID.")
@click.option("--qty", "quantity", required=True, type=int, help="New quantity.")
def cart_update(cart_id: int, item_id: int, quantity: int) -> None:
    """Change the quantity of a cart line."""
    handler = UpdateCartItemHandler(
        cart_repo=cart_repository(),
        variant_repo=variant_repository(),
        uow=unit_of_work(),
    )

    try:
        dto = handler.handle(cart_id, item_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("remove")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
@click.option("--item", "item_id", required=True, type=int, help="Cart line ID.")
def cart_remove(cart_id: int, item_id: int) -> None:
    """Remove a line from a cart."""
    handler = RemoveCartItemHandler(cart_repo=cart_repository(), uow=unit_of_work())

    try:
        dto = handler.handle(cart_id, item_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_cart(dto)


@click.command("clear")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
def cart_clear(cart_id: int) -> None:
    """Remove every line from a cart."""
    handler = ClearCartHandler(cart_repo=cart_repository(), uow=unit_of_work())

    try:
        handler.handle(cart_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Cart #{cart_id} cleared.")


@click.command("validate")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
def cart_validate(cart_id: int) -> None:
    """Report what would block a checkout."""
    handler = ValidateCartHandler(
        cart_repo=cart_repository(),
        variant_repo=variant_repository(),
    )

    try:
        report = handler.handle(cart_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for line in report.lines:
        status = ", ".join(line.issues) if line.issues else "ok"
        click.echo(f"  #{line.item_id:<5} {line.display_name:<30} {status}")
    if report.is_valid_for_checkout:
        click.echo("Cart is ready for checkout.")
    else:
        click.echo("Cart cannot be checked out yet.")


@click.command("sync-prices")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
def cart_sync_prices(cart_id: int) -> None:
    """Accept current catalog prices for every changed line."""
    handler = SyncCartPricesHandler(
        cart_repo=cart_repository(),
        variant_repo=variant_repository(),
        uow=unit_of_work(),
    )

    try:
        updates = handler.handle(cart_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not updates:
        click.echo("All prices are up to date.")
        return
    for update in updates:
        click.echo(f"  {update.display_name}: {update.old_price} -> {update.new_price}")


@click.command("merge")
@click.option("--site", "site_id", required=True, type=int, help="Site ID.")
@click.option("--token", required=True, help="Guest session token.")
@click.option("--user", "user_id", required=True, type=int, help="User who just logged in.")
def cart_merge(site_id: int, token: str, user_id: int) -> None:
    """Merge a guest cart into the user's cart after login."""
    handler = MergeGuestCartHandler(
        cart_repo=cart_repository(),
        variant_repo=variant_repository(),
        uow=unit_of_work(),
    )

    try:
        dto = handler.handle(site_id, token, user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if dto is None:
        click.echo("Nothing to merge.")
        return
    display_cart(dto)


@click.command("sweep")
@click.option(
    "--empty-days",
    type=int,
    default=None,
    help="Only delete empty carts expired for at least this many days.",
)
def cart_sweep(empty_days: int | None) -> None:
    """Delete expired carts."""
    handler = CleanupExpiredCartsHandler(cart_repo=cart_repository(), uow=unit_of_work())
    report = handler.handle(empty_older_than_days=empty_days)
    click.echo(
        f"Deleted {report.expired_deleted} expired and {report.empty_deleted} empty carts."
    )
