"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import click

from storefront.application.change_order_status import ChangeOrderStatusHandler
from storefront.application.checkout import CheckoutHandler
from storefront.application.dto import CustomerInfo, OrderDTO
from storefront.application.list_orders import ListSiteOrdersHandler, ListUserOrdersHandler
from storefront.application.order_statistics import OrderStatisticsHandler
from storefront.application.show_order import ShowOrderHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.order_status import ActorType
from storefront.domain.model.value_objects import DEFAULT_CURRENCY
from storefront.infrastructure.bootstrap import (
    cart_repository,
    coupon_repository,
    order_repository,
    unit_of_work,
    variant_repository,
)
from storefront.utils.clock import utcnow


def _status_handler() -> ChangeOrderStatusHandler:
    return ChangeOrderStatusHandler(
        order_repo=order_repository(),
        variant_repo=variant_repository(),
        uow=unit_of_work(),
    )


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.reference}  (#{dto.id}, status={dto.status})")
    click.echo(f"Created:  {dto.created_at}")
    click.echo()
    click.echo(f"  {'Product':<30} {'Qty':>5} {'Price':>12} {'Tax':>12} {'Total':>12}")
    click.echo(f"  {'-'*74}")
    for item in dto.items:
        click.echo(
            f"  {item.display_name:<30} {item.quantity:>5} {item.unit_price:>12} "
            f"{item.tax:>12} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*74}")
    click.echo(f"  {'Subtotal':<48} {dto.subtotal:>26}")
    if dto.coupon_code:
        click.echo(f"  {'Discount (' + dto.coupon_code + ')':<48} {dto.discount:>26}")
    click.echo(f"  {'Tax':<48} {dto.tax:>26}")
    click.echo(f"  {'Shipping':<48} {dto.shipping:>26}")
    click.echo(f"  {'Order Total':<48} {dto.grand_total:>26}")

    if dto.history:
        click.echo()
        click.echo("History:")
        for entry in dto.history:
            click.echo(f"  {entry.created_at}  {entry.description}")


def _run(action, success: str) -> None:
    """Run a status change and report it the same way for every command."""
    try:
        dto = action()
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Order {dto.reference} {success} (status={dto.status}).")


@click.command("checkout")
@click.option("--cart", "cart_id", required=True, type=int, help="Cart ID.")
@click.option("--name", required=True, help="Recipient name.")
@click.option("--street", required=True, help="Street address.")
@click.option("--city", required=True, help="City.")
@click.option("--postcode", required=True, help="Postal code.")
@click.option("--country", default="FR", show_default=True, help="Country code.")
@click.option("--email", default=None, help="Customer email (registered users).")
@click.option("--message", default=None, help="Message for the shop.")
def order_checkout(
    cart_id: int,
    name: str,
    street: str,
    city: str,
    postcode: str,
    country: str,
    email: str | None,
    message: str | None,
) -> None:
    """Turn a cart into an order (billing address = shipping address)."""
    address = {
        "name": name,
        "street": street,
        "city": city,
        "postcode": postcode,
        "country": country,
    }
    handler = CheckoutHandler(
        cart_repo=cart_repository(),
        variant_repo=variant_repository(),
        coupon_repo=coupon_repository(),
        order_repo=order_repository(),
        uow=unit_of_work(),
    )

    try:
        dto = handler.handle(
            cart_id,
            shipping_address=address,
            billing_address=address,
            customer=CustomerInfo(email=email) if email else None,
            customer_message=message,
        )
    except DomainException as exc:
        raise click.ClickException(f"{exc} ({exc.code})")

    click.echo(f"Order {dto.reference} created  (status={dto.status})")
    click.echo()
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", type=int, default=None, help="Order ID to display.")
@click.option("--ref", "reference", default=None, help="Order reference to display.")
def order_show(order_id: int | None, reference: str | None) -> None:
    """Show details of an existing order."""
    if order_id is None and reference is None:
        raise click.UsageError("Give --id or --ref.")
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id=order_id, reference=reference)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--user", "user_id", type=int, default=None, help="List this user's orders.")
@click.option("--site", "site_id", type=int, default=None, help="List this site's orders.")
@click.option("--limit", default=20, show_default=True, type=int, help="Maximum rows.")
def order_list(user_id: int | None, site_id: int | None, limit: int) -> None:
    """List a user's or a site's orders, newest first."""
    if (user_id is None) == (site_id is None):
        raise click.UsageError("Give exactly one of --user or --site.")
    if user_id is not None:
        rows = ListUserOrdersHandler(order_repo=order_repository()).handle(user_id, limit)
    else:
        rows = ListSiteOrdersHandler(order_repo=order_repository()).handle(site_id, limit)

    if not rows:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Reference':<15} {'Status':<12} {'Items':>6} {'Total':>14}  Created")
    click.echo("-" * 80)
    for r in rows:
        click.echo(
            f"{r.id:<6} {r.reference:<15} {r.status:<12} {r.items_count:>6} "
            f"{r.grand_total:>14}  {r.created_at}"
        )


@click.command("stats")
@click.option("--from", "start", type=click.DateTime(["%Y-%m-%d"]), default=None,
              help="First day (default: first day of this month).")
@click.option("--to", "end", type=click.DateTime(["%Y-%m-%d"]), default=None,
              help="Last day, inclusive (default: today).")
@click.option("--site", "site_id", type=int, default=None, help="Restrict to one site.")
@click.option("--currency", default=DEFAULT_CURRENCY, show_default=True, help="Report currency.")
def order_stats(
    start: datetime | None,
    end: datetime | None,
    site_id: int | None,
    currency: str,
) -> None:
    """Revenue, paid orders and the status breakdown for a period."""
    today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    start = start.replace(tzinfo=timezone.utc) if start else today.replace(day=1)
    last_day = end.replace(tzinfo=timezone.utc) if end else today
    end = last_day + timedelta(days=1) - timedelta(microseconds=1)

    try:
        dto = OrderStatisticsHandler(order_repo=order_repository()).handle(
            start, end, site_id, currency.upper()
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    scope = f"site #{dto.site_id}" if dto.site_id is not None else "all sites"
    click.echo(f"Orders from {start:%Y-%m-%d} to {last_day:%Y-%m-%d} ({scope})")
    click.echo(f"  Paid orders:         {dto.total_orders}")
    click.echo(f"  Revenue:             {dto.total_revenue}")
    click.echo(f"  Average order value: {dto.average_order_value}")
    click.echo("  By status:")
    for status, count in dto.status_distribution.items():
        click.echo(f"    {status:<12} {count:>5}")
    click.echo(f"    {'total':<12} {dto.status_total:>5}")


@click.command("confirm")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--transaction", default=None, help="Payment transaction ID.")
def order_confirm(order_id: int, transaction: str | None) -> None:
    """Record a confirmed payment (takes the items out of stock)."""
    metadata = {"transaction_id": transaction} if transaction else None
    _run(lambda: _status_handler().confirm_payment(order_id, metadata), "confirmed")


@click.command("process")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--admin", "admin_id", type=int, default=None, help="Admin user ID.")
def order_process(order_id: int, admin_id: int | None) -> None:
    """Start preparing an order."""
    _run(lambda: _status_handler().mark_as_processing(order_id, admin_id), "is processing")


@click.command("ship")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--tracking", default=None, help="Tracking number.")
@click.option("--carrier", default=None, help="Carrier name.")
@click.option("--admin", "admin_id", type=int, default=None, help="Admin user ID.")
def order_ship(
    order_id: int, tracking: str | None, carrier: str | None, admin_id: int | None
) -> None:
    """Mark an order as shipped."""
    _run(
        lambda: _status_handler().mark_as_shipped(order_id, tracking, carrier, admin_id),
        "shipped",
    )


@click.command("deliver")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--admin", "admin_id", type=int, default=None, help="Admin user ID.")
def order_deliver(order_id: int, admin_id: int | None) -> None:
    """Mark an order as delivered."""
    _run(lambda: _status_handler().mark_as_delivered(order_id, admin_id), "delivered")


@click.command("complete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_complete(order_id: int) -> None:
    """Close a delivered order."""
    _run(lambda: _status_handler().mark_as_completed(order_id), "completed")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--reason", default=None, help="Why the order is cancelled.")
@click.option("--admin", "admin_id", type=int, default=None, help="Cancel as this admin.")
def order_cancel(order_id: int, reason: str | None, admin_id: int | None) -> None:
    """Cancel an order (puts the items back in stock)."""
    actor_type = ActorType.ADMIN if admin_id is not None else ActorType.CUSTOMER
    _run(
        lambda: _status_handler().cancel_order(order_id, reason, admin_id, actor_type),
        "cancelled",
    )


@click.command("refund")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--reason", default=None, help="Why the order is refunded.")
@click.option("--admin", "admin_id", type=int, default=None, help="Admin user ID.")
def order_refund(order_id: int, reason: str | None, admin_id: int | None) -> None:
    """Refund an order (puts the items back in stock)."""
    _run(lambda: _status_handler().refund_order(order_id, reason, admin_id), "refunded")


@click.command("hold")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--reason", required=True, help="Why the order is put on hold.")
@click.option("--admin", "admin_id", type=int, default=None, help="Admin user ID.")
def order_hold(order_id: int, reason: str, admin_id: int | None) -> None:
    """Put an order on hold."""
    _run(lambda: _status_handler().put_on_hold(order_id, reason, admin_id), "put on hold")


@click.command("fail")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--reason", default=None, help="Failure reason.")
def order_fail(order_id: int, reason: str | None) -> None:
    """Mark a pending order as failed (payment refused)."""
    _run(lambda: _status_handler().mark_as_failed(order_id, reason), "failed")
