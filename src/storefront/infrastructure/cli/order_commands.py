"""CLI commands for checkout and the Order aggregate."""

from __future__ import annotations

import click

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.checkout import CheckoutHandler
from storefront.application.checkout_summary import CheckoutSummaryHandler
from storefront.application.complete_payment import CompletePaymentHandler
from storefront.application.delete_order import DeleteOrderHandler
from storefront.application.dto import OrderDTO, OrderItemSpec
from storefront.application.show_order import ListOrdersHandler, ShowOrderHandler
from storefront.application.show_payment_status import ShowPaymentStatusHandler
from storefront.domain.exceptions import DomainException, ValidationError
from storefront.domain.service.payment_gateway import Buyer
from storefront.infrastructure.bootstrap import (
    load_settings,
    payment_gateway,
    unit_of_work_factory,
)

user_option = click.option(
    "--user",
    "user_id",
    required=True,
    envvar="STOREFRONT_USER",
    help="Acting user id (or set STOREFRONT_USER).",
)


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse '1:3,2:5' (product id : quantity) into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _fail(exc: DomainException) -> click.ClickException:
    message = str(exc)
    if isinstance(exc, ValidationError) and exc.errors:
        details = "; ".join(
            f"{field}: {' '.join(messages)}" for field, messages in exc.errors.items()
        )
        message = f"{message} ({details})"
    return click.ClickException(message)


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"User:     {dto.user_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.payment_type or dto.transaction_id:
        click.echo(f"Payment:  {dto.payment_type or '-'} / {dto.transaction_id or '-'}")
    click.echo()
    click.echo(f"  {'#':>4} {'Product':<20} {'Qty':>5} {'Price':>12} {'Subtotal':>12}")
    click.echo(f"  {'-'*57}")
    for item in dto.items:
        click.echo(
            f"  {item.id:>4} {item.product_name:<20} {item.quantity:>5} "
            f"{item.unit_price:>12} {item.subtotal:>12}"
        )
    click.echo(f"  {'-'*57}")
    click.echo(f"  {'Order Total (' + dto.currency + ')':<31} {dto.total_price:>26}")


@click.command("checkout")
@user_option
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@click.option("--name", default=None, help="Buyer name sent to the payment page.")
@click.option("--email", default=None, help="Buyer email sent to the payment page.")
def order_checkout(user_id: str, items: str, name: str | None, email: str | None) -> None:
    """Check out a cart: create the order, reserve stock, start payment."""
    specs = _parse_items(items)
    settings = load_settings()

    handler = CheckoutHandler(
        uow_factory=unit_of_work_factory(settings),
        payment_gateway=payment_gateway(settings),
    )

    try:
        result = handler.handle(Buyer(user_id=user_id, name=name, email=email), specs)
    except DomainException as exc:
        raise _fail(exc)

    _display_order(result.order)
    click.echo()
    click.echo(f"Snap token:  {result.payment.snap_token}")
    click.echo(f"Payment URL: {result.payment.payment_url}")


@click.command("summary")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
def order_summary(items: str) -> None:
    """Preview a cart without reserving anything."""
    handler = CheckoutSummaryHandler(unit_of_work_factory(load_settings()))

    try:
        summary = handler.handle(_parse_items(items))
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>12} {'Subtotal':>12} {'Stock':>7}")
    click.echo(f"  {'-'*60}")
    for line in summary.items:
        flag = "" if line.stock_sufficient else "  (insufficient stock)"
        click.echo(
            f"  {line.product_name:<20} {line.quantity:>5} {line.product_price:>12} "
            f"{line.subtotal:>12} {line.stock_available:>7}{flag}"
        )
    click.echo(f"  {'-'*60}")
    click.echo(f"  {'Total':<20} {summary.total_quantity:>5} {summary.total_price:>25}")
    for error in summary.errors:
        click.echo(f"  ! {error}")
    if not summary.success:
        raise click.ClickException("Some items have issues")


@click.command("show")
@user_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(user_id: str, order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(unit_of_work_factory(load_settings()))

    try:
        dto = handler.handle(order_id, user_id)
    except DomainException as exc:
        raise _fail(exc)

    _display_order(dto)


@click.command("list")
@user_option
def order_list(user_id: str) -> None:
    """List the user's orders, newest first."""
    orders = ListOrdersHandler(unit_of_work_factory(load_settings())).handle(user_id)

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<6} {'Status':<10} {'Payment':<8} {'Total':>14}  Created")
    click.echo("-" * 66)
    for dto in orders:
        click.echo(
            f"{dto.id:<6} {dto.status:<10} {dto.payment_status:<8} {dto.total_price:>14}  {dto.created_at}"
        )


@click.command("status")
@user_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_status(user_id: str, order_id: int) -> None:
    """Show the payment status of an order."""
    handler = ShowPaymentStatusHandler(unit_of_work_factory(load_settings()))

    try:
        dto = handler.handle(order_id, user_id)
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{dto.order_id}: status={dto.status}, payment={dto.payment_status}")
    click.echo(f"Amount:      {dto.total_amount or '-'}")
    click.echo(f"Type:        {dto.payment_type or '-'}")
    click.echo(f"Transaction: {dto.transaction_id or '-'}")


@click.command("cancel")
@user_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
def order_cancel(user_id: str, order_id: int) -> None:
    """Cancel an unpaid order (restores its stock)."""
    handler = CancelOrderHandler(unit_of_work_factory(load_settings()))

    try:
        handler.handle(order_id, user_id)
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{order_id} cancelled, stock restored.")


@click.command("pay")
@user_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to mark as paid.")
@click.option("--type", "payment_type", default=None, help="Payment type (default: manual).")
@click.option("--transaction", "transaction_id", default=None, help="Transaction reference.")
def order_pay(user_id: str, order_id: int, payment_type: str | None, transaction_id: str | None) -> None:
    """Complete payment of an unpaid order manually."""
    handler = CompletePaymentHandler(unit_of_work_factory(load_settings()))

    try:
        dto = handler.handle(order_id, user_id, payment_type=payment_type, transaction_id=transaction_id)
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{order_id} paid ({dto.payment_type}, {dto.transaction_id}).")


@click.command("delete")
@user_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to delete.")
def order_delete(user_id: str, order_id: int) -> None:
    """Delete a pending order and its line items."""
    handler = DeleteOrderHandler(unit_of_work_factory(load_settings()))

    try:
        handler.handle(order_id, user_id)
    except DomainException as exc:
        raise _fail(exc)

    click.echo(f"Order #{order_id} deleted.")
