"""CLI command to feed a stored provider notification through the reconciler."""

from __future__ import annotations

import json

import click

from storefront.application.dto import PaymentNotification
from storefront.application.handle_payment_notification import PaymentNotificationHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    load_settings,
    payment_gateway,
    unit_of_work_factory,
)


@click.command("replay")
@click.argument("payload_file", type=click.File("r", encoding="utf-8"))
def webhook_replay(payload_file) -> None:
    """Process a notification JSON file as if the provider had sent it."""
    try:
        payload = json.load(payload_file)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON: {exc}")

    settings = load_settings()
    handler = PaymentNotificationHandler(
        uow_factory=unit_of_work_factory(settings),
        payment_gateway=payment_gateway(settings),
    )

    try:
        result = handler.handle(PaymentNotification.from_payload(payload))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Order #{result.order_id}: {result.outcome} "
        f"(status={result.status}, payment={result.payment_status})"
    )
