import click

from storefront.infrastructure.cli.order_commands import (
    order_cancel,
    order_checkout,
    order_delete,
    order_list,
    order_pay,
    order_show,
    order_status,
    order_summary,
)
from storefront.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_stock,
    product_update,
)
from storefront.infrastructure.cli.server_commands import serve
from storefront.infrastructure.cli.webhook_commands import webhook_replay


@click.group()
def cli() -> None:
    """Storefront: catalog, checkout and payment reconciliation"""


@cli.group()
def order() -> None:
    """Check out and manage orders."""


@cli.group()
def product() -> None:
    """Manage the product catalog and stock."""


@cli.group()
def webhook() -> None:
    """Process payment provider notifications."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_checkout)
order.add_command(order_delete)
order.add_command(order_list)
order.add_command(order_pay)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_summary)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_stock)
product.add_command(product_update)
webhook.add_command(webhook_replay)
cli.add_command(serve)
