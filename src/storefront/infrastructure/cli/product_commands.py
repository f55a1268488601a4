"""CLI commands for the Product aggregate and its stock."""

from __future__ import annotations

import click

from storefront.application.add_product import AddProductHandler
from storefront.application.set_stock import SetStockHandler
from storefront.application.show_stock import ShowStockHandler
from storefront.application.update_product import UpdateProductHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import load_settings, unit_of_work_factory


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15000.00).")
@click.option("--stock", default=0, show_default=True, type=int, help="Initial stock.")
@click.option("--description", default=None, help="Optional description.")
def product_add(name: str, price: str, stock: int, description: str | None) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(unit_of_work_factory(load_settings()))

    try:
        product = handler.handle(name=name, price=price, stock=stock, description=description)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' added at {product.price} (stock {product.stock})")


@click.command("list")
def product_list() -> None:
    """List all products with their stock levels."""
    lines = ShowStockHandler(unit_of_work_factory(load_settings())).handle()

    if not lines:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>12} {'Stock':>8}")
    click.echo("-" * 49)
    for line in lines:
        click.echo(f"{line.product_id:<6} {line.product_name:<20} {line.price:>12} {line.stock:>8}")


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", required=True, help="New price (e.g. 29000.00).")
def product_update(product_id: str, price: str) -> None:
    """Update a product's price."""
    handler = UpdateProductHandler(unit_of_work_factory(load_settings()))

    try:
        product = handler.handle(product_id=product_id, new_price=price)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product_id} price updated to {product.price}")


@click.command("stock")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units in stock.")
def product_stock(product_id: str, quantity: int) -> None:
    """Set the stock level of a product."""
    handler = SetStockHandler(unit_of_work_factory(load_settings()))

    try:
        handler.handle(product_id=product_id, quantity=quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Stock for product #{product_id} set to {quantity}")
