"""CLI command that serves the HTTP API."""

from __future__ import annotations

import click
import uvicorn

from storefront.infrastructure.http.app import create_app


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the checkout / webhook HTTP API."""
    uvicorn.run(create_app(), host=host, port=port)
