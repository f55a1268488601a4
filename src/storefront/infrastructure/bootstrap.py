"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import partial

from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.infrastructure.config import Settings
from storefront.infrastructure.logging_setup import configure_logging
from storefront.infrastructure.payment.midtrans_gateway import MidtransGateway
from storefront.infrastructure.persistence.json_unit_of_work import JsonUnitOfWork


def load_settings() -> Settings:
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_json)
    return settings


def unit_of_work_factory(settings: Settings) -> UnitOfWorkFactory:
    return partial(JsonUnitOfWork, settings.data_dir)


def payment_gateway(settings: Settings) -> MidtransGateway:
    return MidtransGateway(
        server_key=settings.midtrans_server_key,
        is_production=settings.midtrans_is_production,
        timeout=settings.midtrans_timeout,
    )
