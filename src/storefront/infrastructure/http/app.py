"""FastAPI application factory.

Every response uses the same envelope::

    {"success": bool, "message": str, "data": ..., "errors": {...}}

Domain exceptions are translated to status codes here so route
functions only deal with the happy path.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.domain.exceptions import DomainException, ValidationError
from storefront.domain.repository.unit_of_work import UnitOfWorkFactory
from storefront.domain.service.payment_gateway import PaymentGateway
from storefront.infrastructure.config import Settings
from storefront.infrastructure.http.responses import fail, status_code_for
from storefront.infrastructure.http.routes import router, webhook_router


def create_app(
    settings: Settings | None = None,
    uow_factory: UnitOfWorkFactory | None = None,
    payment_gateway: PaymentGateway | None = None,
) -> FastAPI:
    """Build the API; missing collaborators come from the composition root."""
    if settings is None or uow_factory is None or payment_gateway is None:
        from storefront.infrastructure import bootstrap

        settings = settings or bootstrap.load_settings()
        uow_factory = uow_factory or bootstrap.unit_of_work_factory(settings)
        payment_gateway = payment_gateway or bootstrap.payment_gateway(settings)

    app = FastAPI(title="Storefront")
    app.state.settings = settings
    app.state.uow_factory = uow_factory
    app.state.payment_gateway = payment_gateway

    app.include_router(router)
    app.include_router(webhook_router)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        errors = exc.errors if isinstance(exc, ValidationError) else None
        return fail(status_code_for(exc), str(exc), errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ()) if part != "body"]
            errors.setdefault(".".join(loc) or "body", []).append(error.get("msg", "Invalid value"))
        return fail(422, "Validation failed", errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = fail(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "service": "storefront"}

    return app
