"""Store fulfillment FastAPI application.

Receives payment and print provider webhooks, and serves the order
administration and storefront helper endpoints. Every ``/store`` request
runs inside the fulfillment domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fulfillment.api import register_fulfillment_exception_handlers, store_router
from fulfillment.domain import fulfillment
from fulfillment.services import FulfillmentServices, build_services
from fulfillment.utils.logging import clear_context

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the domain.toml overlay (memory in development,
# PostgreSQL in production).
fulfillment.init()


def create_app(services: FulfillmentServices | None = None) -> FastAPI:
    app = FastAPI(
        title="Store Fulfillment API",
        description="Print-on-demand and digital fulfillment for bookstore orders",
    )
    app.state.services = services or build_services()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the fulfillment domain context for store requests."""
        if not request.url.path.startswith("/store"):
            return await call_next(request)
        try:
            with fulfillment.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    app.include_router(store_router)
    register_fulfillment_exception_handlers(app)

    @app.get("/health")
    async def health():
        settings = app.state.services.settings
        return JSONResponse(
            content={
                "status": "ok",
                "domain": fulfillment.name,
                "adapters": {
                    "payment_gateway": settings.payment_gateway,
                    "print_provider": settings.print_provider,
                    "license_service": settings.license_service,
                    "email": settings.email_adapter,
                },
            }
        )

    return app


app = create_app()
