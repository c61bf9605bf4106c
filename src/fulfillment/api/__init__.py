"""Store fulfillment API package."""

from fulfillment.api.errors import register_fulfillment_exception_handlers
from fulfillment.api.routes import store_router

__all__ = ["store_router", "register_fulfillment_exception_handlers"]
