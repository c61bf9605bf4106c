"""Payment gateway factory.

``build_gateway(settings)`` returns the adapter selected by
``PAYMENT_GATEWAY``:
- FakeGateway for development and testing
- StripeGateway for production
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from shared.cache import TTLCache


def build_gateway(settings) -> PaymentGateway:
    """Create the payment gateway adapter named in ``settings.payment_gateway``."""
    if settings.payment_gateway == "fake":
        return FakeGateway()
    if settings.payment_gateway == "stripe":
        from payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            timeout_seconds=settings.external_timeout_seconds,
            price_cache=TTLCache(
                max_size=settings.catalog_cache_max_entries,
                ttl_seconds=settings.catalog_cache_ttl_seconds,
            ),
        )
    raise ValueError(f"Unknown payment gateway: {settings.payment_gateway}")
