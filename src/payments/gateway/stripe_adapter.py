"""Stripe payment gateway adapter.

Reads checkout sessions and the price/product catalog through the
stripe-python SDK. Every request goes through one ``StripeClient`` owned by
the adapter, with a bounded HTTP timeout. Price lookups are cached in a
bounded TTL cache because every line item of every order resolves its price.

SDK exceptions are translated into ``ExternalServiceError`` so callers never
see stripe types.
"""

import json

import stripe
import structlog

from payments.gateway.port import (
    CatalogPrice,
    CatalogProduct,
    CheckoutLineItem,
    CheckoutSession,
    PaymentEvent,
    PaymentGateway,
    ShippingAddress,
)
from shared.cache import TTLCache
from shared.errors import ExternalServiceError, ExternalServiceTimeout

logger = structlog.get_logger(__name__)

_SERVICE = "stripe"
_MAX_LINE_ITEMS = 100


def _get(obj, key: str, default=None):
    """Read a key from a StripeObject, a plain dict, or None."""
    if obj is None:
        return default
    value = obj.get(key) if hasattr(obj, "get") else getattr(obj, key, None)
    return default if value is None else value


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout_seconds: float = 15.0,
        price_cache: TTLCache | None = None,
        client: stripe.StripeClient | None = None,
    ) -> None:
        self.webhook_secret = webhook_secret
        self._client = client or stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout_seconds),
        )
        self._price_cache = price_cache or TTLCache(max_size=1000, ttl_seconds=300)

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        if not signature or not self.webhook_secret:
            return False
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning("Stripe signature verification failed", error=str(e))
            return False
        except ValueError as e:
            logger.warning("Stripe webhook payload is not valid JSON", error=str(e))
            return False
        return True

    def parse_event(self, payload: str) -> PaymentEvent:
        try:
            body = json.loads(payload)
            obj = body["data"]["object"]
            return PaymentEvent(
                id=str(body["id"]),
                type=str(body["type"]),
                object_type=str(obj["object"]),
                object_id=str(obj["id"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise ValueError(f"Malformed Stripe event: {exc}") from exc

    # -------------------------------------------------------------------
    # Checkout sessions
    # -------------------------------------------------------------------
    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession | None:
        try:
            session = self._client.v1.checkout.sessions.retrieve(session_id)
            items = self._client.v1.checkout.sessions.line_items.list(
                session_id,
                params={"limit": _MAX_LINE_ITEMS},
            )
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                return None
            raise self._translate(e) from e
        except stripe.StripeError as e:
            raise self._translate(e) from e

        details = _get(session, "customer_details")
        address = _get(details, "address")
        shipping_address = None
        if address is not None:
            shipping_address = ShippingAddress(
                name=_get(details, "name", ""),
                street1=_get(address, "line1", ""),
                street2=_get(address, "line2", ""),
                city=_get(address, "city", ""),
                state_code=_get(address, "state", ""),
                postcode=_get(address, "postal_code", ""),
                country_code=_get(address, "country", ""),
                phone_number=_get(details, "phone", ""),
            )

        return CheckoutSession(
            id=session_id,
            customer_email=_get(details, "email") or _get(session, "customer_email"),
            shipping_address=shipping_address,
            line_items=tuple(self._line_item(item) for item in _get(items, "data", [])),
            metadata=dict(_get(session, "metadata", {})),
            payment_status=_get(session, "payment_status"),
            amount_total=_get(session, "amount_total"),
            currency=_get(session, "currency"),
        )

    def find_checkout_session_id(self, payment_intent_id: str) -> str | None:
        try:
            result = self._client.v1.checkout.sessions.list(
                params={"payment_intent": payment_intent_id, "limit": 1},
            )
        except stripe.StripeError as e:
            raise self._translate(e) from e
        data = _get(result, "data", [])
        return _get(data[0], "id") if data else None

    # -------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------
    def retrieve_price(self, price_id: str) -> CatalogPrice | None:
        cache_key = f"price:{price_id}"
        cached = self._price_cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            price = self._client.v1.prices.retrieve(price_id, params={"expand": ["product"]})
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                return None
            raise self._translate(e) from e
        except stripe.StripeError as e:
            raise self._translate(e) from e

        product = _get(price, "product")
        catalog_product = None
        # An unexpanded product is returned as its bare id
        if product is not None and not isinstance(product, str):
            catalog_product = CatalogProduct(
                id=_get(product, "id", ""),
                name=_get(product, "name", ""),
                metadata=dict(_get(product, "metadata", {})),
            )

        result = CatalogPrice(
            id=_get(price, "id", price_id),
            product=catalog_product,
            metadata=dict(_get(price, "metadata", {})),
            unit_amount=_get(price, "unit_amount"),
        )
        self._price_cache.set(cache_key, result)
        return result

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _line_item(item) -> CheckoutLineItem:
        price = _get(item, "price")
        product = _get(price, "product", "")
        product_id = product if isinstance(product, str) else _get(product, "id", "")
        return CheckoutLineItem(
            product_id=product_id,
            price_id=_get(price, "id", ""),
            quantity=_get(item, "quantity", 1),
        )

    @staticmethod
    def _translate(error: stripe.StripeError) -> ExternalServiceError:
        logger.error("Stripe request failed", error=str(error), code=getattr(error, "code", None))
        if isinstance(error, stripe.APIConnectionError):
            return ExternalServiceTimeout(_SERVICE, str(error))
        return ExternalServiceError(
            _SERVICE,
            str(error),
            retryable=isinstance(error, stripe.RateLimitError),
            status_code=getattr(error, "http_status", None),
        )
