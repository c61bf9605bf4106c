"""Configurable fake payment gateway for development and testing.

This adapter simulates the payment processor without any external calls.
Tests seed it with catalog products, prices and completed checkout sessions;
every lookup is recorded in ``calls`` so tests can assert on side effects.

Webhook signatures are accepted only when equal to ``test-signature``.
"""

import json

from payments.gateway.port import (
    CatalogPrice,
    CatalogProduct,
    CheckoutSession,
    PaymentEvent,
    PaymentGateway,
)


class FakeGateway(PaymentGateway):
    """In-memory payment gateway."""

    def __init__(self) -> None:
        self.products: dict[str, CatalogProduct] = {}
        self.prices: dict[str, CatalogPrice] = {}
        self.sessions: dict[str, CheckoutSession] = {}
        self.payment_intents: dict[str, str] = {}
        self.calls: list[dict] = []

    # -------------------------------------------------------------------
    # Seeding helpers
    # -------------------------------------------------------------------
    def add_product(self, product_id: str, name: str = "", **metadata: str) -> CatalogProduct:
        product = CatalogProduct(id=product_id, name=name, metadata=dict(metadata))
        self.products[product_id] = product
        return product

    def add_price(
        self,
        price_id: str,
        product: CatalogProduct | None,
        unit_amount: int | None = None,
        **metadata: str,
    ) -> CatalogPrice:
        price = CatalogPrice(id=price_id, product=product, metadata=dict(metadata), unit_amount=unit_amount)
        self.prices[price_id] = price
        return price

    def add_session(self, session: CheckoutSession, payment_intent_id: str | None = None) -> CheckoutSession:
        self.sessions[session.id] = session
        if payment_intent_id:
            self.payment_intents[payment_intent_id] = session.id
        return session

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"

    def parse_event(self, payload: str) -> PaymentEvent:
        try:
            body = json.loads(payload)
            obj = body["data"]["object"]
            return PaymentEvent(
                id=str(body.get("id", "")),
                type=str(body["type"]),
                object_type=str(obj["object"]),
                object_id=str(obj["id"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise ValueError(f"Malformed payment event: {exc}") from exc

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession | None:
        self.calls.append({"method": "retrieve_checkout_session", "session_id": session_id})
        return self.sessions.get(session_id)

    def find_checkout_session_id(self, payment_intent_id: str) -> str | None:
        self.calls.append({"method": "find_checkout_session_id", "payment_intent_id": payment_intent_id})
        return self.payment_intents.get(payment_intent_id)

    def retrieve_price(self, price_id: str) -> CatalogPrice | None:
        self.calls.append({"method": "retrieve_price", "price_id": price_id})
        return self.prices.get(price_id)
