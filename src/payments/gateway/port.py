"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any fulfillment code. The gateway is only
read from: finalized checkout sessions, their line items and the
price/product catalog they reference.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CatalogProduct:
    """A product as stored in the payment processor's catalog."""

    id: str
    name: str = ""
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CatalogPrice:
    """A price with its product expanded (``product`` is None when it could not be)."""

    id: str
    product: CatalogProduct | None = None
    metadata: dict = field(default_factory=dict)
    unit_amount: int | None = None


@dataclass(frozen=True)
class CheckoutLineItem:
    product_id: str
    price_id: str
    quantity: int = 1


@dataclass(frozen=True)
class ShippingAddress:
    name: str = ""
    street1: str = ""
    street2: str = ""
    city: str = ""
    state_code: str = ""
    postcode: str = ""
    country_code: str = ""
    phone_number: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "street1": self.street1,
            "street2": self.street2,
            "city": self.city,
            "state_code": self.state_code,
            "postcode": self.postcode,
            "country_code": self.country_code,
            "phone_number": self.phone_number,
        }


@dataclass(frozen=True)
class CheckoutSession:
    """A completed checkout session, the immutable record every order is derived from."""

    id: str
    customer_email: str | None = None
    shipping_address: ShippingAddress | None = None
    line_items: tuple[CheckoutLineItem, ...] = ()
    metadata: dict = field(default_factory=dict)
    payment_status: str | None = None
    amount_total: int | None = None
    currency: str | None = None


@dataclass(frozen=True)
class PaymentEvent:
    """A verified webhook event from the gateway.

    ``object_type`` is ``checkout.session`` or ``payment_intent``;
    ``object_id`` is the id of that object.
    """

    id: str
    type: str
    object_type: str
    object_id: str


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_event(self, payload: str) -> PaymentEvent:
        """Parse a verified webhook payload.

        Raises:
            ValueError: if the payload is not a well-formed event.
        """
        ...

    @abstractmethod
    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession | None:
        """Fetch a checkout session with its line items and customer details."""
        ...

    @abstractmethod
    def find_checkout_session_id(self, payment_intent_id: str) -> str | None:
        """Return the checkout session that produced a payment intent."""
        ...

    @abstractmethod
    def retrieve_price(self, price_id: str) -> CatalogPrice | None:
        """Fetch a price with its product expanded."""
        ...
