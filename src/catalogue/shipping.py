"""Shipping option resolution for a cart.

Quotes come from the print provider for the printable books in the cart.
Carts made only of digital items never need shipping, so they short-circuit
to the ``DIGITAL_DELIVERY_ONLY`` sentinel without a provider call.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import structlog
from protean.exceptions import ValidationError

from catalogue.line_items import BookItem, DigitalItem, classify_item, resolve_line_items
from fulfillment.printer.port import PrintProvider, ShippingQuote, ShippingQuoteLineItem
from fulfillment.printer.printables import pod_package_id
from payments.gateway.port import CheckoutLineItem, PaymentGateway, ShippingAddress

logger = structlog.get_logger(__name__)

DIGITAL_DELIVERY_ONLY = "digital_delivery_only"


@dataclass(frozen=True)
class ShippingOption:
    id: str
    level: str
    cost_cents: int
    currency: str
    total_days_min: int | None
    total_days_max: int | None


def _cost_cents(quote: ShippingQuote) -> int | None:
    if quote.cost_excl_tax in (None, ""):
        return None
    try:
        cost = Decimal(str(quote.cost_excl_tax))
    except InvalidOperation:
        return None
    if not cost.is_finite() or cost < 0:
        return None
    return int((cost * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def rank_quotes(quotes: list[ShippingQuote]) -> list[ShippingOption]:
    """Drop restricted or unpriced quotes, cheapest (then fastest) first."""
    options = []
    for quote in quotes:
        if quote.business_only or quote.home_only:
            continue
        cents = _cost_cents(quote)
        if cents is None:
            logger.debug("Discarding shipping quote without usable cost", quote_id=quote.id)
            continue
        options.append(
            ShippingOption(
                id=quote.id,
                level=quote.level,
                cost_cents=cents,
                currency=quote.currency,
                total_days_min=quote.total_days_min,
                total_days_max=quote.total_days_max,
            )
        )

    unknown_days = float("inf")
    return sorted(
        options,
        key=lambda o: (o.cost_cents, o.total_days_min if o.total_days_min is not None else unknown_days),
    )


class ShippingOptionResolver:
    def __init__(self, gateway: PaymentGateway, print_provider: PrintProvider):
        self.gateway = gateway
        self.print_provider = print_provider

    def resolve(self, items: list[CheckoutLineItem], address: ShippingAddress) -> list[ShippingOption] | str:
        """Return ranked shipping options, or ``DIGITAL_DELIVERY_ONLY``.

        Raises:
            FulfillmentError: if a line item cannot be resolved against the catalog.
            ValidationError: if the cart holds nothing that can be shipped.
        """
        kinds = [classify_item(item) for item in resolve_line_items(items, self.gateway)]

        if all(isinstance(kind, DigitalItem) for kind in kinds):
            return DIGITAL_DELIVERY_ONLY

        quote_items = [
            ShippingQuoteLineItem(
                page_count=kind.pages,
                pod_package_id=pod_package_id(kind.hardcover, kind.color),
                quantity=kind.quantity,
            )
            for kind in kinds
            if isinstance(kind, BookItem) and kind.pages
        ]
        if not quote_items:
            raise ValidationError({"items": ["Cart contains no printable items"]})

        quotes = self.print_provider.get_shipping_options(quote_items, address)
        return rank_quotes(quotes)
