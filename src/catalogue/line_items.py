"""Cart line item resolution and classification.

A checkout session only carries ``{product_id, price_id, quantity}`` per
line. Resolution looks every price up in the payment catalog (product
expanded); classification then turns each resolved line into one of three
kinds, read once from catalog metadata:

- ``ShippingItem``: product metadata ``is_shipping == "true"`` (at most one)
- ``BookItem``: product metadata ``store_category == "books"``
- ``DigitalItem``: product metadata ``digital == "true"``

Anything else is not actionable and is ignored. Any inconsistency fails the
whole cart: no partial classification.
"""

from dataclasses import dataclass

import structlog

from fulfillment.errors import FulfillmentError, FulfillmentErrorCode
from payments.gateway.port import CatalogPrice, CatalogProduct, CheckoutLineItem, PaymentGateway

logger = structlog.get_logger(__name__)

MAX_LINE_ITEMS = 100
DEFAULT_SHIPPING_LEVEL = "MAIL"


@dataclass(frozen=True)
class ResolvedLineItem:
    product_id: str
    price_id: str
    product: CatalogProduct
    price: CatalogPrice
    quantity: int = 1


# ---------------------------------------------------------------------------
# Line item kinds
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class BookItem:
    product_id: str
    price_id: str
    book_id: str
    title: str
    pages: int | None
    hardcover: bool
    color: bool
    quantity: int = 1


@dataclass(frozen=True)
class DigitalItem:
    product_id: str
    price_id: str
    name: str
    delivery_option: str | None = None
    quantity: int = 1


@dataclass(frozen=True)
class ShippingItem:
    product_id: str
    price_id: str
    name: str
    level: str = DEFAULT_SHIPPING_LEVEL


LineItemKind = BookItem | DigitalItem | ShippingItem


@dataclass(frozen=True)
class ClassifiedCart:
    books: tuple[BookItem, ...] = ()
    digital: tuple[DigitalItem, ...] = ()
    shipping: ShippingItem | None = None

    @property
    def has_books(self) -> bool:
        return bool(self.books)

    @property
    def has_digital(self) -> bool:
        return bool(self.digital)


def _flag(metadata: dict, key: str) -> bool:
    return str(metadata.get(key, "")).lower() == "true"


def _page_count(metadata: dict) -> int | None:
    try:
        return int(metadata["num_pages"])
    except (KeyError, TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
def resolve_line_items(items, gateway: PaymentGateway) -> list[ResolvedLineItem]:
    """Look up the price and product behind every checkout line item.

    Raises:
        FulfillmentError: NO_LINE_ITEMS, TOO_MANY_LINE_ITEMS, INVALID_LINE_ITEM,
            INVALID_LINE_ITEM_PRICE or INVALID_LINE_ITEM_PRODUCT.
    """
    items: list[CheckoutLineItem] = list(items or [])
    if not items:
        raise FulfillmentError(FulfillmentErrorCode.NO_LINE_ITEMS)
    if len(items) >= MAX_LINE_ITEMS:
        raise FulfillmentError(FulfillmentErrorCode.TOO_MANY_LINE_ITEMS, f"{len(items)} line items")

    resolved = []
    for item in items:
        if not item.product_id or not item.price_id:
            raise FulfillmentError(FulfillmentErrorCode.INVALID_LINE_ITEM, "Line item has no product or price")

        price = gateway.retrieve_price(item.price_id)
        if price is None or price.product is None:
            raise FulfillmentError(FulfillmentErrorCode.INVALID_LINE_ITEM_PRICE, item.price_id)
        if not price.product.id:
            raise FulfillmentError(FulfillmentErrorCode.INVALID_LINE_ITEM_PRODUCT, item.price_id)

        resolved.append(
            ResolvedLineItem(
                product_id=item.product_id,
                price_id=item.price_id,
                product=price.product,
                price=price,
                quantity=item.quantity or 1,
            )
        )
    return resolved


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
def classify_item(item: ResolvedLineItem) -> LineItemKind | None:
    """Map one resolved line to its kind, or None when it is not actionable."""
    product_meta = item.product.metadata or {}
    price_meta = item.price.metadata or {}

    if _flag(product_meta, "is_shipping"):
        return ShippingItem(
            product_id=item.product_id,
            price_id=item.price_id,
            name=item.product.name,
            level=product_meta.get("lulu_shipping_option_level") or DEFAULT_SHIPPING_LEVEL,
        )

    if product_meta.get("store_category") == "books":
        book_id = product_meta.get("book_id")
        if not book_id:
            raise FulfillmentError(FulfillmentErrorCode.INVALID_LINE_ITEM_PRODUCT, f"{item.product_id} has no book_id")
        return BookItem(
            product_id=item.product_id,
            price_id=item.price_id,
            book_id=book_id,
            title=item.product.name,
            pages=_page_count(product_meta),
            hardcover=_flag(price_meta, "hardcover"),
            color=_flag(price_meta, "color"),
            quantity=item.quantity,
        )

    if _flag(product_meta, "digital"):
        return DigitalItem(
            product_id=item.product_id,
            price_id=item.price_id,
            name=item.product.name,
            delivery_option=product_meta.get("digital_delivery_option"),
            quantity=item.quantity,
        )

    return None


def classify(items: list[ResolvedLineItem]) -> ClassifiedCart:
    """Partition resolved line items into books, digital items and the shipping item.

    Raises:
        FulfillmentError: LINE_ITEM_PRODUCT_MISMATCH when a price does not
            belong to its line's product, INVALID_LINE_ITEM when more than
            one shipping item is present.
    """
    books: list[BookItem] = []
    digital: list[DigitalItem] = []
    shipping: ShippingItem | None = None

    for item in items:
        if item.price.product is None or item.price.product.id != item.product_id:
            raise FulfillmentError(
                FulfillmentErrorCode.LINE_ITEM_PRODUCT_MISMATCH,
                f"Price {item.price_id} does not belong to product {item.product_id}",
            )

        kind = classify_item(item)
        if isinstance(kind, ShippingItem):
            if shipping is not None:
                raise FulfillmentError(FulfillmentErrorCode.INVALID_LINE_ITEM, "More than one shipping item")
            shipping = kind
        elif isinstance(kind, BookItem):
            books.append(kind)
        elif isinstance(kind, DigitalItem):
            digital.append(kind)
        else:
            logger.debug("Ignoring non-actionable line item", product_id=item.product_id)

    return ClassifiedCart(books=tuple(books), digital=tuple(digital), shipping=shipping)
