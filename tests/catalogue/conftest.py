import pytest

from fulfillment.printer.fake_adapter import FakePrintProvider
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import CheckoutLineItem, ShippingAddress


@pytest.fixture()
def gateway():
    """Catalog with one book in two variants, a shipping product, a digital item and merch."""
    gateway = FakeGateway()
    book = gateway.add_product("prod_stats", "Introductory Statistics", store_category="books", book_id="stats-1", num_pages="200")
    gateway.add_price("price_stats_pb", book, 1017, hardcover="false", color="false")
    gateway.add_price("price_stats_hc_color", book, 2300, hardcover="true", color="true")

    unnumbered = gateway.add_product("prod_draft", "Draft Book", store_category="books", book_id="draft-1")
    gateway.add_price("price_draft", unnumbered, 900)
    gateway.add_product("prod_no_id", "Broken Book", store_category="books")
    gateway.add_price("price_no_id", gateway.products["prod_no_id"], 900)

    express = gateway.add_product("prod_ship_express", "Express", is_shipping="true", lulu_shipping_option_level="EXPRESS")
    gateway.add_price("price_ship_express", express, 2400)
    plain = gateway.add_product("prod_ship_plain", "Shipping", is_shipping="True")
    gateway.add_price("price_ship_plain", plain, 499)

    homework = gateway.add_product("prod_homework", "Homework Access", digital="true")
    gateway.add_price("price_homework", homework, 2500)
    sticker = gateway.add_product("prod_sticker", "Sticker")
    gateway.add_price("price_sticker", sticker, 300)

    gateway.add_price("price_orphan", None, 100)
    gateway.add_price("price_blank_product", gateway.add_product("", "Nameless"), 100)
    return gateway


@pytest.fixture()
def print_provider():
    return FakePrintProvider()


@pytest.fixture()
def item():
    def _item(product_id: str, price_id: str, quantity: int = 1) -> CheckoutLineItem:
        return CheckoutLineItem(product_id=product_id, price_id=price_id, quantity=quantity)

    return _item


@pytest.fixture()
def address():
    return ShippingAddress(street1="1 Shields Ave", city="Davis", state_code="CA", postcode="95616", country_code="US")
