import os
from types import SimpleNamespace

import pytest

from fulfillment.config import FulfillmentSettings
from fulfillment.printer.fake_adapter import FakePrintProvider
from fulfillment.services import build_services
from licensing.provider.fake_adapter import FakeLicenseProvider
from notifications.channel.fake_email import FakeEmailAdapter
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import CheckoutLineItem, CheckoutSession, ShippingAddress

CUSTOMER_EMAIL = "a@example.com"

ADDRESS = ShippingAddress(
    name="Ada Reader",
    street1="1 Shields Ave",
    city="Davis",
    state_code="CA",
    postcode="95616",
    country_code="US",
    phone_number="+1-530-555-0100",
)


@pytest.fixture(scope="session")
def _fulfillment_domain(request):
    """Initialize the fulfillment domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from fulfillment.domain import fulfillment

    fulfillment.init()
    return fulfillment


@pytest.fixture(scope="session", autouse=True)
def setup_db(_fulfillment_domain):
    from fulfillment.utils.db import drop_db, setup_db

    setup_db(_fulfillment_domain)

    yield

    drop_db(_fulfillment_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_fulfillment_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _fulfillment_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Catalog and adapters
# ---------------------------------------------------------------------------
def seed_catalog(gateway: FakeGateway) -> FakeGateway:
    """A small bookstore: two books, two shipping levels, digital items, merch."""
    calculus = gateway.add_product(
        "prod_calculus", "Calculus Vol. 1", store_category="books", book_id="calc-101", num_pages="120"
    )
    gateway.add_price("price_calculus_pb_bw", calculus, 1017, hardcover="false", color="false")
    gateway.add_price("price_calculus_hc_color", calculus, 2300, hardcover="true", color="true")

    chemistry = gateway.add_product(
        "prod_chemistry", "General Chemistry", store_category="books", book_id="chem-2", num_pages="340"
    )
    gateway.add_price("price_chemistry_hc_bw", chemistry, 2500, hardcover="true", color="false")

    ground = gateway.add_product("prod_ship_ground", "Ground Shipping", is_shipping="true", lulu_shipping_option_level="GROUND")
    gateway.add_price("price_ship_ground", ground, 750)
    mail = gateway.add_product("prod_ship_mail", "Standard Mail", is_shipping="true")
    gateway.add_price("price_ship_mail", mail, 499)

    homework = gateway.add_product("prod_homework", "ADAPT Homework Access", digital="true")
    gateway.add_price("price_homework", homework, 2500)
    account_app = gateway.add_product(
        "prod_app_license", "Conductor Pro", digital="true", digital_delivery_option="apply_to_account"
    )
    gateway.add_price("price_app_license", account_app, 1500)

    mug = gateway.add_product("prod_mug", "Store Mug")
    gateway.add_price("price_mug", mug, 1200)
    return gateway


def line(product_id: str, price_id: str, quantity: int = 1) -> CheckoutLineItem:
    return CheckoutLineItem(product_id=product_id, price_id=price_id, quantity=quantity)


BOOK_PB = line("prod_calculus", "price_calculus_pb_bw")
BOOK_HC_COLOR = line("prod_calculus", "price_calculus_hc_color")
SHIP_GROUND = line("prod_ship_ground", "price_ship_ground")
SHIP_MAIL = line("prod_ship_mail", "price_ship_mail")
DIGITAL = line("prod_homework", "price_homework")
APP_LICENSE = line("prod_app_license", "price_app_license")


@pytest.fixture()
def gateway():
    return seed_catalog(FakeGateway())


@pytest.fixture()
def print_provider():
    return FakePrintProvider()


@pytest.fixture()
def license_provider():
    return FakeLicenseProvider()


@pytest.fixture()
def email():
    return FakeEmailAdapter()


@pytest.fixture()
def settings():
    return FulfillmentSettings(environment="test", reconcile_after_seconds=0)


@pytest.fixture()
def services(settings, gateway, print_provider, license_provider, email):
    return build_services(
        settings,
        gateway=gateway,
        print_provider=print_provider,
        license_provider=license_provider,
        email=email,
    )


@pytest.fixture()
def make_session(gateway):
    """Register a completed checkout session with the fake gateway."""

    def _make(
        session_id: str = "cs_test_001",
        items=(BOOK_PB, SHIP_GROUND),
        customer_email: str | None = CUSTOMER_EMAIL,
        shipping_address: ShippingAddress | None = ADDRESS,
        payment_intent_id: str | None = None,
        **metadata,
    ) -> CheckoutSession:
        session = CheckoutSession(
            id=session_id,
            customer_email=customer_email,
            shipping_address=shipping_address,
            line_items=tuple(items),
            metadata={"feature": "store", **metadata},
            payment_status="paid",
            amount_total=1767,
            currency="usd",
        )
        return gateway.add_session(session, payment_intent_id=payment_intent_id)

    return _make


@pytest.fixture()
def accepted(services, make_session):
    """Accept a checkout as a pending order and return ``(order, session)``."""

    def _accept(session_id: str = "cs_test_001", **kwargs):
        session = make_session(session_id, **kwargs)
        order, _ = services.orchestrator.accept(session)
        return order, session

    return _accept


def status_callback(order_id: str, status: str, job_id: int | str = 1000, tracking=None, message: str = "") -> dict:
    """A print provider PRINT_JOB_STATUS_CHANGED payload."""
    return {
        "topic": "PRINT_JOB_STATUS_CHANGED",
        "data": {
            "id": job_id,
            "external_id": order_id,
            "status": {"name": status, "message": message},
            "line_items": [
                {"tracking_id": tracking_id, "tracking_urls": urls}
                for tracking_id, urls in (tracking or {}).items()
            ],
        },
    }


@pytest.fixture()
def lines():
    """Checkout line items for the seeded catalog."""
    return SimpleNamespace(
        book_pb=BOOK_PB,
        book_hc_color=BOOK_HC_COLOR,
        chemistry=line("prod_chemistry", "price_chemistry_hc_bw"),
        ship_ground=SHIP_GROUND,
        ship_mail=SHIP_MAIL,
        digital=DIGITAL,
        app_license=APP_LICENSE,
        mug=line("prod_mug", "price_mug"),
    )


@pytest.fixture()
def callback():
    return status_callback
