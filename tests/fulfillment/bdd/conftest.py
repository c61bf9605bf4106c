"""Shared BDD fixtures and step definitions for store orders."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from fulfillment.api import register_fulfillment_exception_handlers, store_router
from notifications.templates import get_template
from notifications.templates.kinds import StoreNotification
from pytest_bdd import given, parsers, then


@pytest.fixture()
def client(services):
    app = FastAPI()
    app.state.services = services
    app.include_router(store_router)
    register_fulfillment_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def checkout():
    """Container for the checkout under test."""
    return {"id": None}


def _sent(email, kind: StoreNotification, order_id: str) -> list[dict]:
    subject = get_template(kind).render({"order_id": order_id})["subject"]
    return [message for message in email.sent_emails if message["subject"] == subject]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse(
        'a paid checkout "{session_id}" for a 120-page paperback black and white book with ground shipping'
    )
)
def paid_book_checkout(make_session, checkout, session_id):
    make_session(session_id)
    checkout["id"] = session_id


@given("the printer is down")
def printer_down(print_provider):
    print_provider.configure(should_succeed=False, failure_reason="Service unavailable")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}"'))
def order_status(services, checkout, status):
    assert services.store.get(checkout["id"]).status == status


@then(parsers.cfparse('the order fails with "{error}"'))
def order_failed(services, checkout, error):
    order = services.store.get(checkout["id"])
    assert order.status == "failed"
    assert order.error == error


@then(parsers.cfparse("exactly {count:d} print job exists"))
def print_job_count(print_provider, count):
    assert len(print_provider.jobs) == count


@then(parsers.cfparse('{count:d} order confirmation email is sent to "{address}"'))
def confirmation_sent(email, checkout, count, address):
    sent = _sent(email, StoreNotification.ORDER_CONFIRMED, checkout["id"])
    assert len(sent) == count
    assert all(message["to"] == address for message in sent)


@then(parsers.cfparse('{count:d} "{kind}" email is sent'))
def notification_sent(email, checkout, count, kind):
    assert len(_sent(email, StoreNotification(kind), checkout["id"])) == count


@then(parsers.cfparse('the ledger records "{status}" without tracking'))
def ledger_records(services, checkout, status):
    assert (status, None) in services.store.get(checkout["id"]).notification_ledger


@then(parsers.cfparse('the ledger records "{status}" for tracking "{tracking_id}"'))
def ledger_records_tracking(services, checkout, status, tracking_id):
    assert (status, tracking_id) in services.store.get(checkout["id"]).notification_ledger

