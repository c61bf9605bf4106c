"""Tests for events raised by the Order aggregate."""

import json

from fulfillment.order.events import (
    DigitalDeliveryFailed,
    NotificationRecorded,
    OrderCompleted,
    OrderFailed,
    OrderReceived,
    OrderReopened,
    PrintJobStatusChanged,
    PrintJobSubmissionFailed,
    PrintJobSubmitted,
)
from fulfillment.order.order import Order


def _make_order():
    order = Order.receive("cs_evt_001", customer_email="a@example.com")
    return order


def _last_event(order):
    return order._events[-1]


class TestOrderEvents:
    def test_receive_raises_order_received(self):
        order = _make_order()
        event = _last_event(order)
        assert isinstance(event, OrderReceived)
        assert event.order_id == "cs_evt_001"
        assert event.customer_email == "a@example.com"

    def test_print_job_submitted(self):
        order = _make_order()
        order.record_print_job("1000", "CREATED")
        event = _last_event(order)
        assert isinstance(event, PrintJobSubmitted)
        assert event.print_job_id == "1000"
        assert event.resubmission == 0

    def test_resubmission_is_counted(self):
        order = _make_order()
        order.record_print_job("1000", "CREATED")
        order.record_print_job("1001", "CREATED")
        assert _last_event(order).resubmission == 1

    def test_print_job_submission_failed(self):
        order = _make_order()
        order.record_print_failure("x" * 900)
        event = _last_event(order)
        assert isinstance(event, PrintJobSubmissionFailed)
        assert len(event.reason) == 500

    def test_digital_delivery_failed_lists_prices(self):
        order = _make_order()
        order.record_digital_delivery(2, 1, ["price_homework"])
        event = _last_event(order)
        assert isinstance(event, DigitalDeliveryFailed)
        assert json.loads(event.failed_price_ids) == ["price_homework"]

    def test_fail_complete_and_reopen(self):
        order = _make_order()
        order.fail("MISSING_SHIPPING_ITEM")
        assert isinstance(_last_event(order), OrderFailed)
        order.reopen()
        event = _last_event(order)
        assert isinstance(event, OrderReopened)
        assert event.previous_error == "MISSING_SHIPPING_ITEM"
        order.complete()
        assert isinstance(_last_event(order), OrderCompleted)

    def test_repeated_fail_raises_no_event(self):
        order = _make_order()
        order.fail("MISSING_EMAIL")
        count = len(order._events)
        order.fail("MISSING_EMAIL")
        assert len(order._events) == count

    def test_status_changed_and_notification_recorded(self):
        order = _make_order()
        order.record_print_status("1000", "SHIPPED", None, {})
        assert isinstance(_last_event(order), PrintJobStatusChanged)

        order.claim_notification("SHIPPED", "T123")
        order.confirm_notification("SHIPPED", "T123")
        event = _last_event(order)
        assert isinstance(event, NotificationRecorded)
        assert event.tracking_id == "T123"
