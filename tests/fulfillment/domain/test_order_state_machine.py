"""Tests for the Order state machine — valid and invalid transitions."""

import pytest
from protean.exceptions import ValidationError

from fulfillment.order.order import Order, OrderStatus, StageOutcome


def _make_order(order_id="cs_sm_001"):
    return Order.receive(order_id, customer_email="a@example.com")


def _failed_order():
    order = _make_order()
    order.fail("PRINT_JOB_CREATE_FAILED", "Provider rejected the job")
    return order


def _completed_order():
    order = _make_order()
    order.complete()
    return order


class TestReceive:
    def test_new_order_is_pending(self):
        order = _make_order()
        assert order.status == OrderStatus.PENDING.value
        assert order.print_stage == StageOutcome.PENDING.value
        assert order.digital_stage == StageOutcome.PENDING.value
        assert order.print_job_submissions == 0

    def test_receive_stamps_timestamps(self):
        order = _make_order()
        assert order.created_at is not None
        assert order.updated_at == order.created_at

    def test_receive_keeps_checkout_id_as_identity(self):
        assert _make_order("cs_live_abc").id == "cs_live_abc"


class TestValidTransitions:
    def test_pending_to_completed(self):
        order = _completed_order()
        assert order.status == OrderStatus.COMPLETED.value
        assert order.is_terminal

    def test_pending_to_failed(self):
        order = _failed_order()
        assert order.status == OrderStatus.FAILED.value
        assert order.error == "PRINT_JOB_CREATE_FAILED"
        assert order.error_detail == "Provider rejected the job"

    def test_failed_to_pending_on_reopen(self):
        order = _failed_order()
        order.reopen()
        assert order.status == OrderStatus.PENDING.value
        assert order.error is None
        assert order.error_detail is None

    def test_complete_is_idempotent(self):
        order = _completed_order()
        order.complete()
        assert order.status == OrderStatus.COMPLETED.value

    def test_fail_keeps_first_error(self):
        order = _failed_order()
        order.fail("DIGITAL_DELIVERY_FAILED")
        assert order.error == "PRINT_JOB_CREATE_FAILED"


class TestInvalidTransitions:
    def test_completed_cannot_fail(self):
        with pytest.raises(ValidationError) as exc:
            _completed_order().fail("MISSING_EMAIL")
        assert "status" in exc.value.messages

    def test_completed_cannot_reopen(self):
        with pytest.raises(ValidationError):
            _completed_order().reopen()

    def test_failed_cannot_complete(self):
        with pytest.raises(ValidationError):
            _failed_order().complete()

    def test_pending_cannot_reopen(self):
        with pytest.raises(ValidationError):
            _make_order().reopen()


class TestStages:
    def test_record_print_job_marks_stage_done(self):
        order = _make_order()
        order.record_print_job("1000", "CREATED")
        assert order.print_stage == StageOutcome.DONE.value
        assert order.print_job_id == "1000"
        assert order.print_job_status == "CREATED"
        assert order.print_job_submissions == 1

    def test_record_print_job_replaces_previous_job(self):
        order = _make_order()
        order.record_print_job("1000", "CREATED")
        order.record_print_job("1001", "CREATED")
        assert order.print_job_id == "1001"
        assert order.print_job_submissions == 2

    def test_record_print_job_requires_id(self):
        with pytest.raises(ValidationError):
            _make_order().record_print_job("", "CREATED")

    def test_print_failure_marks_stage_failed(self):
        order = _make_order()
        order.record_print_failure("Timed out")
        assert order.print_stage == StageOutcome.FAILED.value
        assert order.status == OrderStatus.PENDING.value

    def test_full_digital_delivery_is_done(self):
        order = _make_order()
        order.record_digital_delivery(2, 2)
        assert order.digital_stage == StageOutcome.DONE.value

    def test_partial_digital_delivery_is_failed(self):
        order = _make_order()
        order.record_digital_delivery(2, 1, ["price_homework"])
        assert order.digital_stage == StageOutcome.FAILED.value

    def test_stages_settled(self):
        order = _make_order()
        assert not order.stages_settled
        order.mark_digital_not_required()
        order.record_print_job("1000", "CREATED")
        assert order.stages_settled

    def test_record_customer_email_ignores_blank(self):
        order = _make_order()
        order.record_customer_email("")
        assert order.customer_email == "a@example.com"
