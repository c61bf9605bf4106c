"""Order aggregate — one fulfillment attempt per completed checkout.

The Order is keyed by the checkout session id, which makes order intake
idempotent. It records which external side effects have happened (per-stage
outcomes, the print job id), every raw status callback from the print
provider, and a ledger of customer notifications used to send each one
exactly once.

State Machine:
    PENDING → {COMPLETED, FAILED}
    FAILED → PENDING    (explicit reopen on print job resubmission)
    COMPLETED is terminal

Stage outcomes (print_stage, digital_stage):
    PENDING → {NOT_REQUIRED, DONE, FAILED};  FAILED → DONE on resubmission
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment
from fulfillment.order.events import (
    DigitalDeliveryFailed,
    DigitalItemsDelivered,
    NotificationRecorded,
    OrderCompleted,
    OrderFailed,
    OrderReceived,
    OrderReopened,
    PrintJobStatusChanged,
    PrintJobSubmissionFailed,
    PrintJobSubmitted,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class StageOutcome(Enum):
    PENDING = "Pending"
    NOT_REQUIRED = "Not_Required"
    DONE = "Done"
    FAILED = "Failed"


class NotificationState(Enum):
    CLAIMED = "Claimed"
    SENT = "Sent"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.COMPLETED, OrderStatus.FAILED},
    OrderStatus.FAILED: {OrderStatus.PENDING},
    OrderStatus.COMPLETED: set(),  # terminal
}

_SETTLED_STAGES = {StageOutcome.NOT_REQUIRED.value, StageOutcome.DONE.value}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@fulfillment.entity(part_of="Order")
class PrintJobStatusEntry:
    """A raw status callback from the print provider, kept verbatim."""

    sequence = Integer(required=True, min_value=1)
    print_job_id = String(max_length=50)
    status = String(max_length=50)
    payload = Text(required=True)  # raw JSON
    received_at = DateTime(required=True)


@fulfillment.entity(part_of="Order")
class NotificationRecord:
    """One entry in the notification ledger."""

    status = String(required=True, max_length=50)
    tracking_id = String(max_length=255)
    state = String(
        max_length=20,
        choices=NotificationState,
        default=NotificationState.CLAIMED.value,
    )
    claimed_at = DateTime()
    sent_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Order:
    id = Identifier(identifier=True)
    status = String(
        max_length=20,
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    customer_email = String(max_length=254)
    account_id = String(max_length=255)
    error = String(max_length=50)
    error_detail = String(max_length=1000)
    print_job_id = String(max_length=50)
    print_job_status = String(max_length=50)
    print_job_status_message = String(max_length=1000)
    print_job_submissions = Integer(default=0)
    print_stage = String(
        max_length=20,
        choices=StageOutcome,
        default=StageOutcome.PENDING.value,
    )
    digital_stage = String(
        max_length=20,
        choices=StageOutcome,
        default=StageOutcome.PENDING.value,
    )
    print_job_status_history = HasMany(PrintJobStatusEntry)
    notifications_sent = HasMany(NotificationRecord)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def receive(cls, order_id: str, customer_email: str | None = None, account_id: str | None = None):
        """Accept a completed checkout for fulfillment."""
        now = datetime.now(UTC)
        order = cls(
            id=order_id,
            status=OrderStatus.PENDING.value,
            customer_email=customer_email,
            account_id=account_id,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderReceived(
                order_id=order_id,
                customer_email=customer_email or "",
                received_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status helpers
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return self.status != OrderStatus.PENDING.value

    @property
    def stages_settled(self) -> bool:
        return self.print_stage in _SETTLED_STAGES and self.digital_stage in _SETTLED_STAGES

    @property
    def awaiting_fulfillment(self) -> bool:
        """Pending with work left to do here, rather than waiting on the print provider."""
        if self.status != OrderStatus.PENDING.value:
            return False
        return not self.stages_settled or self.print_stage == StageOutcome.NOT_REQUIRED.value

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _touch(self) -> datetime:
        self.updated_at = datetime.now(UTC)
        return self.updated_at

    def record_customer_email(self, email: str) -> None:
        if email and email != self.customer_email:
            self.customer_email = email
            self._touch()

    # -------------------------------------------------------------------
    # Fulfillment stages
    # -------------------------------------------------------------------
    def mark_print_not_required(self) -> None:
        self.print_stage = StageOutcome.NOT_REQUIRED.value
        self._touch()

    def mark_digital_not_required(self) -> None:
        self.digital_stage = StageOutcome.NOT_REQUIRED.value
        self._touch()

    def record_print_job(self, print_job_id: str, status_name: str) -> None:
        """Record a print job created at the provider. Replaces any previous job."""
        if not print_job_id:
            raise ValidationError({"print_job_id": ["Print job id is required"]})

        now = self._touch()
        self.print_job_id = print_job_id
        self.print_job_status = status_name
        self.print_job_status_message = None
        self.print_job_submissions = (self.print_job_submissions or 0) + 1
        self.print_stage = StageOutcome.DONE.value
        self.raise_(
            PrintJobSubmitted(
                order_id=str(self.id),
                print_job_id=print_job_id,
                print_job_status=status_name,
                resubmission=self.print_job_submissions - 1,
                submitted_at=now,
            )
        )

    def record_print_failure(self, reason: str) -> None:
        now = self._touch()
        self.print_stage = StageOutcome.FAILED.value
        self.raise_(
            PrintJobSubmissionFailed(
                order_id=str(self.id),
                reason=(reason or "")[:500],
                failed_at=now,
            )
        )

    def record_digital_delivery(self, requested: int, delivered: int, failed_price_ids: list[str] | None = None) -> None:
        now = self._touch()
        if delivered == requested:
            self.digital_stage = StageOutcome.DONE.value
            self.raise_(DigitalItemsDelivered(order_id=str(self.id), item_count=delivered, delivered_at=now))
        else:
            self.digital_stage = StageOutcome.FAILED.value
            self.raise_(
                DigitalDeliveryFailed(
                    order_id=str(self.id),
                    requested=requested,
                    delivered=delivered,
                    failed_price_ids=json.dumps(list(failed_price_ids or [])),
                    failed_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Outcome
    # -------------------------------------------------------------------
    def fail(self, error: str, detail: str = "") -> None:
        """Mark the order failed. Failing an already failed order keeps the first error."""
        if self.status == OrderStatus.FAILED.value:
            return
        self._assert_can_transition(OrderStatus.FAILED)

        now = self._touch()
        self.status = OrderStatus.FAILED.value
        self.error = error
        self.error_detail = (detail or "")[:1000] or None
        self.raise_(OrderFailed(order_id=str(self.id), error=error, failed_at=now))

    def complete(self) -> None:
        if self.status == OrderStatus.COMPLETED.value:
            return
        self._assert_can_transition(OrderStatus.COMPLETED)

        now = self._touch()
        self.status = OrderStatus.COMPLETED.value
        self.raise_(OrderCompleted(order_id=str(self.id), completed_at=now))

    def reopen(self) -> None:
        """Return a failed order to pending so its print job can be resubmitted."""
        self._assert_can_transition(OrderStatus.PENDING)

        now = self._touch()
        previous_error = self.error
        self.status = OrderStatus.PENDING.value
        self.error = None
        self.error_detail = None
        self.raise_(OrderReopened(order_id=str(self.id), previous_error=previous_error or "", reopened_at=now))

    # -------------------------------------------------------------------
    # Print provider callbacks
    # -------------------------------------------------------------------
    def record_print_status(self, print_job_id: str | None, status_name: str, message: str | None, payload: dict) -> None:
        """Append a raw status callback and mirror the job's current state."""
        now = self._touch()
        self.add_print_job_status_history(
            PrintJobStatusEntry(
                sequence=len(self.print_job_status_history or []) + 1,
                print_job_id=print_job_id,
                status=status_name,
                payload=json.dumps(payload, sort_keys=True),
                received_at=now,
            )
        )
        if print_job_id:
            self.print_job_id = print_job_id
        self.print_job_status = status_name
        self.print_job_status_message = (message or "")[:1000] or None
        self.raise_(
            PrintJobStatusChanged(
                order_id=str(self.id),
                print_job_id=print_job_id or "",
                status=status_name,
                message=self.print_job_status_message or "",
                received_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Notification ledger
    # -------------------------------------------------------------------
    def _ledger_entry(self, status: str, tracking_id: str | None, states: set[str]):
        return next(
            (
                record
                for record in (self.notifications_sent or [])
                if record.status == status
                and (record.tracking_id or None) == (tracking_id or None)
                and record.state in states
            ),
            None,
        )

    def has_notified(self, status: str, tracking_id: str | None = None) -> bool:
        """True when the notification was sent, or is being sent right now."""
        live = {NotificationState.CLAIMED.value, NotificationState.SENT.value}
        return self._ledger_entry(status, tracking_id, live) is not None

    def claim_notification(self, status: str, tracking_id: str | None = None) -> bool:
        """Reserve a ledger entry before sending. Returns False if already taken."""
        if self.has_notified(status, tracking_id):
            return False
        self.add_notifications_sent(
            NotificationRecord(
                status=status,
                tracking_id=tracking_id,
                state=NotificationState.CLAIMED.value,
                claimed_at=self._touch(),
            )
        )
        return True

    def confirm_notification(self, status: str, tracking_id: str | None = None) -> None:
        record = self._ledger_entry(status, tracking_id, {NotificationState.CLAIMED.value})
        if record is None:
            raise ValidationError({"notifications_sent": [f"No claimed {status} notification to confirm"]})

        now = self._touch()
        record.state = NotificationState.SENT.value
        record.sent_at = now
        self.raise_(
            NotificationRecorded(
                order_id=str(self.id),
                status=status,
                tracking_id=tracking_id or "",
                recorded_at=now,
            )
        )

    def release_notification(self, status: str, tracking_id: str | None = None) -> None:
        """Give a claim back after a failed send, so a replay can try again."""
        record = self._ledger_entry(status, tracking_id, {NotificationState.CLAIMED.value})
        if record is not None:
            record.state = NotificationState.FAILED.value
            self._touch()

    @property
    def notification_ledger(self) -> set[tuple[str, str | None]]:
        return {
            (record.status, record.tracking_id or None)
            for record in (self.notifications_sent or [])
            if record.state == NotificationState.SENT.value
        }
