"""Order domain events — immutable facts about an order's fulfillment.

All events are past tense and versioned.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Order")
class OrderReceived:
    """A completed checkout was accepted for fulfillment."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_email = String()
    received_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class PrintJobSubmitted:
    """A print job was created at the print provider."""

    __version__ = 1

    order_id = Identifier(required=True)
    print_job_id = String(required=True)
    print_job_status = String()
    resubmission = Integer(default=0)
    submitted_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class PrintJobSubmissionFailed:
    """The print provider rejected the job, or did not answer in time."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(max_length=500)
    failed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class DigitalItemsDelivered:
    """Every digital item of the order was delivered."""

    __version__ = 1

    order_id = Identifier(required=True)
    item_count = Integer(required=True)
    delivered_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class DigitalDeliveryFailed:
    """At least one digital item could not be delivered."""

    __version__ = 1

    order_id = Identifier(required=True)
    requested = Integer(required=True)
    delivered = Integer(required=True)
    failed_price_ids = Text()  # JSON list
    failed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderFailed:
    """The order stopped with an error code."""

    __version__ = 1

    order_id = Identifier(required=True)
    error = String(required=True)
    failed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderCompleted:
    """Every fulfillment stage of the order finished."""

    __version__ = 1

    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class OrderReopened:
    """An operator resubmitted a failed order's print job."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_error = String()
    reopened_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class PrintJobStatusChanged:
    """The print provider reported a new status for the order's job."""

    __version__ = 1

    order_id = Identifier(required=True)
    print_job_id = String()
    status = String(required=True)
    message = String(max_length=1000)
    received_at = DateTime(required=True)


@fulfillment.event(part_of="Order")
class NotificationRecorded:
    """A customer notification was sent and entered in the ledger."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    tracking_id = String()
    recorded_at = DateTime(required=True)
