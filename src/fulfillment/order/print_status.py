"""Print provider status callbacks.

The provider posts a ``PRINT_JOB_STATUS_CHANGED`` payload whenever a job
moves. Every accepted callback is appended verbatim to the order's history
and mirrored onto the order. Two statuses reach the customer:

- ``IN_PRODUCTION``: one email, once per order.
- ``SHIPPED``: one email per wave of newly seen tracking ids, then the order
  is completed.

Callbacks are replayed freely by the provider, so notifications go through
the order's ledger and completion is a no-op once the order is terminal.
"""

from dataclasses import dataclass

import structlog

from fulfillment.order.notify import OrderNotifier
from fulfillment.order.order import Order, OrderStatus
from fulfillment.order.store import OrderStore
from fulfillment.utils.logging import bind_order_context
from notifications.templates.kinds import StoreNotification

logger = structlog.get_logger(__name__)

PRINT_JOB_STATUS_CHANGED = "PRINT_JOB_STATUS_CHANGED"
IN_PRODUCTION = "IN_PRODUCTION"
SHIPPED = "SHIPPED"


@dataclass(frozen=True)
class StatusUpdateOutcome:
    handled: bool
    order_id: str | None = None
    status: str | None = None
    reason: str | None = None
    notified_tracking_ids: tuple[str | None, ...] = ()


def _tracking(line_items) -> dict[str, list[str]]:
    """Tracking ids and their URLs across a job's line items, in order."""
    tracking: dict[str, list[str]] = {}
    for line in line_items or []:
        if not isinstance(line, dict):
            continue
        tracking_id = line.get("tracking_id")
        if not tracking_id:
            continue
        urls = tracking.setdefault(str(tracking_id), [])
        for url in line.get("tracking_urls") or []:
            if url not in urls:
                urls.append(url)
    return tracking


class PrintStatusEngine:
    def __init__(self, store: OrderStore, notifier: OrderNotifier):
        self.store = store
        self.notifier = notifier

    def _find_order(self, data: dict) -> Order | None:
        external_id = data.get("external_id")
        if external_id:
            order = self.store.find(str(external_id))
            if order is not None:
                return order

        job_id = data.get("id")
        if job_id is not None:
            return self.store.find_by_print_job_id(str(job_id))
        return None

    def handle_webhook(self, payload: dict) -> StatusUpdateOutcome:
        """Apply one status callback. Unknown topics and jobs are ignored."""
        topic = payload.get("topic") if isinstance(payload, dict) else None
        if topic != PRINT_JOB_STATUS_CHANGED:
            logger.info("Ignoring print webhook", topic=topic)
            return StatusUpdateOutcome(handled=False, reason="ignored_topic")

        data = payload.get("data")
        status = data.get("status") if isinstance(data, dict) else None
        status_name = status.get("name") if isinstance(status, dict) else None
        if not status_name:
            logger.warning("Print webhook without job status")
            return StatusUpdateOutcome(handled=False, reason="malformed")

        order = self._find_order(data)
        if order is None:
            logger.warning(
                "Print webhook for unknown order",
                external_id=data.get("external_id"),
                print_job_id=data.get("id"),
            )
            return StatusUpdateOutcome(handled=False, status=status_name, reason="unknown_order")

        order_id = str(order.id)
        job_id = str(data["id"]) if data.get("id") is not None else None
        with bind_order_context(order_id, print_job_id=job_id):
            self.store.apply(
                order_id,
                lambda o: o.record_print_status(job_id, status_name, status.get("message"), payload),
            )
            logger.info("Print job status recorded", status=status_name)

            notified: list[str | None] = []
            if status_name == IN_PRODUCTION:
                notified = self.notifier.send_once(order_id, StoreNotification.IN_PRODUCTION, IN_PRODUCTION)
            elif status_name == SHIPPED:
                notified = self._ship(order_id, data.get("line_items"))

        return StatusUpdateOutcome(
            handled=True,
            order_id=order_id,
            status=status_name,
            notified_tracking_ids=tuple(notified),
        )

    def _ship(self, order_id: str, line_items) -> list[str | None]:
        tracking = _tracking(line_items)

        def _context(claimed: list[str | None]) -> dict:
            return {
                "tracking": [
                    {"tracking_id": tracking_id, "tracking_urls": tracking.get(tracking_id, [])}
                    for tracking_id in claimed
                    if tracking_id
                ]
            }

        notified = self.notifier.send_once(
            order_id,
            StoreNotification.SHIPPED,
            SHIPPED,
            tracking_ids=list(tracking) or [None],
            context=_context,
        )

        def _complete(o: Order) -> bool:
            if o.status != OrderStatus.PENDING.value:
                return False
            o.complete()
            return True

        _, completed = self.store.apply(order_id, _complete)
        if completed:
            logger.info("Order completed", order_id=order_id)
        return notified
