"""Exactly-once customer notifications for an order.

Sending goes through the order's notification ledger in three steps: claim
the ledger entries (atomically, in the store), send one email, then confirm
the entries, or release them if the email could not be sent so that a
replayed callback can try again. A concurrent replay finds the entries
already claimed and sends nothing.
"""

from collections.abc import Callable

import structlog

from fulfillment.order.store import OrderStore
from notifications.notifier import CustomerNotifier
from notifications.templates.kinds import StoreNotification

logger = structlog.get_logger(__name__)


class OrderNotifier:
    def __init__(self, store: OrderStore, notifier: CustomerNotifier):
        self.store = store
        self.notifier = notifier

    def send_once(
        self,
        order_id: str,
        kind: StoreNotification,
        ledger_status: str,
        tracking_ids: list[str | None] | None = None,
        context: Callable[[list[str | None]], dict] | None = None,
    ) -> list[str | None]:
        """Send one email covering every not-yet-notified tracking id.

        Returns the tracking ids the email covered; empty when nothing was
        sent (all already notified, or sending failed).
        """
        wanted = list(dict.fromkeys(tracking_ids or [None]))

        order, claimed = self.store.apply(
            order_id,
            lambda o: [tracking_id for tracking_id in wanted if o.claim_notification(ledger_status, tracking_id)],
        )
        if not claimed:
            logger.debug("Notification already sent", order_id=order_id, status=ledger_status)
            return []

        def _release(o):
            for tracking_id in claimed:
                o.release_notification(ledger_status, tracking_id)

        if not order.customer_email:
            logger.warning("Order has no customer email, notification skipped", order_id=order_id, kind=kind.value)
            self.store.apply(order_id, _release)
            return []

        payload = {"order_id": order_id}
        if context is not None:
            payload.update(context(claimed))

        result = self.notifier.notify(kind, order.customer_email, payload)
        if not result.sent:
            self.store.apply(order_id, _release)
            return []

        def _confirm(o):
            for tracking_id in claimed:
                o.confirm_notification(ledger_status, tracking_id)

        self.store.apply(order_id, _confirm)
        return claimed
