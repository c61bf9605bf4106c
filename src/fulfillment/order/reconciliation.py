"""Reconciliation sweep for pending orders.

Fulfillment runs in the background after the payment webhook has been
acknowledged. If the process dies in between, the Order stays ``pending``.
The sweep re-drives every pending order that has not been touched for a
while; settled stages are skipped, so it never creates a second print job.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog

from fulfillment.order.intake import OrderFulfillmentOrchestrator
from fulfillment.order.order import OrderStatus
from fulfillment.order.store import OrderStore
from shared.errors import ExternalServiceError

logger = structlog.get_logger(__name__)


@dataclass
class ReconciliationReport:
    examined: int = 0
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    errored: list[str] = field(default_factory=list)


class OrderReconciler:
    def __init__(
        self,
        store: OrderStore,
        orchestrator: OrderFulfillmentOrchestrator,
        stale_after_seconds: float = 900.0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.stale_after = timedelta(seconds=stale_after_seconds)
        self.clock = clock or (lambda: datetime.now(UTC))

    def sweep(self, limit: int = 50) -> ReconciliationReport:
        cutoff = self.clock() - self.stale_after
        order_ids = self.store.list_stale_pending(cutoff)[:limit]
        report = ReconciliationReport()

        for order_id in order_ids:
            report.examined += 1
            try:
                order = self.orchestrator.fulfill(order_id)
            except ExternalServiceError as exc:
                logger.warning(
                    "Reconciliation deferred",
                    order_id=order_id,
                    service=exc.service,
                    retryable=exc.retryable,
                )
                report.errored.append(order_id)
                continue

            if order.status == OrderStatus.COMPLETED.value:
                report.completed.append(order_id)
            elif order.status == OrderStatus.FAILED.value:
                report.failed.append(order_id)
            else:
                report.pending.append(order_id)

        logger.info(
            "Reconciliation sweep finished",
            examined=report.examined,
            completed=len(report.completed),
            failed=len(report.failed),
            errored=len(report.errored),
        )
        return report
