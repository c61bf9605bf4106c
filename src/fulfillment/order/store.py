"""Order store — idempotent intake and field-level updates for Orders.

``create_or_get`` collapses duplicate deliveries of the same checkout into a
single Order: it inserts under the unique order id and, when that id already
exists, returns the stored record with ``is_new=False``. Updates always
reload the latest record and change only the named fields.

The in-memory provider has no unique constraint of its own, so each
read-check-write section runs under the store's lock. SQL providers back the
same contract with the primary key.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from sqlalchemy.exc import IntegrityError

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "customer_email",
        "account_id",
        "print_job_id",
        "print_job_status",
        "print_job_status_message",
    }
)
_SCAN_LIMIT = 100_000
_EPOCH = datetime.min.replace(tzinfo=UTC)


def _aware(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    return value if value.tzinfo else value.replace(tzinfo=UTC)


@dataclass(frozen=True)
class OrderPage:
    items: list[Order]
    has_more: bool
    next_cursor: str | None
    total_count: int


class OrderStore:
    def __init__(self, domain: Domain = fulfillment):
        self._domain = domain
        self._lock = threading.RLock()

    def _repo(self):
        return self._domain.repository_for(Order)

    def _query(self, **filters) -> list[Order]:
        queryset = self._repo()._dao.query
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.limit(_SCAN_LIMIT).all().items

    # -------------------------------------------------------------------
    # Intake
    # -------------------------------------------------------------------
    def create_or_get(
        self,
        order_id: str,
        customer_email: str | None = None,
        account_id: str | None = None,
    ) -> tuple[Order, bool]:
        """Create the Order for a checkout, or return the one already stored."""
        with self._domain.domain_context(), self._lock:
            repo = self._repo()
            try:
                return repo.get(order_id), False
            except ObjectNotFoundError:
                pass

            order = Order.receive(order_id, customer_email=customer_email, account_id=account_id)
            try:
                repo.add(order)
            except IntegrityError:
                # Another worker inserted the same id first
                logger.info("Order already created concurrently", order_id=order_id)
                return repo.get(order_id), False

            logger.info("Order received", order_id=order_id)
            return repo.get(order_id), True

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, order_id: str) -> Order:
        """Raises ObjectNotFoundError when the order does not exist."""
        with self._domain.domain_context():
            return self._repo().get(order_id)

    def find(self, order_id: str) -> Order | None:
        try:
            return self.get(order_id)
        except ObjectNotFoundError:
            return None

    def find_by_print_job_id(self, print_job_id: str) -> Order | None:
        with self._domain.domain_context():
            matches = self._query(print_job_id=str(print_job_id))
            if not matches:
                return None
            return self._repo().get(matches[0].id)

    def list_orders(
        self,
        status: str | None = None,
        print_job_status: str | None = None,
        query: str | None = None,
        starting_after: str | None = None,
        limit: int = 25,
    ) -> OrderPage:
        """Newest first, paginated by the id of the last order of the previous page."""
        filters = {}
        if status:
            filters["status"] = status
        if print_job_status:
            filters["print_job_status"] = print_job_status

        with self._domain.domain_context():
            orders = self._query(**filters)

        if query:
            needle = query.lower()
            orders = [
                o
                for o in orders
                if needle in str(o.id).lower()
                or needle in (o.customer_email or "").lower()
                or needle in (o.print_job_id or "").lower()
            ]

        orders.sort(key=lambda o: (_aware(o.created_at), str(o.id)), reverse=True)
        total = len(orders)

        if starting_after:
            ids = [str(o.id) for o in orders]
            if starting_after not in ids:
                raise ValidationError({"starting_after": ["Unknown cursor"]})
            orders = orders[ids.index(starting_after) + 1 :]

        page = orders[:limit]
        has_more = len(orders) > limit
        return OrderPage(
            items=page,
            has_more=has_more,
            next_cursor=str(page[-1].id) if has_more and page else None,
            total_count=total,
        )

    def list_stale_pending(self, older_than: datetime) -> list[str]:
        """Ids of pending orders with unfinished stages, last touched before ``older_than``.

        Orders whose books are already with the print provider are left out;
        they move on through status callbacks. Oldest first.
        """
        with self._domain.domain_context():
            pending = self._query(status=OrderStatus.PENDING.value)
        stale = [o for o in pending if o.awaiting_fulfillment and _aware(o.updated_at or o.created_at) < older_than]
        stale.sort(key=lambda o: _aware(o.updated_at or o.created_at))
        return [str(o.id) for o in stale]

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def update_order_fields(self, order_id: str, **fields: Any) -> Order:
        """Set only the given fields on the latest stored record."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError({field: ["Field cannot be updated directly"] for field in sorted(unknown)})

        def _set(order: Order) -> None:
            for name, value in fields.items():
                setattr(order, name, value)
            order._touch()

        order, _ = self.apply(order_id, _set)
        return order

    def apply(self, order_id: str, mutation: Callable[[Order], Any]) -> tuple[Order, Any]:
        """Reload the order, run one aggregate mutation on it and save it.

        Nothing is saved if the mutation raises.
        """
        with self._domain.domain_context(), self._lock:
            repo = self._repo()
            order = repo.get(order_id)
            result = mutation(order)
            repo.add(order)
            return order, result
