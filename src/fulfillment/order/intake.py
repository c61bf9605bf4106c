"""Order intake and fulfillment.

``accept`` turns a completed checkout into a pending Order, once per
checkout. ``fulfill`` then runs the order's stages in sequence:

1. Validation: customer email, line item resolution and classification,
   shipping and digital delivery preconditions. Any failure here fails the
   order before a single external side effect.
2. Print stage: one print job for all books.
3. Digital stage: one license or access code per digital item. It runs even
   when the print stage failed, so the customer gets whatever can be
   delivered.

Each stage outcome is saved as soon as it is known. ``fulfill`` is safe to
run again on a pending order: stages already settled are skipped, so a
second print job is never created.
"""

import structlog

from catalogue.line_items import ClassifiedCart, classify, resolve_line_items
from fulfillment.errors import FulfillmentError, FulfillmentErrorCode
from fulfillment.order.notify import OrderNotifier
from fulfillment.order.order import Order, OrderStatus, StageOutcome
from fulfillment.order.print_jobs import PrintJobOrchestrator
from fulfillment.order.store import OrderStore
from fulfillment.utils.logging import bind_order_context
from licensing.delivery import DigitalDeliveryProcessor
from notifications.templates.kinds import StoreNotification
from payments.gateway.port import CheckoutSession, PaymentGateway

logger = structlog.get_logger(__name__)

ORDER_CONFIRMED = "ORDER_CONFIRMED"


class OrderFulfillmentOrchestrator:
    def __init__(
        self,
        store: OrderStore,
        gateway: PaymentGateway,
        print_jobs: PrintJobOrchestrator,
        digital_delivery: DigitalDeliveryProcessor,
        notifier: OrderNotifier,
    ):
        self.store = store
        self.gateway = gateway
        self.print_jobs = print_jobs
        self.digital_delivery = digital_delivery
        self.notifier = notifier

    def accept(self, session: CheckoutSession) -> tuple[Order, bool]:
        """Create the pending Order for a checkout. Returns ``(order, is_new)``."""
        return self.store.create_or_get(
            session.id,
            customer_email=session.customer_email,
            account_id=(session.metadata or {}).get("account_id"),
        )

    def fulfill(self, order_id: str, session: CheckoutSession | None = None) -> Order:
        """Run every unsettled stage of a pending order.

        Raises:
            ObjectNotFoundError: unknown order.
            ExternalServiceError: the payment processor could not be reached.
                The order stays pending for the reconciliation sweep.
        """
        with bind_order_context(order_id):
            return self._fulfill(order_id, session)

    def _fulfill(self, order_id: str, session: CheckoutSession | None) -> Order:
        order = self.store.get(order_id)
        if order.is_terminal:
            logger.info("Order already settled, nothing to fulfill", order_id=order_id, status=order.status)
            return order

        if session is None:
            session = self.gateway.retrieve_checkout_session(order_id)
        if session is None:
            return self._fail(order_id, FulfillmentError(FulfillmentErrorCode.CHECKOUT_SESSION_NOT_FOUND, order_id))

        metadata = session.metadata or {}
        account_id = order.account_id or metadata.get("account_id")
        default_option = metadata.get("digital_delivery_option")

        try:
            email = order.customer_email or session.customer_email
            if not email:
                raise FulfillmentError(FulfillmentErrorCode.MISSING_EMAIL)

            cart = classify(resolve_line_items(session.line_items, self.gateway))
            if cart.has_books:
                self.print_jobs.build_request(order_id, cart, session)
            if cart.has_digital:
                self.digital_delivery.plan(list(cart.digital), default_option, account_id)
        except FulfillmentError as exc:
            return self._fail(order_id, exc)

        if email != order.customer_email:
            order = self.store.update_order_fields(order_id, customer_email=email)

        logger.info(
            "Fulfilling order",
            order_id=order_id,
            books=len(cart.books),
            digital_items=len(cart.digital),
        )

        errors: list[FulfillmentError] = []
        error = self._run_print_stage(order, cart, session)
        if error is not None:
            errors.append(error)
        error = self._run_digital_stage(order, cart, email, default_option, account_id)
        if error is not None:
            errors.append(error)

        if errors:
            return self._fail(order_id, errors[0])

        self._confirm(order_id, cart)

        if not cart.has_books:
            order, _ = self.store.apply(order_id, lambda o: o.complete())
            logger.info("Order completed", order_id=order_id)
            return order
        return self.store.get(order_id)

    # -------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------
    def _run_print_stage(self, order: Order, cart: ClassifiedCart, session: CheckoutSession) -> FulfillmentError | None:
        order_id = str(order.id)
        if not cart.has_books:
            if order.print_stage == StageOutcome.PENDING.value:
                self.store.apply(order_id, lambda o: o.mark_print_not_required())
            return None

        if order.print_stage == StageOutcome.DONE.value:
            logger.info("Print job already created", order_id=order_id, print_job_id=order.print_job_id)
            return None
        if order.print_stage == StageOutcome.FAILED.value:
            return FulfillmentError(FulfillmentErrorCode.PRINT_JOB_CREATE_FAILED, "Earlier print job attempt failed")

        try:
            self.print_jobs.submit(order_id, cart, session)
        except FulfillmentError as exc:
            return exc
        return None

    def _run_digital_stage(
        self,
        order: Order,
        cart: ClassifiedCart,
        email: str,
        default_option: str | None,
        account_id: str | None,
    ) -> FulfillmentError | None:
        order_id = str(order.id)
        if not cart.has_digital:
            if order.digital_stage == StageOutcome.PENDING.value:
                self.store.apply(order_id, lambda o: o.mark_digital_not_required())
            return None

        if order.digital_stage == StageOutcome.DONE.value:
            return None
        if order.digital_stage == StageOutcome.FAILED.value:
            return FulfillmentError(FulfillmentErrorCode.DIGITAL_DELIVERY_FAILED, "Earlier delivery attempt failed")

        result = self.digital_delivery.deliver(list(cart.digital), email, default_option, account_id)
        self.store.apply(
            order_id,
            lambda o: o.record_digital_delivery(result.requested, result.delivered, list(result.failed_price_ids)),
        )
        if result.success:
            return None
        return FulfillmentError(
            FulfillmentErrorCode.DIGITAL_DELIVERY_FAILED,
            f"{result.delivered} of {result.requested} delivered",
            retryable=result.retryable,
        )

    # -------------------------------------------------------------------
    # Outcome
    # -------------------------------------------------------------------
    def _fail(self, order_id: str, error: FulfillmentError) -> Order:
        logger.error("Order failed", order_id=order_id, error=error.code.value, detail=error.detail)

        def _mark(o: Order) -> None:
            if o.status == OrderStatus.PENDING.value:
                o.fail(error.code.value, error.detail)

        order, _ = self.store.apply(order_id, _mark)
        return order

    def _confirm(self, order_id: str, cart: ClassifiedCart) -> None:
        self.notifier.send_once(
            order_id,
            StoreNotification.ORDER_CONFIRMED,
            ORDER_CONFIRMED,
            context=lambda _: {"has_books": cart.has_books, "has_digital": cart.has_digital},
        )
