"""Print job submission and resubmission.

A print job holds every book of an order, shipped to the customer's address
at the shipping level chosen at checkout. The job id is saved on the order as
soon as the provider returns it, so a later failure elsewhere in the order
never loses the fact that a billable job exists.

Resubmission rebuilds the job from the original checkout session, never
from client input, and replaces the stored job id.
"""

import structlog
from protean.exceptions import ValidationError

from catalogue.line_items import BookItem, ClassifiedCart, classify, resolve_line_items
from fulfillment.config import DEFAULT_PRINT_SOURCE_TEMPLATE
from fulfillment.errors import FulfillmentError, FulfillmentErrorCode
from fulfillment.order.order import Order, OrderStatus, StageOutcome
from fulfillment.order.store import OrderStore
from fulfillment.printer.port import PrintJobLineItem, PrintJobRequest, PrintJobResult, PrintProvider
from fulfillment.printer.printables import cover_url, interior_url, pod_package_id
from licensing.delivery import DigitalDeliveryProcessor
from payments.gateway.port import CheckoutSession, PaymentGateway

logger = structlog.get_logger(__name__)


class PrintJobOrchestrator:
    def __init__(
        self,
        store: OrderStore,
        print_provider: PrintProvider,
        gateway: PaymentGateway,
        print_source_template: str = DEFAULT_PRINT_SOURCE_TEMPLATE,
        digital_delivery: DigitalDeliveryProcessor | None = None,
    ):
        self.store = store
        self.print_provider = print_provider
        self.gateway = gateway
        self.print_source_template = print_source_template
        self.digital_delivery = digital_delivery

    # -------------------------------------------------------------------
    # Job construction
    # -------------------------------------------------------------------
    def build_line_item(self, book: BookItem) -> PrintJobLineItem:
        return PrintJobLineItem(
            external_id=book.book_id,
            title=book.title,
            cover_url=cover_url(book.book_id, book.hardcover, self.print_source_template),
            interior_url=interior_url(book.book_id, self.print_source_template),
            pod_package_id=pod_package_id(book.hardcover, book.color),
            quantity=book.quantity,
        )

    def build_request(self, order_id: str, cart: ClassifiedCart, session: CheckoutSession) -> PrintJobRequest:
        """Raises FulfillmentError(MISSING_SHIPPING_ITEM) when books cannot be shipped."""
        if cart.shipping is None:
            raise FulfillmentError(FulfillmentErrorCode.MISSING_SHIPPING_ITEM, "Books ordered without a shipping item")
        if session.shipping_address is None:
            raise FulfillmentError(FulfillmentErrorCode.MISSING_SHIPPING_ITEM, "Checkout has no shipping address")

        return PrintJobRequest(
            external_id=order_id,
            shipping_address=session.shipping_address,
            line_items=tuple(self.build_line_item(book) for book in cart.books),
            shipping_level=cart.shipping.level,
        )

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def _create(self, order_id: str, request: PrintJobRequest) -> PrintJobResult:
        result = self.print_provider.create_print_job(request)
        if result.success:
            logger.info("Print job created", order_id=order_id, print_job_id=result.job_id, status=result.status_name)
            return result

        logger.error("Print job creation failed", order_id=order_id, reason=result.failure_reason)
        self.store.apply(order_id, lambda o: o.record_print_failure(result.failure_reason or ""))
        raise FulfillmentError(
            FulfillmentErrorCode.PRINT_JOB_CREATE_FAILED,
            result.failure_reason or "",
            retryable=result.retryable,
        )

    def submit(self, order_id: str, cart: ClassifiedCart, session: CheckoutSession) -> Order:
        """Create the order's print job and record it immediately.

        Raises:
            FulfillmentError: MISSING_SHIPPING_ITEM before any provider call,
                PRINT_JOB_CREATE_FAILED when the provider rejects or times out.
        """
        request = self.build_request(order_id, cart, session)
        result = self._create(order_id, request)
        order, _ = self.store.apply(order_id, lambda o: o.record_print_job(result.job_id, result.status_name))
        return order

    def resubmit(self, order_id: str) -> Order:
        """Create a brand-new print job for an order from its original checkout.

        A failed order goes back to pending only when its digital stage is
        settled, i.e. every digital item was delivered or there were none.
        An order whose digital items were never delivered stays failed, so a
        shipment callback cannot complete it.

        Raises:
            ObjectNotFoundError: unknown order.
            ValidationError: the order is already completed.
            FulfillmentError: the checkout, its books, its shipping item or
                its digital delivery options cannot be reconstructed, or the
                provider rejects the job.
        """
        order = self.store.get(order_id)
        if order.status == OrderStatus.COMPLETED.value:
            raise ValidationError({"status": ["Completed orders cannot be resubmitted"]})

        session = self.gateway.retrieve_checkout_session(order_id)
        if session is None:
            raise FulfillmentError(FulfillmentErrorCode.CHECKOUT_SESSION_NOT_FOUND, order_id)
        if not (order.customer_email or session.customer_email):
            raise FulfillmentError(FulfillmentErrorCode.MISSING_EMAIL)

        cart = classify(resolve_line_items(session.line_items, self.gateway))
        if not cart.has_books:
            raise FulfillmentError(FulfillmentErrorCode.NOTHING_TO_RESUBMIT, "Order has no books")

        request = self.build_request(order_id, cart, session)
        if cart.has_digital and self.digital_delivery is not None:
            metadata = session.metadata or {}
            self.digital_delivery.plan(
                list(cart.digital),
                metadata.get("digital_delivery_option"),
                order.account_id or metadata.get("account_id"),
            )

        logger.info("Resubmitting print job", order_id=order_id, previous_print_job_id=order.print_job_id)
        result = self._create(order_id, request)

        def _record(o: Order) -> None:
            o.record_customer_email(session.customer_email)
            o.record_print_job(result.job_id, result.status_name)
            if not cart.has_digital and o.digital_stage == StageOutcome.PENDING.value:
                o.mark_digital_not_required()
            if o.status == OrderStatus.FAILED.value and o.stages_settled:
                o.reopen()

        order, _ = self.store.apply(order_id, _record)
        return order
