"""FastAPI routes for store order fulfillment.

Webhooks:
- ``POST /store/webhooks/payments``: completed checkouts from the payment
  processor. Acknowledged as soon as the pending Order exists; fulfillment
  runs as a background task.
- ``POST /store/webhooks/print-jobs``: print job status callbacks.

Administration:
- ``GET /store/orders``, ``GET /store/orders/{order_id}``
- ``POST /store/orders/{order_id}/resubmit``
- ``POST /store/orders/reconcile``

Storefront helpers:
- ``GET /store/book-prices``
- ``POST /store/shipping-options``
"""

import json

import structlog
from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Query, Request
from starlette.concurrency import run_in_threadpool

from catalogue.pricing import calculate_book_prices
from catalogue.shipping import DIGITAL_DELIVERY_ONLY
from fulfillment.api.schemas import (
    BookPriceResponse,
    BookPricesResponse,
    CartItemRequest,
    CheckoutSessionResponse,
    NotificationResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderSummaryResponse,
    PrintJobStatusEntryResponse,
    ReconcileRequest,
    ReconcileResponse,
    ResubmitResponse,
    ShippingOptionResponse,
    ShippingOptionsRequest,
    ShippingOptionsResponse,
    StageOutcomeResponse,
    StatusResponse,
)
from fulfillment.order.order import Order
from fulfillment.services import FulfillmentServices
from payments.gateway.port import CheckoutLineItem, CheckoutSession, ShippingAddress
from shared.errors import ExternalServiceError

logger = structlog.get_logger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
STORE_FEATURE = "store"

store_router = APIRouter(prefix="/store", tags=["store"])


def get_services(request: Request) -> FulfillmentServices:
    return request.app.state.services


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------
def _summary(order: Order) -> OrderSummaryResponse:
    return OrderSummaryResponse(
        id=str(order.id),
        status=order.status,
        customer_email=order.customer_email,
        error=order.error,
        print_job_id=order.print_job_id,
        print_job_status=order.print_job_status,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _session_detail(session: CheckoutSession) -> CheckoutSessionResponse:
    return CheckoutSessionResponse(
        id=session.id,
        payment_status=session.payment_status,
        amount_total=session.amount_total,
        currency=session.currency,
        shipping_address=session.shipping_address.to_dict() if session.shipping_address else None,
        line_items=[
            CartItemRequest(product_id=item.product_id, price_id=item.price_id, quantity=item.quantity)
            for item in session.line_items
        ],
    )


def _detail(order: Order, session: CheckoutSession | None) -> OrderDetailResponse:
    summary = _summary(order)
    return OrderDetailResponse(
        **summary.model_dump(),
        account_id=order.account_id,
        error_detail=order.error_detail,
        print_job_status_message=order.print_job_status_message,
        print_job_submissions=order.print_job_submissions or 0,
        stages=StageOutcomeResponse(print=order.print_stage, digital=order.digital_stage),
        print_job_status_history=[
            PrintJobStatusEntryResponse(
                sequence=entry.sequence,
                print_job_id=entry.print_job_id,
                status=entry.status,
                payload=json.loads(entry.payload),
                received_at=entry.received_at,
            )
            for entry in sorted(order.print_job_status_history or [], key=lambda e: e.sequence)
        ],
        notifications_sent=[
            NotificationResponse(
                status=record.status,
                tracking_id=record.tracking_id,
                state=record.state,
                sent_at=record.sent_at,
            )
            for record in order.notifications_sent or []
        ],
        checkout_session=_session_detail(session) if session else None,
    )


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------
def _fulfill_in_background(services: FulfillmentServices, order_id: str, session: CheckoutSession) -> None:
    try:
        services.orchestrator.fulfill(order_id, session)
    except ExternalServiceError as exc:
        # Order stays pending; the reconciliation sweep picks it up
        logger.warning("Fulfillment deferred", order_id=order_id, service=exc.service, error=exc.message)


def _resolve_session(services: FulfillmentServices, event_type: str, object_id: str) -> CheckoutSession | None:
    if event_type == CHECKOUT_SESSION_COMPLETED:
        session_id = object_id
    else:
        session_id = services.gateway.find_checkout_session_id(object_id)
        if session_id is None:
            logger.warning("No checkout session for payment intent", payment_intent_id=object_id)
            return None
    return services.gateway.retrieve_checkout_session(session_id)


@store_router.post("/webhooks/payments", response_model=StatusResponse)
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: str = Header(default=""),
) -> StatusResponse:
    """Accept a completed checkout and schedule its fulfillment."""
    services = get_services(request)
    payload = (await request.body()).decode("utf-8")

    if not services.gateway.verify_webhook_signature(payload, stripe_signature):
        raise HTTPException(status_code=401, detail="Invalid payment webhook signature")
    try:
        event = services.gateway.parse_event(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if event.type not in (CHECKOUT_SESSION_COMPLETED, PAYMENT_INTENT_SUCCEEDED):
        return StatusResponse(status="ignored")

    try:
        session = await run_in_threadpool(_resolve_session, services, event.type, event.object_id)
    except ExternalServiceError as exc:
        raise HTTPException(status_code=503, detail=exc.message) from exc
    if session is None:
        logger.warning("Checkout session not found", event_id=event.id, object_id=event.object_id)
        return StatusResponse(status="ignored")
    if (session.metadata or {}).get("feature") != STORE_FEATURE:
        return StatusResponse(status="ignored")

    order, is_new = await run_in_threadpool(services.orchestrator.accept, session)
    if not is_new:
        logger.info("Duplicate payment event", order_id=str(order.id), event_id=event.id)
        return StatusResponse(status="duplicate")

    background_tasks.add_task(_fulfill_in_background, services, str(order.id), session)
    return StatusResponse(status="accepted")


@store_router.post("/webhooks/print-jobs", response_model=StatusResponse)
async def print_job_webhook(
    request: Request,
    lulu_hmac_sha256: str = Header(default="", alias="Lulu-HMAC-SHA256"),
) -> StatusResponse:
    """Record a print job status callback."""
    services = get_services(request)
    body = (await request.body()).decode("utf-8")

    if not services.print_provider.verify_webhook_signature(body, lulu_hmac_sha256):
        raise HTTPException(status_code=401, detail="Invalid print webhook signature")
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Malformed print webhook payload") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Malformed print webhook payload")

    outcome = await run_in_threadpool(services.status_engine.handle_webhook, payload)
    return StatusResponse(status="processed" if outcome.handled else "ignored")


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------
@store_router.get("/orders", response_model=OrderListResponse)
def list_orders(
    request: Request,
    status: str | None = None,
    print_job_status: str | None = None,
    query: str | None = None,
    starting_after: str | None = None,
    limit: int = Query(default=25, ge=1, le=100),
) -> OrderListResponse:
    """List orders, newest first."""
    page = get_services(request).store.list_orders(
        status=status,
        print_job_status=print_job_status,
        query=query,
        starting_after=starting_after,
        limit=limit,
    )
    return OrderListResponse(
        orders=[_summary(order) for order in page.items],
        has_more=page.has_more,
        next_cursor=page.next_cursor,
        total_count=page.total_count,
    )


@store_router.get("/orders/{order_id}", response_model=OrderDetailResponse)
def get_order(order_id: str, request: Request) -> OrderDetailResponse:
    """One order with its status history, ledger and checkout session."""
    services = get_services(request)
    order = services.store.get(order_id)
    try:
        session = services.gateway.retrieve_checkout_session(order_id)
    except ExternalServiceError as exc:
        logger.warning("Checkout session unavailable", order_id=order_id, error=exc.message)
        session = None
    return _detail(order, session)


@store_router.post("/orders/{order_id}/resubmit", response_model=ResubmitResponse)
def resubmit_print_job(order_id: str, request: Request) -> ResubmitResponse:
    """Create a new print job for the order from its original checkout."""
    order = get_services(request).print_jobs.resubmit(order_id)
    return ResubmitResponse(
        order_id=str(order.id),
        status=order.status,
        print_job_id=order.print_job_id,
        print_job_status=order.print_job_status,
    )


@store_router.post("/orders/reconcile", response_model=ReconcileResponse)
def reconcile_orders(request: Request, body: ReconcileRequest | None = None) -> ReconcileResponse:
    """Re-drive pending orders that have stalled."""
    report = get_services(request).reconciler.sweep(limit=(body or ReconcileRequest()).limit)
    return ReconcileResponse(
        examined=report.examined,
        completed=report.completed,
        failed=report.failed,
        pending=report.pending,
        errored=report.errored,
    )


# ---------------------------------------------------------------------------
# Storefront helpers
# ---------------------------------------------------------------------------
@store_router.get("/book-prices", response_model=BookPricesResponse)
def book_prices(num_pages: int = Query(ge=0)) -> BookPricesResponse:
    """Price of every print variant of a book."""
    return BookPricesResponse(
        num_pages=num_pages,
        prices=[
            BookPriceResponse(
                hardcover=option.hardcover,
                color=option.color,
                price_cents=option.price_cents,
                formatted=option.formatted,
            )
            for option in calculate_book_prices(num_pages)
        ],
    )


@store_router.post("/shipping-options", response_model=ShippingOptionsResponse)
def shipping_options(body: ShippingOptionsRequest, request: Request) -> ShippingOptionsResponse:
    """Ranked shipping quotes for a cart, cheapest first."""
    result = get_services(request).shipping_options.resolve(
        [CheckoutLineItem(product_id=i.product_id, price_id=i.price_id, quantity=i.quantity) for i in body.items],
        ShippingAddress(**body.shipping_address.model_dump()),
    )
    if result == DIGITAL_DELIVERY_ONLY:
        return ShippingOptionsResponse(digital_delivery_only=True)
    return ShippingOptionsResponse(
        options=[
            ShippingOptionResponse(
                id=option.id,
                level=option.level,
                cost_cents=option.cost_cents,
                currency=option.currency,
                total_days_min=option.total_days_min,
                total_days_max=option.total_days_max,
            )
            for option in result
        ]
    )
