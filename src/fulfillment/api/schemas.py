"""Pydantic API schemas for the store fulfillment service.

These are the external API contracts. The routes translate between these
schemas and the application services; domain objects never leave the API.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class CartItemRequest(BaseModel):
    product_id: str
    price_id: str
    quantity: int = Field(default=1, ge=1)


class ShippingAddressRequest(BaseModel):
    name: str = ""
    street1: str
    street2: str = ""
    city: str
    state_code: str = ""
    postcode: str
    country_code: str
    phone_number: str = ""


class ShippingOptionsRequest(BaseModel):
    items: list[CartItemRequest] = Field(min_length=1)
    shipping_address: ShippingAddressRequest


class ReconcileRequest(BaseModel):
    limit: int = Field(default=50, ge=1, le=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str


class PrintJobStatusEntryResponse(BaseModel):
    sequence: int
    print_job_id: str | None = None
    status: str | None = None
    payload: dict
    received_at: datetime | None = None


class NotificationResponse(BaseModel):
    status: str
    tracking_id: str | None = None
    state: str
    sent_at: datetime | None = None


class StageOutcomeResponse(BaseModel):
    print: str
    digital: str


class OrderSummaryResponse(BaseModel):
    id: str
    status: str
    customer_email: str | None = None
    error: str | None = None
    print_job_id: str | None = None
    print_job_status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderSummaryResponse]
    has_more: bool
    next_cursor: str | None = None
    total_count: int


class CheckoutSessionResponse(BaseModel):
    id: str
    payment_status: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    shipping_address: dict | None = None
    line_items: list[CartItemRequest] = []


class OrderDetailResponse(OrderSummaryResponse):
    account_id: str | None = None
    error_detail: str | None = None
    print_job_status_message: str | None = None
    print_job_submissions: int = 0
    stages: StageOutcomeResponse
    print_job_status_history: list[PrintJobStatusEntryResponse] = []
    notifications_sent: list[NotificationResponse] = []
    checkout_session: CheckoutSessionResponse | None = None


class ResubmitResponse(BaseModel):
    order_id: str
    status: str
    print_job_id: str
    print_job_status: str | None = None


class ReconcileResponse(BaseModel):
    examined: int
    completed: list[str]
    failed: list[str]
    pending: list[str]
    errored: list[str]


class ShippingOptionResponse(BaseModel):
    id: str
    level: str
    cost_cents: int
    currency: str
    total_days_min: int | None = None
    total_days_max: int | None = None


class ShippingOptionsResponse(BaseModel):
    digital_delivery_only: bool = False
    options: list[ShippingOptionResponse] = []


class BookPriceResponse(BaseModel):
    hardcover: bool
    color: bool
    price_cents: int
    formatted: str


class BookPricesResponse(BaseModel):
    num_pages: int
    prices: list[BookPriceResponse]
