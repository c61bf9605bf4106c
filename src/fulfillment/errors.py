"""Fulfillment error taxonomy.

Codes are stored on ``Order.error`` when an order fails. Classification
codes are raised before any external side effect; the others may follow one.
"""

from enum import Enum


class FulfillmentErrorCode(Enum):
    MISSING_EMAIL = "MISSING_EMAIL"
    NO_LINE_ITEMS = "NO_LINE_ITEMS"
    TOO_MANY_LINE_ITEMS = "TOO_MANY_LINE_ITEMS"
    INVALID_LINE_ITEM = "INVALID_LINE_ITEM"
    INVALID_LINE_ITEM_PRICE = "INVALID_LINE_ITEM_PRICE"
    INVALID_LINE_ITEM_PRODUCT = "INVALID_LINE_ITEM_PRODUCT"
    LINE_ITEM_PRODUCT_MISMATCH = "LINE_ITEM_PRODUCT_MISMATCH"
    MISSING_SHIPPING_ITEM = "MISSING_SHIPPING_ITEM"
    INVALID_DIGITAL_DELIVERY_OPTION = "INVALID_DIGITAL_DELIVERY_OPTION"
    PRINT_JOB_CREATE_FAILED = "PRINT_JOB_CREATE_FAILED"
    DIGITAL_DELIVERY_FAILED = "DIGITAL_DELIVERY_FAILED"
    CHECKOUT_SESSION_NOT_FOUND = "CHECKOUT_SESSION_NOT_FOUND"
    NOTHING_TO_RESUBMIT = "NOTHING_TO_RESUBMIT"


class FulfillmentError(Exception):
    """A fulfillment step failed with a taxonomy code."""

    def __init__(self, code: FulfillmentErrorCode, detail: str = "", retryable: bool = False):
        super().__init__(f"{code.value}: {detail}" if detail else code.value)
        self.code = code
        self.detail = detail
        self.retryable = retryable
