"""Fake print provider — deterministic provider for testing and development.

Records every submitted job and quote request. Configurable success/failure
behavior and quote list for integration testing.
"""

from itertools import count

from fulfillment.printer.port import (
    PrintJobRequest,
    PrintJobResult,
    PrintProvider,
    ShippingQuote,
    ShippingQuoteLineItem,
)
from payments.gateway.port import ShippingAddress

DEFAULT_QUOTES = [
    ShippingQuote(id="q-mail", level="MAIL", cost_excl_tax="4.99", total_days_min=7, total_days_max=14),
    ShippingQuote(id="q-ground", level="GROUND", cost_excl_tax="7.50", total_days_min=4, total_days_max=7),
    ShippingQuote(id="q-express", level="EXPRESS", cost_excl_tax="24.00", total_days_min=1, total_days_max=2),
]


class FakePrintProvider(PrintProvider):
    """Fake print provider that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Print provider unavailable"
        self.retryable = False
        self.quotes: list[ShippingQuote] = list(DEFAULT_QUOTES)
        self.jobs: list[PrintJobRequest] = []
        self.quote_requests: list[dict] = []
        self._ids = count(1000)

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Print provider unavailable",
        retryable: bool = False,
    ):
        """Configure the fake provider behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.retryable = retryable

    def create_print_job(self, request: PrintJobRequest) -> PrintJobResult:
        if not self.should_succeed:
            return PrintJobResult(success=False, failure_reason=self.failure_reason, retryable=self.retryable)

        self.jobs.append(request)
        return PrintJobResult(success=True, job_id=str(next(self._ids)), status_name="CREATED")

    def get_shipping_options(
        self,
        line_items: list[ShippingQuoteLineItem],
        address: ShippingAddress,
    ) -> list[ShippingQuote]:
        self.quote_requests.append({"line_items": list(line_items), "address": address})
        return list(self.quotes)

    def verify_webhook_signature(self, _payload: str, _signature: str) -> bool:
        # FakePrintProvider accepts any signature (or empty signature) for testing
        return True
