"""Print provider port — abstract interface for print-on-demand integrations.

All print provider adapters must implement this interface. The fulfillment
code programs against the port; adapters are swapped via configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from payments.gateway.port import ShippingAddress


@dataclass(frozen=True)
class PrintJobLineItem:
    external_id: str
    title: str
    cover_url: str
    interior_url: str
    pod_package_id: str
    quantity: int = 1

    def to_dict(self) -> dict:
        return {
            "external_id": self.external_id,
            "title": self.title,
            "printable_normalization": {
                "cover": {"source_url": self.cover_url},
                "interior": {"source_url": self.interior_url},
                "pod_package_id": self.pod_package_id,
            },
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class PrintJobRequest:
    """One print job per order; ``external_id`` is the order id."""

    external_id: str
    shipping_address: ShippingAddress
    line_items: tuple[PrintJobLineItem, ...]
    shipping_level: str


@dataclass(frozen=True)
class PrintJobResult:
    """Result of a print job creation attempt."""

    success: bool
    job_id: str | None = None
    status_name: str | None = None
    failure_reason: str | None = None
    retryable: bool = False


@dataclass(frozen=True)
class ShippingQuoteLineItem:
    page_count: int
    pod_package_id: str
    quantity: int = 1


@dataclass(frozen=True)
class ShippingQuote:
    """A shipping option quoted by the provider. ``cost_excl_tax`` is a decimal string."""

    id: str
    level: str
    cost_excl_tax: str | None
    currency: str = "USD"
    total_days_min: int | None = None
    total_days_max: int | None = None
    business_only: bool = False
    home_only: bool = False


class PrintProvider(ABC):
    """Abstract interface for print provider adapters."""

    @abstractmethod
    def create_print_job(self, request: PrintJobRequest) -> PrintJobResult:
        """Submit a print job.

        Returns:
            PrintJobResult; failures (including timeouts) are reported, not raised.
        """
        ...

    @abstractmethod
    def get_shipping_options(
        self,
        line_items: list[ShippingQuoteLineItem],
        address: ShippingAddress,
    ) -> list[ShippingQuote]:
        """Quote shipping options for the given items and destination.

        Raises:
            ExternalServiceError: if the provider cannot be queried.
        """
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a status callback is authentic.

        Returns:
            True if the signature is valid, False otherwise.
        """
        ...
