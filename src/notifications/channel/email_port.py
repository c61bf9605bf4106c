"""Email channel port — abstract interface for customer email dispatch."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailResult:
    """Outcome of one send attempt."""

    sent: bool
    message_id: str | None = None
    error: str | None = None


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> EmailResult:
        """Send one email. Delivery failures are reported in the result, not raised."""
        ...
