"""License provider port (abstract interface).

The identity service owns application licenses. It can either mint an
access code and email it to a buyer, or attach a license directly to an
existing account.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LicenseResult:
    """Result of a license operation."""

    success: bool
    failure_reason: str | None = None
    retryable: bool = False


class LicenseProvider(ABC):
    """Abstract license provider interface."""

    @abstractmethod
    def generate_access_code(self, price_id: str, email: str) -> LicenseResult:
        """Mint an access code for the price and email it to ``email``."""
        ...

    @abstractmethod
    def grant_license(self, price_id: str, account_id: str) -> LicenseResult:
        """Apply the license for the price directly to an account."""
        ...
