"""Configurable fake license provider for development and testing."""

from licensing.provider.port import LicenseProvider, LicenseResult


class FakeLicenseProvider(LicenseProvider):
    """Records every request; individual price ids can be made to fail."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "License service unavailable"
        self.failing_price_ids: set[str] = set()
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "License service unavailable",
        failing_price_ids: set[str] | None = None,
    ) -> None:
        """Configure provider behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failing_price_ids = set(failing_price_ids or ())

    def _result(self, price_id: str) -> LicenseResult:
        if self.should_succeed and price_id not in self.failing_price_ids:
            return LicenseResult(success=True)
        return LicenseResult(success=False, failure_reason=self.failure_reason)

    def generate_access_code(self, price_id: str, email: str) -> LicenseResult:
        self.calls.append({"method": "generate_access_code", "price_id": price_id, "email": email})
        return self._result(price_id)

    def grant_license(self, price_id: str, account_id: str) -> LicenseResult:
        self.calls.append({"method": "grant_license", "price_id": price_id, "account_id": account_id})
        return self._result(price_id)
