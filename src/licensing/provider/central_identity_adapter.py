"""Central identity service adapter.

Uses the identity service's store endpoints with HTTP basic auth:

- ``POST /store/access-code/generate`` ``{stripe_price_id, email}``
- ``POST /app-licenses/auto-apply`` ``{stripe_price_id, user_id}``
"""

import requests
import structlog

from licensing.provider.port import LicenseProvider, LicenseResult

logger = structlog.get_logger(__name__)


class CentralIdentityLicenseProvider(LicenseProvider):
    def __init__(
        self,
        base_url: str,
        user: str,
        key: str,
        timeout_seconds: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds
        self.session = session or requests.Session()
        self.session.auth = (user, key)

    def _post(self, path: str, payload: dict) -> LicenseResult:
        try:
            response = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        except requests.Timeout:
            logger.error("Identity service request timed out", path=path)
            return LicenseResult(success=False, failure_reason="Request timed out", retryable=True)
        except requests.RequestException as e:
            logger.error("Identity service request failed", path=path, error=str(e))
            return LicenseResult(success=False, failure_reason=str(e), retryable=True)

        if response.status_code >= 400:
            logger.error(
                "Identity service rejected request",
                path=path,
                status_code=response.status_code,
                body=response.text[:500],
            )
            return LicenseResult(
                success=False,
                failure_reason=f"HTTP {response.status_code}",
                retryable=response.status_code >= 500,
            )
        return LicenseResult(success=True)

    def generate_access_code(self, price_id: str, email: str) -> LicenseResult:
        return self._post("/store/access-code/generate", {"stripe_price_id": price_id, "email": email})

    def grant_license(self, price_id: str, account_id: str) -> LicenseResult:
        return self._post("/app-licenses/auto-apply", {"stripe_price_id": price_id, "user_id": account_id})
