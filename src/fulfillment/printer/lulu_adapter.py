"""Lulu print API adapter.

Talks to the Lulu print-on-demand REST API with client-credentials OAuth.
The access token is cached until shortly before it expires. Every request
carries a bounded timeout; a timeout is reported as a retryable failure and
never retried here.

Status callbacks are signed with an HMAC-SHA256 of the raw body, keyed with
the API secret, sent in the ``Lulu-HMAC-SHA256`` header.
"""

import hashlib
import hmac

import requests
import structlog

from fulfillment.printer.port import (
    PrintJobRequest,
    PrintJobResult,
    PrintProvider,
    ShippingQuote,
    ShippingQuoteLineItem,
)
from payments.gateway.port import ShippingAddress
from shared.cache import TTLCache
from shared.errors import ExternalServiceError, ExternalServiceTimeout

logger = structlog.get_logger(__name__)

_SERVICE = "lulu"
PRODUCTION_URL = "https://api.lulu.com"
SANDBOX_URL = "https://api.sandbox.lulu.com"
TOKEN_PATH = "/auth/realms/glasstree/protocol/openid-connect/token"
TOKEN_EXPIRY_BUFFER_SECONDS = 30
PRODUCTION_DELAY_MINUTES = 120


def _json(response: requests.Response, what: str):
    try:
        return response.json()
    except ValueError as e:
        raise ExternalServiceError(
            _SERVICE, f"{what} returned an unreadable body", status_code=response.status_code
        ) from e


class LuluPrintProvider(PrintProvider):
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        contact_email: str,
        webhook_secret: str = "",
        sandbox: bool = True,
        timeout_seconds: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.base_url = SANDBOX_URL if sandbox else PRODUCTION_URL
        self.client_id = client_id
        self.client_secret = client_secret
        self.contact_email = contact_email
        self.webhook_secret = webhook_secret or client_secret
        self.timeout = timeout_seconds
        self.session = session or requests.Session()
        self._tokens = TTLCache(max_size=1, ttl_seconds=60)

    # -------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------
    def _access_token(self) -> str:
        token = self._tokens.get("access_token")
        if token:
            return token

        try:
            response = self.session.post(
                f"{self.base_url}{TOKEN_PATH}",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as e:
            raise ExternalServiceTimeout(_SERVICE, "Token request timed out") from e
        except requests.RequestException as e:
            raise ExternalServiceError(_SERVICE, f"Token request failed: {e}") from e

        body = _json(response, "Token request")
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise ExternalServiceError(_SERVICE, "Token response has no access_token")
        try:
            expires_in = int(body.get("expires_in", 300))
        except (TypeError, ValueError):
            expires_in = 300
        self._tokens.set("access_token", token, ttl_seconds=max(expires_in - TOKEN_EXPIRY_BUFFER_SECONDS, 0))
        return token

    def _post(self, path: str, payload: dict) -> requests.Response:
        headers = {"Authorization": f"Bearer {self._access_token()}"}
        try:
            response = self.session.post(f"{self.base_url}{path}", json=payload, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise ExternalServiceTimeout(_SERVICE) from e
        except requests.RequestException as e:
            raise ExternalServiceError(_SERVICE, str(e), retryable=True) from e

        if response.status_code >= 400:
            raise ExternalServiceError(
                _SERVICE,
                response.text[:500],
                retryable=response.status_code >= 500,
                status_code=response.status_code,
            )
        return response

    # -------------------------------------------------------------------
    # PrintProvider
    # -------------------------------------------------------------------
    def create_print_job(self, request: PrintJobRequest) -> PrintJobResult:
        payload = {
            "external_id": request.external_id,
            "contact_email": self.contact_email,
            "production_delay": PRODUCTION_DELAY_MINUTES,
            "shipping_address": {**request.shipping_address.to_dict(), "is_business": False},
            "line_items": [item.to_dict() for item in request.line_items],
            "shipping_level": request.shipping_level,
        }
        try:
            body = _json(self._post("/print-jobs/", payload), "Print job creation")
        except ExternalServiceError as e:
            logger.error("Lulu print job creation failed", external_id=request.external_id, error=str(e))
            return PrintJobResult(success=False, failure_reason=e.message, retryable=e.retryable)

        job_id = body.get("id") if isinstance(body, dict) else None
        if not job_id:
            return PrintJobResult(success=False, failure_reason="Lulu returned no print job id")

        status = body.get("status")
        status_name = status.get("name") if isinstance(status, dict) else None
        return PrintJobResult(success=True, job_id=str(job_id), status_name=status_name or "unknown")

    def get_shipping_options(
        self,
        line_items: list[ShippingQuoteLineItem],
        address: ShippingAddress,
    ) -> list[ShippingQuote]:
        payload = {
            "currency": "USD",
            "line_items": [
                {"page_count": i.page_count, "pod_package_id": i.pod_package_id, "quantity": i.quantity}
                for i in line_items
            ],
            "shipping_address": {
                "city": address.city,
                "country": address.country_code,
                "postcode": address.postcode,
                "state_code": address.state_code,
                "street_address": address.street1,
            },
        }
        body = _json(self._post("/shipping-options/", payload), "Shipping options")
        options = body.get("results", body) if isinstance(body, dict) else body
        if not isinstance(options, list) or not all(isinstance(option, dict) for option in options):
            raise ExternalServiceError(_SERVICE, "Shipping options response is not a list of options")
        return [
            ShippingQuote(
                id=str(option.get("id", "")),
                level=option.get("level", ""),
                cost_excl_tax=option.get("cost_excl_tax"),
                currency=option.get("currency", "USD"),
                total_days_min=option.get("total_days_min"),
                total_days_max=option.get("total_days_max"),
                business_only=bool(option.get("business_only")),
                home_only=bool(option.get("home_only")),
            )
            for option in options
        ]

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        if not signature or not self.webhook_secret:
            return False
        expected = hmac.new(self.webhook_secret.encode(), payload.encode(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)
