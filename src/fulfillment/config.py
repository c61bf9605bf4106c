"""Runtime settings for the store fulfillment service.

All settings come from environment variables. Adapters default to their
fakes so the service and the test suite run without credentials; production
deployments set ``PAYMENT_GATEWAY=stripe``, ``PRINT_PROVIDER=lulu``,
``LICENSE_SERVICE=central_identity`` and ``EMAIL_ADAPTER=mailgun``.
"""

import os
from dataclasses import dataclass

DEFAULT_PRINT_SOURCE_TEMPLATE = "https://batch.libretexts.org/print/Finished/{book_id}/Publication"


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


@dataclass(frozen=True)
class FulfillmentSettings:
    environment: str = "development"

    payment_gateway: str = "fake"
    print_provider: str = "fake"
    license_service: str = "fake"
    email_adapter: str = "fake"

    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""

    lulu_client_id: str = ""
    lulu_client_secret: str = ""
    lulu_webhook_secret: str = ""
    lulu_sandbox: bool = True
    bookstore_contact_email: str = ""
    print_source_template: str = DEFAULT_PRINT_SOURCE_TEMPLATE

    central_identity_url: str = ""
    central_identity_user: str = ""
    central_identity_key: str = ""

    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mail_sender: str = "LibreTexts Bookstore <no-reply@libretexts.org>"

    external_timeout_seconds: float = 15.0
    catalog_cache_ttl_seconds: float = 300.0
    catalog_cache_max_entries: int = 1000
    reconcile_after_seconds: float = 900.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "FulfillmentSettings":
        environment = (os.environ.get("PROTEAN_ENV") or "development").lower()
        return cls(
            environment=environment,
            payment_gateway=os.environ.get("PAYMENT_GATEWAY", "fake"),
            print_provider=os.environ.get("PRINT_PROVIDER", "fake"),
            license_service=os.environ.get("LICENSE_SERVICE", "fake"),
            email_adapter=os.environ.get("EMAIL_ADAPTER", "fake"),
            stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY", ""),
            stripe_webhook_secret=os.environ.get("STRIPE_STORE_WEBHOOK_SECRET", ""),
            lulu_client_id=os.environ.get("LULU_CLIENT_ID", ""),
            lulu_client_secret=os.environ.get("LULU_CLIENT_SECRET", ""),
            lulu_webhook_secret=os.environ.get("LULU_WEBHOOK_SECRET", ""),
            lulu_sandbox=os.environ.get("LULU_SANDBOX", "true" if environment != "production" else "false") == "true",
            bookstore_contact_email=os.environ.get("BOOKSTORE_CONTACT_EMAIL", ""),
            print_source_template=os.environ.get("PRINT_SOURCE_TEMPLATE", DEFAULT_PRINT_SOURCE_TEMPLATE),
            central_identity_url=os.environ.get("CENTRAL_IDENTITY_URL", ""),
            central_identity_user=os.environ.get("CENTRAL_IDENTITY_USER", ""),
            central_identity_key=os.environ.get("CENTRAL_IDENTITY_KEY", ""),
            mailgun_api_key=os.environ.get("MAILGUN_API_KEY", ""),
            mailgun_domain=os.environ.get("MAILGUN_DOMAIN", ""),
            mail_sender=os.environ.get("MAIL_SENDER", cls.mail_sender),
            external_timeout_seconds=_env_float("EXTERNAL_TIMEOUT_SECONDS", 15.0),
            catalog_cache_ttl_seconds=_env_float("CATALOG_CACHE_TTL_SECONDS", 300.0),
            catalog_cache_max_entries=_env_int("CATALOG_CACHE_MAX_ENTRIES", 1000),
            reconcile_after_seconds=_env_float("RECONCILE_AFTER_SECONDS", 900.0),
        )
