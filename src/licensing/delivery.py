"""Digital item delivery.

Each digital line item is delivered one of two ways:

- ``email_access_codes``: the identity service mints an access code for the
  item's price and emails it to the buyer.
- ``apply_to_account``: the license is applied straight to the buyer's
  account, which must be known.

The option comes from the product's catalog metadata, falling back to the
order's default (taken from the checkout session). Options are validated for
every item before the first call, so a bad option never leaves a partial
delivery behind. Individual delivery failures are logged and counted; the
delivery as a whole succeeds only if every item was delivered.
"""

from dataclasses import dataclass, field

import structlog

from catalogue.line_items import DigitalItem
from fulfillment.errors import FulfillmentError, FulfillmentErrorCode
from licensing.provider.port import LicenseProvider

logger = structlog.get_logger(__name__)

EMAIL_ACCESS_CODES = "email_access_codes"
APPLY_TO_ACCOUNT = "apply_to_account"
DELIVERY_OPTIONS = (EMAIL_ACCESS_CODES, APPLY_TO_ACCOUNT)


@dataclass(frozen=True)
class DigitalDeliveryResult:
    requested: int
    delivered: int
    failed_price_ids: tuple[str, ...] = field(default_factory=tuple)
    retryable: bool = False

    @property
    def success(self) -> bool:
        return self.delivered == self.requested


class DigitalDeliveryProcessor:
    def __init__(self, license_provider: LicenseProvider):
        self.license_provider = license_provider

    def plan(
        self,
        items: list[DigitalItem],
        default_option: str | None = None,
        account_id: str | None = None,
    ) -> list[tuple[DigitalItem, str]]:
        """Pair every item with its delivery option.

        Raises:
            FulfillmentError: INVALID_DIGITAL_DELIVERY_OPTION for an unknown
                option, or ``apply_to_account`` without an account.
        """
        planned = []
        for item in items:
            option = item.delivery_option or default_option or EMAIL_ACCESS_CODES
            if option not in DELIVERY_OPTIONS:
                raise FulfillmentError(
                    FulfillmentErrorCode.INVALID_DIGITAL_DELIVERY_OPTION,
                    f"Unknown option {option!r} for {item.price_id}",
                )
            if option == APPLY_TO_ACCOUNT and not account_id:
                raise FulfillmentError(
                    FulfillmentErrorCode.INVALID_DIGITAL_DELIVERY_OPTION,
                    f"No account to apply {item.price_id} to",
                )
            planned.append((item, option))
        return planned

    def deliver(
        self,
        items: list[DigitalItem],
        email: str,
        default_option: str | None = None,
        account_id: str | None = None,
    ) -> DigitalDeliveryResult:
        planned = self.plan(items, default_option, account_id)

        delivered = 0
        failed: list[str] = []
        retryable = False
        for item, option in planned:
            if option == APPLY_TO_ACCOUNT:
                result = self.license_provider.grant_license(item.price_id, account_id)
            else:
                result = self.license_provider.generate_access_code(item.price_id, email)

            if result.success:
                delivered += 1
                continue

            failed.append(item.price_id)
            retryable = retryable or result.retryable
            logger.warning(
                "Digital item delivery failed",
                price_id=item.price_id,
                product_id=item.product_id,
                option=option,
                reason=result.failure_reason,
            )

        if failed:
            logger.error(
                "Digital delivery incomplete",
                delivered=delivered,
                requested=len(planned),
            )
        return DigitalDeliveryResult(
            requested=len(planned),
            delivered=delivered,
            failed_price_ids=tuple(failed),
            retryable=retryable,
        )
