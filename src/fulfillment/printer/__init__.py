"""Print provider adapter abstraction — pluggable print-on-demand integration."""

from fulfillment.printer.port import PrintProvider


def build_print_provider(settings) -> PrintProvider:
    """Create the print provider adapter named in ``settings.print_provider``.

    Uses FakePrintProvider by default. In production, configure via the
    PRINT_PROVIDER environment variable.
    """
    if settings.print_provider == "fake":
        from fulfillment.printer.fake_adapter import FakePrintProvider

        return FakePrintProvider()
    if settings.print_provider == "lulu":
        from fulfillment.printer.lulu_adapter import LuluPrintProvider

        return LuluPrintProvider(
            client_id=settings.lulu_client_id,
            client_secret=settings.lulu_client_secret,
            contact_email=settings.bookstore_contact_email,
            webhook_secret=settings.lulu_webhook_secret,
            sandbox=settings.lulu_sandbox,
            timeout_seconds=settings.external_timeout_seconds,
        )
    raise ValueError(f"Unknown print provider: {settings.print_provider}")
