"""Errors raised by adapters that talk to external services.

Adapters translate transport and SDK exceptions into these types so that
application code never depends on ``requests`` or ``stripe`` exceptions.
"""


class ExternalServiceError(Exception):
    """An external service rejected a request or could not be reached."""

    def __init__(self, service: str, message: str, retryable: bool = False, status_code: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.retryable = retryable
        self.status_code = status_code


class ExternalServiceTimeout(ExternalServiceError):
    """The call did not complete within its timeout. Safe to retry."""

    def __init__(self, service: str, message: str = "Request timed out"):
        super().__init__(service, message, retryable=True)
