"""HTTP mapping for fulfillment and adapter errors.

Protean's own handlers cover ``ValidationError`` (400) and
``ObjectNotFoundError`` (404).
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from fulfillment.errors import FulfillmentError, FulfillmentErrorCode
from shared.errors import ExternalServiceError


async def _fulfillment_error(_request: Request, exc: FulfillmentError) -> JSONResponse:
    status_code = 502 if exc.code == FulfillmentErrorCode.PRINT_JOB_CREATE_FAILED else 409
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code.value, "detail": exc.detail, "retryable": exc.retryable},
    )


async def _external_service_error(_request: Request, exc: ExternalServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=503 if exc.retryable else 502,
        content={"error": "EXTERNAL_SERVICE_ERROR", "service": exc.service, "detail": exc.message},
    )


def register_fulfillment_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(FulfillmentError, _fulfillment_error)
    app.add_exception_handler(ExternalServiceError, _external_service_error)
