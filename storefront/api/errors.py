# storefront/api/errors.py
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.domain.errors import (
    AuthenticationError,
    AuthProviderError,
    CheckoutValidationError,
    NotFoundError,
    PaymentError,
    StoreError,
    StorefrontError,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_CODES = (
    (CheckoutValidationError, 400),
    (AuthenticationError, 401),
    (PaymentError, 402),
    (NotFoundError, 404),
    (StoreError, 503),
    (AuthProviderError, 503),
)

INVALID_REQUEST = {"title": "Invalid request", "description": "Please check your input and try again."}

#payment endpoints answer malformed bodies in their own response shape
VALIDATION_FALLBACKS = {
    "/api/payment/create-order": (500, {"error": "Failed to create order"}),
    "/api/payment/verify-payment": (500, {"verified": False}),
}


def http_error(e: StorefrontError) -> HTTPException:
    """Converts a service error into a toast the client can show as-is."""
    for error_type, status_code in STATUS_CODES:
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail=e.toast())
    return HTTPException(status_code=500, detail=e.toast())


async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} invalid fields")
    fallback = VALIDATION_FALLBACKS.get(request.url.path)
    if fallback:
        status_code, content = fallback
        return JSONResponse(status_code=status_code, content=content)
    return JSONResponse(status_code=400, content={"detail": INVALID_REQUEST})


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": StorefrontError().toast()},
    )
