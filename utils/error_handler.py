"""
Error Handler Utility for the HTTP layer

Provides centralized translation of service exceptions into HTTP responses:
- One status code per exception family
- Consistent error envelope
- Logging at a level matching the severity

Usage (web/app.py):
    @app.exception_handler(ExpressKartException)
    async def handle(request, exc):
        status_code, message = map_exception(exc)
        return JSONResponse(status_code=status_code, content=error_body(message))
"""

import logging

from fastapi.exceptions import RequestValidationError

import config
from exceptions import (
    ExpressKartException,
    ValidationException,
    ConcurrentModificationException,
    AuthenticationException,
    PermissionDeniedException,
    EmptyCartException,
    CartItemNotFoundException,
    OrderNotFoundException,
    OrderAlreadyCancelledException,
    InvalidOrderStateException,
    InvalidOrderStatusException,
    OrderOwnershipException,
    OrderNumberConflictException,
    ProductNotFoundException,
    VendorNotFoundException,
    VendorProfileNotFoundException,
    UserNotFoundException,
    UserInactiveException,
    EmailAlreadyRegisteredException,
    AdminAlreadyExistsException,
    WishlistItemExistsException,
    AddressNotFoundException,
    ReviewNotFoundException,
    DuplicateReviewException,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Server Error"

# Most specific class first; the first isinstance match wins
STATUS_MAPPING: list[tuple[type[ExpressKartException], int]] = [
    # 401
    (AuthenticationException, 401),
    (UserInactiveException, 401),

    # 403
    (PermissionDeniedException, 403),
    (OrderOwnershipException, 403),

    # 404
    (CartItemNotFoundException, 404),
    (OrderNotFoundException, 404),
    (ProductNotFoundException, 404),
    (VendorNotFoundException, 404),
    (VendorProfileNotFoundException, 404),
    (UserNotFoundException, 404),
    (AddressNotFoundException, 404),
    (ReviewNotFoundException, 404),

    # 409
    (ConcurrentModificationException, 409),
    (OrderNumberConflictException, 409),

    # 400
    (ValidationException, 400),
    (EmptyCartException, 400),
    (OrderAlreadyCancelledException, 400),
    (InvalidOrderStateException, 400),
    (InvalidOrderStatusException, 400),
    (EmailAlreadyRegisteredException, 400),
    (AdminAlreadyExistsException, 400),
    (WishlistItemExistsException, 400),
    (DuplicateReviewException, 400),
]


def map_exception(exception: ExpressKartException) -> tuple[int, str]:
    """
    Convert a service exception into (status code, message).

    Unmapped domain exceptions are business-rule failures and map to 400.
    """
    for exception_type, status_code in STATUS_MAPPING:
        if isinstance(exception, exception_type):
            break
    else:
        status_code = 400
        logger.warning(f"Unmapped exception type: {type(exception).__name__}")

    if status_code >= 403:
        logger.info(f"Service error handled: {type(exception).__name__} ({status_code}) - {exception!r}")
    else:
        logger.debug(f"Service error handled: {type(exception).__name__} ({status_code}) - {exception!r}")
    return status_code, exception.message


def map_validation_error(error: RequestValidationError) -> str:
    """First request validation problem as a readable message."""
    errors = error.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}" if location else message


def handle_unexpected_error(exception: Exception) -> str:
    """
    Log an unhandled exception with its traceback and pick the message the
    client gets: the raw message only when EXPOSE_ERROR_DETAILS is on.
    """
    logger.error(f"Unexpected error: {type(exception).__name__} - {exception}", exc_info=exception)
    if config.EXPOSE_ERROR_DETAILS and str(exception):
        return str(exception)
    return GENERIC_ERROR_MESSAGE


def error_body(message: str) -> dict:
    return {
        "success": False,
        "status": "error",
        "message": message,
        "data": None,
    }
