"""
Domain errors for the storefront API.

Every error is an HTTPException so services can raise them directly, the
same way route handlers do. The handlers registered by
``register_error_handlers`` render all of them as ``{"error": "<message>"}``.
"""
from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class StorefrontError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request failed."

    def __init__(self, message: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.message,
            headers=headers,
        )


# --- Validation ---

class ValidationFailed(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed."

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


# --- Authentication ---

class AuthenticationError(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Unauthenticated(AuthenticationError):
    message = "Access denied. No token provided."


class InvalidToken(AuthenticationError):
    message = "Invalid token."


class TokenExpired(AuthenticationError):
    message = "Token expired."


class TokenRevoked(AuthenticationError):
    message = "Token has been invalidated."


class AccountDeactivated(AuthenticationError):
    message = "Account is deactivated."


class InvalidCredentials(AuthenticationError):
    message = "Invalid credentials."


# --- Authorization ---

class Forbidden(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Admin access required."


# --- Not found ---

class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found."


class UserNotFound(NotFound):
    message = "User not found."


class ProductNotFound(NotFound):
    message = "Product not found."


class OrderNotFound(NotFound):
    message = "Order not found."


class AddressNotFound(NotFound):
    message = "Address not found."


class PaymentNotFound(NotFound):
    message = "Payment not found or not eligible for refund."


# --- Domain conflicts ---

class Conflict(StorefrontError):
    status_code = status.HTTP_409_CONFLICT
    message = "Request conflicts with the current state."


class InsufficientStock(Conflict):
    message = "Insufficient stock."


class InvalidTransition(Conflict):
    message = "Order cannot be cancelled at this stage."


class OrderNotPayable(Conflict):
    message = "Cannot process payment for cancelled order."


class AlreadyPaid(Conflict):
    message = "Payment already completed for this order."


class PaymentNotCaptured(Conflict):
    message = "Payment not captured."


class NoPendingPayment(Conflict):
    message = "No pending payment for this order."


class AmountMismatch(Conflict):
    message = "Captured amount does not match the payment amount."


class UserAlreadyExists(Conflict):
    message = "User already exists with this email or phone."


class InvalidSignature(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid payment signature."


class InvalidOrExpiredOTP(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid or expired OTP."


# --- Upstream ---

class GatewayError(StorefrontError):
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Payment gateway request failed."


def _error_body(message: str, errors: Optional[list] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message}
    if errors:
        body["errors"] = errors
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    errors = getattr(exc, "errors", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), errors),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(ValidationFailed.message, errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error."),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
