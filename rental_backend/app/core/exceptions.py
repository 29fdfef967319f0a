"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class TransactionNotFoundError(AppException):
    """Raised when a tracking update cannot be matched to a transaction."""

    def __init__(self, tracking_number: str = None, transaction_id: str = None):
        super().__init__(
            message="Transaction not found",
            error_code="ERR_NOT_FOUND_002",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"tracking_number": tracking_number, "transaction_id": transaction_id}
        )


class WebhookSignatureError(AppException):
    """Raised when an inbound webhook signature is missing or invalid."""

    def __init__(self, provider: str):
        super().__init__(
            message="Invalid signature",
            error_code="ERR_WEBHOOK_SIGNATURE",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"provider": provider}
        )


class InvalidWebhookPayloadError(AppException):
    """Raised when a webhook body is not in the expected shape."""

    def __init__(self, message: str = "Invalid payload structure", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_WEBHOOK_PAYLOAD",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class MissingRecipientError(AppException):
    """Raised when a notification has nobody to go to."""

    def __init__(self, transaction_id: str):
        super().__init__(
            message="No borrower phone number found",
            error_code="ERR_NOTIFY_RECIPIENT",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"transaction_id": transaction_id}
        )


class SmsDeliveryError(AppException):
    """Raised when the SMS provider rejects or fails a send."""

    def __init__(self, message: str = "Failed to send SMS", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_SMS_DELIVERY",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
