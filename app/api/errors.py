# app/api/errors.py
"""
Error tags and the exception handlers that render them.

Every handled failure leaves the API as ``{"error": <TAG>, "message": ..., "timestamp": ...}``.
"""
import logging

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_PLACE_OWNER = "INVALID_PLACE_OWNER"
UNAUTHORIZED = "UNAUTHORIZED"
UNAUTHENTICATED = "UNAUTHENTICATED"
PLACE_NOT_FOUND = "PLACE_NOT_FOUND"
NOT_FOUND = "NOT_FOUND"
INTERNAL_ERROR = "INTERNAL_ERROR"
RATE_LIMITED = "RATE_LIMITED"

# Fallback tags for plain HTTPExceptions raised by FastAPI/Starlette or dependencies
_STATUS_TAGS = {
    status.HTTP_400_BAD_REQUEST: VALIDATION_ERROR,
    status.HTTP_401_UNAUTHORIZED: UNAUTHENTICATED,
    status.HTTP_403_FORBIDDEN: UNAUTHORIZED,
    status.HTTP_404_NOT_FOUND: NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


class PlaceAPIError(HTTPException):
    """HTTPException carrying an error tag for the response body."""

    def __init__(self, status_code: int, error: str, message: str):
        super().__init__(status_code=status_code, detail=message)
        self.error = error
        self.message = message


def error_response(status_code: int, error: str, message: str, headers=None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def _describe_validation_errors(errors) -> str:
    """'<field>: <reason>' for the first failing field, FastAPI location prefix dropped."""
    if not errors:
        return "Invalid input"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "header")]
    field = ".".join(loc) or "request"
    return f"{field}: {first.get('msg', 'invalid value')}"


async def http_exception_handler(request: Request, exc: HTTPException):
    """Renders PlaceAPIError and plain HTTPExceptions in the common error shape."""
    request_id = getattr(request.state, 'request_id', 'N/A')
    error = getattr(exc, "error", None) or _STATUS_TAGS.get(exc.status_code, "HTTP_ERROR")
    logger.warning(f"RID:{request_id} HTTPException: Status={exc.status_code}, Error={error}, Detail={exc.detail} for {request.method} {request.url.path}")
    return error_response(exc.status_code, error, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", "N/A")
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"RID:{request_id} Validation error for request {request.method} {request.url}: {errors}")
    return error_response(status.HTTP_400_BAD_REQUEST, VALIDATION_ERROR, _describe_validation_errors(errors))


async def generic_exception_handler(request: Request, exc: Exception):
    """Handles any other unexpected errors."""
    request_id = getattr(request.state, 'request_id', 'N/A')
    logger.error(f"RID:{request_id} Unhandled exception during request {request.method} {request.url}: {type(exc).__name__} - {exc}", exc_info=True)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "An unexpected error occurred")


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """Renders slowapi's RateLimitExceeded in the common error shape."""
    request_id = getattr(request.state, 'request_id', 'N/A')
    logger.warning(f"RID:{request_id} Rate limit hit for {request.method} {request.url.path}: {exc.detail}")
    return error_response(status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMITED, f"Rate limit exceeded: {exc.detail}")
