"""
Error Handlers
Custom exceptions and exception handlers for FastAPI.

Every error response carries a top-level `message`; validation failures
add an `errors` mapping of field name to messages.
"""

import logging
from typing import Dict, List, Optional, Sequence
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import get_settings

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors: Optional[Dict[str, List[str]]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.errors = errors
        super().__init__(self.message)


class BadRequestError(APIError):
    def __init__(self, message: str):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class UnauthenticatedError(APIError):
    def __init__(self, message: str = "Unauthenticated."):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(APIError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(APIError):
    """Exception raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(APIError):
    def __init__(self, message: str):
        super().__init__(message=message, status_code=status.HTTP_409_CONFLICT)


class UnprocessableError(APIError):
    """422 with a plain message (business rule rejected the request)."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class ValidationFailedError(APIError):
    """422 with field-level messages."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(
            message=message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, errors=errors
        )

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls({field: [message]})


def _field_name(loc: Sequence) -> str:
    """Turn a pydantic error location into a dotted field name."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form", "header", "cookie")]
    return ".".join(parts) or "body"


def format_validation_errors(errors: Sequence[dict]) -> Dict[str, List[str]]:
    """
    Group pydantic error dicts by field.

    Args:
        errors: Output of `exc.errors()`

    Returns:
        {field: [message, ...]}
    """
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        field = _field_name(error.get("loc", ()))
        message = str(error.get("msg", "Invalid value"))
        # Pydantic prefixes custom ValueError messages
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        grouped.setdefault(field, []).append(message)
    return grouped


def _validation_response(errors: Dict[str, List[str]], message: str = "Validation failed") -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"message": message, "errors": errors},
    )


def setup_error_handlers(app: FastAPI) -> None:
    """
    Set up custom error handlers for the FastAPI app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Handle custom API errors."""
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            f"API error: {exc.message}",
            extra={"status_code": exc.status_code, "path": request.url.path},
        )

        content = {"message": exc.message}
        if exc.errors:
            content["errors"] = exc.errors
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        """Render framework HTTP errors (404 routes, 405 methods) in the same envelope."""
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.info(f"Validation error on {request.url.path}")
        return _validation_response(format_validation_errors(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_error_handler(request: Request, exc: ValidationError):
        """Handle pydantic errors raised while validating parsed payloads."""
        logger.info(f"Payload validation error on {request.url.path}")
        return _validation_response(format_validation_errors(exc.errors()))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"path": request.url.path})

        content = {"message": "Internal server error"}
        if get_settings().debug:
            content["error"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
