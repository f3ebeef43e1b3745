"""
Error taxonomy for the course store.

StorageUnavailable    startup could not reach MongoDB; fatal
ValidationError       order is missing required customer fields; 400
StorageOperationError read/write against MongoDB failed mid-request; 500
SeedFailure           boot-time seeding failed; logged, never raised to the caller

Request-time errors render as {"error": "<message>"} with the raw message.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StorageUnavailable(Exception):
    """MongoDB stayed unreachable for every connection attempt"""

    def __init__(self, last_error: Optional[BaseException], attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"MongoDB failed to connect after {attempts} attempts: {last_error}")


class APIError(Exception):
    """Request-level error rendered as a JSON {"error": message} body"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content={"error": self.message})


class ValidationError(APIError):
    """400 Bad Request - required order fields missing"""

    status_code = status.HTTP_400_BAD_REQUEST


class StorageOperationError(APIError):
    """500 - MongoDB rejected or failed an operation"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class SeedFailure(Exception):
    pass


def format_validation_errors(errors) -> str:
    """pydantic error list -> 'field: message; field: message'"""
    parts = []
    for error in errors:
        loc = [str(p) for p in error.get("loc", ()) if p != "body"]
        parts.append(f"{'.'.join(loc) or 'body'}: {error.get('msg')}")
    return "; ".join(parts)


async def api_error_handler(request: Request, exc: APIError):
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return exc.to_response()


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # a body that cannot be cast to the document shape fails like a rejected write
    message = f"Validation failed: {format_validation_errors(exc.errors())}"
    return await api_error_handler(request, StorageOperationError(message))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
