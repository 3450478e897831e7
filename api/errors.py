"""
Module 05 - API Error Handling

Standardized error handling for the API.
Archive engine exceptions are translated to the same error envelope.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse, ErrorDetail
from core.errors import ArchiveException, ErrorCodes


logger = logging.getLogger(__name__)


# HTTP status for each archive error code; unlisted codes map to 400
ARCHIVE_ERROR_STATUS: dict[str, int] = {
    ErrorCodes.INVALID_ARCHIVE: 400,
    ErrorCodes.MISSING_MANIFEST: 400,
    ErrorCodes.SCHEMA_VALIDATION_ERROR: 422,
    ErrorCodes.MALFORMED_MANIFEST: 422,
    ErrorCodes.DELEGATE_IMPORT_FAILED: 422,
    ErrorCodes.MISSING_REFERENCE: 404,
    ErrorCodes.NO_SERVICE_VDB: 404,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class InvalidRequestError(APIError):
    """Invalid request parameters."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="INVALID_REQUEST",
            message=message,
            status_code=400,
            details=details,
        )


class MissingFileError(APIError):
    """Required file not provided."""

    def __init__(self, message: str = "Required file not provided"):
        super().__init__(
            code="MISSING_FILE",
            message=message,
            status_code=400,
        )


class ArchiveRequestError(APIError):
    """An archive engine error raised while serving a request."""

    def __init__(self, exc: ArchiveException):
        super().__init__(
            code=exc.code,
            message=exc.message,
            status_code=ARCHIVE_ERROR_STATUS.get(exc.code, 400),
            details=dict(exc.details),
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def archive_error_handler(request: Request, exc: ArchiveException) -> JSONResponse:
    """Handle archive engine exceptions that escaped a route."""
    return await api_error_handler(request, ArchiveRequestError(exc))


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions. The traceback is logged, not returned."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
