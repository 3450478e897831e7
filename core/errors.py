"""
Module 01 - Core Model & Codec
File: errors.py

Purpose: Standard error taxonomy for archive import and export.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


__all__ = [
    "ErrorCodes",
    "ArchiveError",
    "ArchiveException",
    "SchemaValidationError",
    "MalformedManifestError",
    "MissingManifestError",
    "InvalidArchiveError",
    "DelegateImportError",
    "MissingReferenceError",
    "NoServiceVdbError",
]


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across import and export."""

    # Manifest Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    MALFORMED_MANIFEST = "MALFORMED_MANIFEST"
    MISSING_MANIFEST = "MISSING_MANIFEST"

    # Archive Errors
    INVALID_ARCHIVE = "INVALID_ARCHIVE"
    DELEGATE_IMPORT_FAILED = "DELEGATE_IMPORT_FAILED"

    # Export Errors
    MISSING_REFERENCE = "MISSING_REFERENCE"
    NO_SERVICE_VDB = "NO_SERVICE_VDB"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class ArchiveError(BaseModel):
    """
    Base error model for structured error communication.

    Export records non-fatal problems with this model instead of raising,
    and the CLI and API serialize it for callers.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.SCHEMA_VALIDATION_ERROR],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    path: str | None = Field(
        default=None,
        description="Archive or archive member path that caused the error",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )

    def to_exception(self) -> "ArchiveException":
        """Convert this error model to a raised exception."""
        return ArchiveException(
            message=self.message,
            code=self.code,
            details=self.details,
            path=self.path,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class ArchiveException(Exception):
    """
    Base exception for all data service archive errors.

    Carries structured error information and the archive/member path
    that caused it.
    """

    def __init__(
        self,
        message: str,
        code: str = "ARCHIVE_ERROR",
        details: dict[str, Any] | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.path = path
        if path is not None:
            self.details.setdefault("path", path)

    def to_error_model(self) -> ArchiveError:
        """Convert this exception to an ArchiveError model."""
        return ArchiveError(
            code=self.code,
            message=self.message,
            path=self.path,
            details=self.details,
        )

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r}, path={self.path!r})"


class SchemaValidationError(ArchiveException):
    """Manifest bytes do not conform to the manifest schema."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        line: int | None = None,
        errors: list[str] | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if line is not None:
            details["line"] = line
        if errors:
            details["errors"] = errors
        super().__init__(
            message=message,
            code=ErrorCodes.SCHEMA_VALIDATION_ERROR,
            details=details,
            path=path,
        )


class MalformedManifestError(ArchiveException):
    """Manifest is well-formed XML but has an unexpected element sequence."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        element: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if element:
            details["element"] = element
        super().__init__(
            message=message,
            code=ErrorCodes.MALFORMED_MANIFEST,
            details=details,
            path=path,
        )


class MissingManifestError(ArchiveException):
    """Archive contains no manifest entry."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.MISSING_MANIFEST,
            path=path,
        )


class InvalidArchiveError(ArchiveException):
    """Bytes are not a readable zip archive."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_ARCHIVE,
            path=path,
        )


class DelegateImportError(ArchiveException):
    """A sub-importer failed to import one archive entry."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        delegate: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if delegate:
            details["delegate"] = delegate
        super().__init__(
            message=message,
            code=ErrorCodes.DELEGATE_IMPORT_FAILED,
            details=details,
            path=path,
        )


class MissingReferenceError(ArchiveException):
    """An entry's linked resource could not be resolved during export."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        reference: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if reference:
            details["reference"] = reference
        super().__init__(
            message=message,
            code=ErrorCodes.MISSING_REFERENCE,
            details=details,
            path=path,
        )


class NoServiceVdbError(ArchiveException):
    """Service VDB export was requested but the data service has none."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NO_SERVICE_VDB,
            path=path,
        )
