from __future__ import annotations
from typing import Any


class StorageError(Exception):
    """Base exception for bucketman errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(StorageError):
    """Raised when a required storage setting is missing or invalid."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"StorageConfig.{field} cannot be empty.", {"field": field})


class ClientConstructionError(StorageError):
    """Raised when the S3 client cannot be built from the configured settings."""


class UploadError(StorageError):
    """Raised when putting an object into the bucket fails."""

    def __init__(self, key: str, cause: Exception | None = None) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to upload object '{key}'", {"key": key})


class DeleteError(StorageError):
    """Raised when deleting an object from the bucket fails."""

    def __init__(self, key: str, cause: Exception | None = None) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to delete object '{key}'", {"key": key})


class UnexpectedError(StorageError):
    """Raised when an existence probe fails for a reason other than a client-error status."""

    def __init__(self, url: str, cause: Exception | None = None, status_code: int | None = None) -> None:
        self.url = url
        self.cause = cause
        self.status_code = status_code
        reason = f"status {status_code}" if status_code is not None else type(cause).__name__ if cause else "unknown error"
        super().__init__(f"Existence check for '{url}' failed: {reason}", {"url": url})
