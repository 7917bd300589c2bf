"""
Application error taxonomy.

Every error raised on purpose by the connector derives from AppError and carries
the HTTP status it should surface as. Connection-level failures (authentication,
transport, pool exhaustion, pool shutdown) are OdooConnectionError subclasses so
callers can catch one type and decide whether to retry the whole operation.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Optional


class AppError(Exception):
    """Base class for expected (operational) application errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an API error response."""
        return {
            "name": self.name,
            "message": self.message,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
        }


class OdooConnectionError(AppError):
    """
    Raised when talking to Odoo fails.

    Covers exhausted authentication retries, transport failures during a call,
    and pool-level acquisition failures. Always retryable by the caller; the
    pool itself never retries beyond the client's authentication backoff.
    """

    status_code = 503
    kind = "connection"
    retryable = True

    def __init__(
        self,
        message: str = "Failed to connect to Odoo",
        original_error: Optional[BaseException] = None,
        *,
        model: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message)
        self.original_error = original_error
        self.model = model
        self.method = method

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["kind"] = self.kind
        payload["retryable"] = self.retryable
        if self.model:
            payload["model"] = self.model
        if self.method:
            payload["method"] = self.method
        return payload


class PoolTimeoutError(OdooConnectionError):
    """A queued acquisition waited longer than the pool's connection timeout."""

    kind = "timeout"

    def __init__(self, message: str = "Timeout waiting for available connection"):
        super().__init__(message)


class PoolClosedError(OdooConnectionError):
    """Acquisition attempted against a pool that is closing or destroyed."""

    kind = "closed"

    def __init__(self, message: str = "Connection pool is closing"):
        super().__init__(message)


class PoolInitializationError(OdooConnectionError):
    """Raised when the pool fails to create its minimum connections."""

    def __init__(self, message: str, errors: list[str], original_error: Optional[BaseException] = None):
        super().__init__(message, original_error)
        self.errors = errors


class PoolConfigurationError(RuntimeError):
    """
    Raised synchronously when the pool is requested or constructed without
    its mandatory configuration.
    """


class NotFoundError(AppError):
    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        resource: Optional[str] = None,
        identifier: Any = None,
    ):
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.resource:
            payload["resource"] = self.resource
        if self.identifier is not None:
            payload["identifier"] = self.identifier
        return payload


class ValidationError(AppError):
    status_code = 400

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__(message)
        self.fields = fields or []

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.fields:
            payload["fields"] = self.fields
        return payload


class RepositoryError(AppError):
    """Unexpected failure inside a repository operation."""

    def __init__(
        self,
        message: str = "Repository operation failed",
        original_error: Optional[BaseException] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.original_error = original_error
        self.operation = operation

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.operation:
            payload["operation"] = self.operation
        return payload


class ServiceError(AppError):
    """Unexpected failure inside a service operation."""

    def __init__(self, message: str = "Service operation failed", original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error
