"""
Custom exception classes for the application.

Every error carries a code, a message, an HTTP status and details so routes
can return it unchanged.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "ASSET_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with the current state of a resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# SERIAL INPUT ERRORS
# ===================

class EmptySerialListError(ValidationError):
    """No serial identifiers left after parsing the input."""

    def __init__(self):
        super().__init__(
            code="EMPTY_SERIAL_LIST",
            message="Provide at least one serial number"
        )


class MissingTargetScopeError(ValidationError):
    """Reconciliation requested without a target scope."""

    def __init__(self):
        super().__init__(
            code="MISSING_TARGET_SCOPE",
            message="Select a branch to compare against"
        )


class BatchSizeExceededError(ValidationError):
    """Serial in-list larger than the store accepts."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            code="BATCH_SIZE_EXCEEDED",
            message=f"Serial lookup of {size} values exceeds the limit of {limit}",
            details={"size": size, "limit": limit}
        )


# ===================
# ASSET STORE ERRORS
# ===================

class RemoteQueryError(ExternalServiceError):
    """Asset store query failed (timeout, transport, malformed response)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="asset_store",
            message=f"Asset query failed: {message}",
            details=details
        )
        self.code = "REMOTE_QUERY_ERROR"


# ===================
# RECONCILIATION ERRORS
# ===================

class ReconciliationFailedError(AppError):
    """A reconciliation run aborted; no partial result is available."""

    def __init__(self, target_scope: str, reason: str):
        super().__init__(
            code="RECONCILIATION_FAILED",
            message="Serial comparison failed, run it again",
            status_code=502,
            details={"target_scope": target_scope, "reason": reason}
        )


class ReconciliationCancelledError(ConflictError):
    """A reconciliation run was cancelled by its caller."""

    def __init__(self, target_scope: str, phase: str):
        super().__init__(
            code="RECONCILIATION_CANCELLED",
            message="Serial comparison was cancelled",
            details={"target_scope": target_scope, "phase": phase}
        )
