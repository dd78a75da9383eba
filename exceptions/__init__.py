"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    ConflictError,
    ExternalServiceError,

    # Serial input
    EmptySerialListError,
    MissingTargetScopeError,
    BatchSizeExceededError,

    # Asset store
    RemoteQueryError,

    # Reconciliation
    ReconciliationFailedError,
    ReconciliationCancelledError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",

    # Serial input
    "EmptySerialListError",
    "MissingTargetScopeError",
    "BatchSizeExceededError",

    # Asset store
    "RemoteQueryError",

    # Reconciliation
    "ReconciliationFailedError",
    "ReconciliationCancelledError",
]
