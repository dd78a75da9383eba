"""
Pydantic models for request/response validation.
"""

from models.base import BaseSchema
from models.asset import (
    AssetStatus,
    AssetRecord,
    AssetPatch,
    AssetQueryFilter,
    AssetQueryResult,
    AssetPage,
    AssetPageResponse,
    FilterOptions,
    AllocationLabel,
    FILTERABLE_FIELDS,
)
from models.reconciliation import (
    ScopeClassification,
    ReconciliationPhase,
    ReconciliationRequest,
    ReconciliationProgress,
    ReconciliationResult,
)

__all__ = [
    # Base
    "BaseSchema",

    # Asset
    "AssetStatus",
    "AssetRecord",
    "AssetPatch",
    "AssetQueryFilter",
    "AssetQueryResult",
    "AssetPage",
    "AssetPageResponse",
    "FilterOptions",
    "AllocationLabel",
    "FILTERABLE_FIELDS",

    # Reconciliation
    "ScopeClassification",
    "ReconciliationPhase",
    "ReconciliationRequest",
    "ReconciliationProgress",
    "ReconciliationResult",
]
