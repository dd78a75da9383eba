"""
Business logic services.

Each service handles one domain area.
"""

from services.asset_store import AssetStore, SupabaseAssetStore, get_asset_store
from services.batch_planner import plan_batches, count_batches
from services.scope_classifier import ScopeClassifier, get_scope_classifier
from services.paged_asset_repository import PagedAssetRepository, resolve_has_more
from services.reconciliation_service import (
    ReconciliationService,
    get_reconciliation_service,
)
from services.service_order_service import (
    ServiceOrderDirectory,
    SupabaseServiceOrderDirectory,
    ServiceOrderLookupService,
    get_service_order_service,
    extract_service_order_number,
)
from services.filter_options_service import load_filter_options

__all__ = [
    "AssetStore",
    "SupabaseAssetStore",
    "get_asset_store",
    "plan_batches",
    "count_batches",
    "ScopeClassifier",
    "get_scope_classifier",
    "PagedAssetRepository",
    "resolve_has_more",
    "ReconciliationService",
    "get_reconciliation_service",
    "ServiceOrderDirectory",
    "SupabaseServiceOrderDirectory",
    "ServiceOrderLookupService",
    "get_service_order_service",
    "extract_service_order_number",
    "load_filter_options",
]
