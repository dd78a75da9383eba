"""
Filter options for the inventory browser.

Samples one unfiltered page of assets and collects the distinct values of
each filterable column. A sample of ~1000 records covers nearly every
value in practice.
"""

from typing import Optional
import structlog

from config import settings
from models.asset import AssetQueryFilter, FilterOptions
from services.asset_store import AssetStore, get_asset_store

logger = structlog.get_logger(__name__)


async def load_filter_options(
    store: Optional[AssetStore] = None,
    sample_size: Optional[int] = None,
) -> FilterOptions:
    """
    Build sorted distinct values for each browser filter.

    Raises:
        RemoteQueryError: If the sample query fails
    """
    store = store or get_asset_store()
    sample_size = sample_size or settings.filter_options_sample_size

    result = await store.query_assets(AssetQueryFilter(), page_size=sample_size)

    values: dict[str, set[str]] = {name: set() for name in FilterOptions.model_fields}
    for asset in result.records:
        for name, bucket in values.items():
            value = getattr(asset, name)
            if hasattr(value, "value"):
                value = value.value  # enums
            if value:
                bucket.add(value)

    logger.info(
        "filter_options_loaded",
        sampled=len(result.records),
        scopes=len(values["allocation_scope"])
    )

    return FilterOptions(**{name: sorted(bucket) for name, bucket in values.items()})
