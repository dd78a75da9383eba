"""
Asset store access.

AssetStore is the single remote capability the reconciliation engine and
the inventory browser depend on: one bounded, cursor-paginated query.
SupabaseAssetStore implements it over the assets table with keyset paging
on id.
"""

from abc import ABC, abstractmethod
from typing import Optional
import structlog

from supabase import AsyncClient

from config import settings, get_supabase_client
from models.asset import AssetRecord, AssetQueryFilter, AssetQueryResult
from exceptions import BatchSizeExceededError, RemoteQueryError

logger = structlog.get_logger(__name__)

# Upper bound of a serial prefix search (sorts after any real character)
PREFIX_UPPER_BOUND = "\uf8ff"


class AssetStore(ABC):
    """Read-only, paginated access to asset records."""

    # Max values in one serial_in lookup; None when the store has no limit
    max_batch_size: Optional[int] = None

    @abstractmethod
    async def query_assets(
        self,
        filters: AssetQueryFilter,
        page_size: int,
        cursor: Optional[str] = None,
    ) -> AssetQueryResult:
        """
        Fetch one page of assets matching filters.

        Args:
            filters: Predicate to apply
            page_size: Max records to return
            cursor: Value returned as next_cursor by the previous page

        Returns:
            AssetQueryResult

        Raises:
            BatchSizeExceededError: If filters.serial_in is over the limit
            RemoteQueryError: On any store failure
        """


class SupabaseAssetStore(AssetStore):
    """AssetStore backed by a Supabase table."""

    def __init__(
        self,
        client: Optional[AsyncClient] = None,
        table: Optional[str] = None,
        max_batch_size: Optional[int] = None,
        service_order_pattern: Optional[str] = None,
    ):
        self._client = client
        self.table = table or settings.assets_table
        self.max_batch_size = max_batch_size or settings.serial_batch_size
        self.service_order_pattern = service_order_pattern or settings.service_order_pattern

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await get_supabase_client()
        return self._client

    def _apply_filters(self, query, filters: AssetQueryFilter):
        """Translate an AssetQueryFilter into PostgREST predicates."""
        if filters.scope:
            query = query.eq("allocation_scope", filters.scope)

        if filters.serial_in is not None:
            query = query.in_("serial", filters.serial_in)

        if filters.serial_prefix:
            query = query.gte("serial", filters.serial_prefix)
            query = query.lte("serial", filters.serial_prefix + PREFIX_UPPER_BOUND)

        for field, values in filters.field_in.items():
            if len(values) == 1:
                query = query.eq(field, values[0])
            else:
                query = query.in_(field, values)

        if filters.incomplete_only:
            query = query.or_("serial_n.is.null,serial_n.eq.")

        if filters.service_order_only:
            # Postgres regex match; same pattern the scope classifier uses
            query = query.filter("allocation_scope", "match", self.service_order_pattern)

        return query

    async def query_assets(
        self,
        filters: AssetQueryFilter,
        page_size: int,
        cursor: Optional[str] = None,
    ) -> AssetQueryResult:
        if filters.serial_in is not None:
            if len(filters.serial_in) > self.max_batch_size:
                raise BatchSizeExceededError(len(filters.serial_in), self.max_batch_size)
            if not filters.serial_in:
                # Empty in-list matches nothing
                return AssetQueryResult()

        logger.debug(
            "querying_assets",
            scope=filters.scope,
            serials=len(filters.serial_in) if filters.serial_in else None,
            page_size=page_size,
            cursor=cursor
        )

        try:
            client = await self._get_client()
            query = client.table(self.table).select("*")
            query = self._apply_filters(query, filters)

            if cursor:
                query = query.gt("id", cursor)

            result = await query.order("id").limit(page_size).execute()

            records = [AssetRecord(**row) for row in result.data]

        except Exception as e:
            logger.error(
                "query_assets_failed",
                scope=filters.scope,
                cursor=cursor,
                error=str(e),
                error_type=type(e).__name__
            )
            raise RemoteQueryError(
                str(e),
                details={"scope": filters.scope, "cursor": cursor}
            ) from e

        next_cursor = records[-1].id if records else None

        logger.debug(
            "assets_retrieved",
            count=len(records),
            next_cursor=next_cursor
        )

        return AssetQueryResult(records=records, next_cursor=next_cursor)


# Singleton instance for convenience
_asset_store: Optional[AssetStore] = None


def get_asset_store() -> AssetStore:
    """Get or create the shared AssetStore."""
    global _asset_store
    if _asset_store is None:
        _asset_store = SupabaseAssetStore()
    return _asset_store
