"""
Cursor-paginated asset repository.

One instance backs one browsing session (or one reconciliation run). It
keeps the records loaded so far, continues from the last cursor on "load
more", and drops the result of any fetch that was superseded by a newer
filter before it resolved.
"""

from typing import Iterable, Optional, Union
import structlog

from models.asset import AssetRecord, AssetPatch, AssetQueryFilter, AssetQueryResult, AssetPage
from exceptions import ValidationError
from services.asset_store import AssetStore

logger = structlog.get_logger(__name__)


def resolve_has_more(result: AssetQueryResult, page_size: int) -> bool:
    """
    Decide whether another page may exist after result.

    Uses the store's own signal when it sends one. Otherwise a page shorter
    than page_size is the last one; an exactly-full last page is reported
    as having more, and the following fetch comes back empty.
    """
    if result.next_cursor is None:
        return False
    if result.has_more is not None:
        return result.has_more
    return len(result.records) >= page_size


class PagedAssetRepository:
    """
    In-memory page cache over an AssetStore.

    Each fetch is tagged with a generation; starting a new first-page fetch
    bumps the generation so older in-flight results are discarded on
    arrival instead of merged.
    """

    def __init__(self, store: AssetStore, load_more_size: Optional[int] = None):
        self.store = store
        self.load_more_size = load_more_size

        self._filters: Optional[AssetQueryFilter] = None
        self._page_size: Optional[int] = None
        self._items: list[AssetRecord] = []
        self._cursor: Optional[str] = None
        self._has_more = False

        self._generation = 0
        self._loading_generation: Optional[int] = None

    # ===================
    # STATE
    # ===================

    @property
    def filters(self) -> Optional[AssetQueryFilter]:
        return self._filters

    @property
    def items(self) -> list[AssetRecord]:
        """Records loaded so far (copy)."""
        return list(self._items)

    @property
    def cursor(self) -> Optional[str]:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_loading(self) -> bool:
        return self._loading_generation is not None and self._loading_generation == self._generation

    @property
    def total_count(self) -> int:
        return len(self._items)

    @property
    def incomplete_count(self) -> int:
        """Loaded assets missing serial_n or device_z."""
        return sum(1 for asset in self._items if asset.is_incomplete)

    # ===================
    # FETCH OPERATIONS
    # ===================

    async def fetch_first_page(self, filters: AssetQueryFilter, page_size: int) -> AssetPage:
        """
        Start a new paged query, discarding loaded records.

        Any fetch still in flight for this repository becomes stale.

        Raises:
            ValidationError: If page_size is below 1
            RemoteQueryError: If the store query fails
        """
        if page_size < 1:
            raise ValidationError(
                code="INVALID_PAGE_SIZE",
                message="Page size must be at least 1",
                details={"page_size": page_size}
            )

        self._generation += 1
        self._filters = filters
        self._page_size = page_size
        self._items = []
        self._cursor = None
        self._has_more = False

        logger.debug(
            "fetching_first_page",
            generation=self._generation,
            scope=filters.scope,
            page_size=page_size
        )

        return await self._fetch(self._generation, cursor=None, page_size=page_size)

    async def fetch_next_page(self) -> AssetPage:
        """
        Load the page after the current cursor.

        Returns an empty page without querying when nothing is left, no
        query was started, or a fetch is already in flight.
        """
        if self._filters is None or not self._has_more or self.is_loading:
            logger.debug(
                "next_page_skipped",
                has_filters=self._filters is not None,
                has_more=self._has_more,
                loading=self.is_loading
            )
            return AssetPage(cursor=self._cursor, has_more=self._has_more)

        page_size = self.load_more_size or self._page_size
        return await self._fetch(self._generation, cursor=self._cursor, page_size=page_size)

    async def invalidate_and_reload(self) -> AssetPage:
        """Discard cursor and records, then re-run the current query."""
        if self._filters is None:
            return AssetPage()

        logger.info("asset_cache_invalidated", scope=self._filters.scope)

        return await self.fetch_first_page(self._filters, self._page_size)

    async def _fetch(self, generation: int, cursor: Optional[str], page_size: int) -> AssetPage:
        self._loading_generation = generation
        try:
            result = await self.store.query_assets(self._filters, page_size=page_size, cursor=cursor)
        except Exception as e:
            if generation != self._generation:
                logger.debug(
                    "stale_page_error_discarded",
                    generation=generation,
                    current=self._generation,
                    error=str(e)
                )
                return self._stale_page()
            raise
        finally:
            if self._loading_generation == generation:
                self._loading_generation = None

        if generation != self._generation:
            logger.debug(
                "stale_page_discarded",
                generation=generation,
                current=self._generation,
                records=len(result.records)
            )
            return self._stale_page()

        self._items.extend(result.records)
        if result.next_cursor is not None:
            self._cursor = result.next_cursor
        self._has_more = resolve_has_more(result, page_size)

        logger.debug(
            "page_loaded",
            generation=generation,
            records=len(result.records),
            total=len(self._items),
            has_more=self._has_more
        )

        return AssetPage(items=list(result.records), cursor=self._cursor, has_more=self._has_more)

    def _stale_page(self) -> AssetPage:
        return AssetPage(cursor=self._cursor, has_more=self._has_more, stale=True)

    # ===================
    # LOCAL UPDATES
    # ===================

    def patch_local(self, updates: Iterable[Union[AssetRecord, AssetPatch]]) -> int:
        """
        Merge updated fields into loaded records by id, without a round trip.

        Only fields explicitly set on each update are applied. Updates for
        records not loaded are ignored.

        Returns:
            Number of loaded records patched
        """
        changes = {
            update.id: update.model_dump(exclude_unset=True, exclude={"id"})
            for update in updates
        }
        if not changes:
            return 0

        patched = 0
        for index, asset in enumerate(self._items):
            change = changes.get(asset.id)
            if change:
                self._items[index] = asset.model_copy(update=change)
                patched += 1

        logger.debug("assets_patched_locally", requested=len(changes), patched=patched)

        return patched
