"""
Serial reconciliation service.

Compares a pasted list of serial numbers against the assets allocated to a
branch and classifies every serial as matched, missing, in another branch
or checked out under a service order.

Flow:
    1. Parse the input (duplicates recorded)
    2. Load every asset in the target branch, page by page
    3. Split input serials into found-in-branch and still-missing
    4. Look the still-missing serials up in every scope, one batch at a time
    5. Whatever is still unresolved is missing everywhere
    6. Branch assets absent from the input are extras

The run is read-only. Any store failure aborts it; no partial result is
returned.
"""

import asyncio
from typing import Callable, Optional
import structlog

from config import settings
from models.asset import AssetRecord, AssetQueryFilter
from models.reconciliation import (
    ScopeClassification,
    ReconciliationPhase,
    ReconciliationRequest,
    ReconciliationProgress,
    ReconciliationResult,
)
from parsers.serial_list_parser import ParsedSerialList, parse_serial_list
from exceptions import (
    ValidationError,
    BatchSizeExceededError,
    EmptySerialListError,
    MissingTargetScopeError,
    RemoteQueryError,
    ReconciliationFailedError,
    ReconciliationCancelledError,
)
from services.asset_store import AssetStore, get_asset_store
from services.batch_planner import plan_batches, count_batches
from services.paged_asset_repository import PagedAssetRepository
from services.scope_classifier import ScopeClassifier, get_scope_classifier

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[ReconciliationProgress], None]

# Progress milestones (percent)
FETCH_DONE = 40
SEARCH_DONE = 95


class ReconciliationService:
    """
    Reconciliation business logic.

    Remainder batches run strictly one after another so progress is
    deterministic: batch i reported means batches before it are done.
    """

    def __init__(
        self,
        store: Optional[AssetStore] = None,
        classifier: Optional[ScopeClassifier] = None,
        batch_size: Optional[int] = None,
        page_size: Optional[int] = None,
    ):
        self.store = store or get_asset_store()
        self.classifier = classifier or get_scope_classifier()
        self.batch_size = batch_size or settings.serial_batch_size
        self.page_size = page_size or settings.reconciliation_page_size

        if self.batch_size < 1:
            raise ValidationError(
                code="INVALID_BATCH_SIZE",
                message="Batch size must be at least 1",
                details={"batch_size": self.batch_size}
            )
        limit = self.store.max_batch_size
        if limit is not None and self.batch_size > limit:
            raise BatchSizeExceededError(self.batch_size, limit)

    # ===================
    # PUBLIC API
    # ===================

    def validate_request(self, request: ReconciliationRequest) -> ParsedSerialList:
        """
        Check preconditions and parse the serial input.

        Raises:
            MissingTargetScopeError: If no branch was given
            EmptySerialListError: If the input has no serials
        """
        if not request.target_scope.strip():
            raise MissingTargetScopeError()

        parsed = parse_serial_list(request.serials)
        if parsed.is_empty:
            raise EmptySerialListError()

        return parsed

    async def reconcile(
        self,
        request: ReconciliationRequest,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ReconciliationResult:
        """
        Run one reconciliation.

        Args:
            request: Target branch and raw serial input
            on_progress: Called with each progress event
            cancel_event: When set, the run stops at the next page or batch

        Returns:
            ReconciliationResult

        Raises:
            MissingTargetScopeError, EmptySerialListError: Before any query
            ReconciliationFailedError: If a store query fails
            ReconciliationCancelledError: If cancel_event was set
        """
        parsed = self.validate_request(request)
        target_scope = request.target_scope.strip()

        def report(phase: ReconciliationPhase, percent: int, **extra) -> None:
            if on_progress is not None:
                on_progress(ReconciliationProgress(phase=phase, percent=percent, **extra))

        def check_cancelled(phase: ReconciliationPhase) -> None:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(
                    "reconciliation_cancelled",
                    target_scope=target_scope,
                    phase=phase.value
                )
                raise ReconciliationCancelledError(target_scope, phase.value)

        logger.info(
            "reconciliation_started",
            target_scope=target_scope,
            input_count=len(parsed.all),
            unique_count=len(parsed.unique),
            duplicates=len(parsed.duplicates)
        )

        try:
            report(ReconciliationPhase.FETCHING, 0)
            target_assets = await self._fetch_target_scope(target_scope, report, check_cancelled)

            report(ReconciliationPhase.COMPARING, FETCH_DONE)
            by_serial = self._index_by_serial(target_assets, target_scope)
            still_missing = [s for s in parsed.unique if s not in by_serial]

            resolved = await self._search_remainder(
                still_missing, target_scope, report, check_cancelled
            )

        except RemoteQueryError as e:
            logger.error(
                "reconciliation_failed",
                target_scope=target_scope,
                error=e.message
            )
            raise ReconciliationFailedError(target_scope, e.message) from e

        report(ReconciliationPhase.FINALIZING, SEARCH_DONE)
        result = self._build_result(target_scope, parsed, target_assets, by_serial, resolved)
        report(ReconciliationPhase.COMPLETE, 100)

        logger.info(
            "reconciliation_completed",
            target_scope=target_scope,
            matched=result.matched_count,
            missing=len(result.missing_serials),
            in_other_scope=len(result.in_other_scope),
            in_service_order=len(result.in_service_order),
            extras=len(result.extras_in_target)
        )

        return result

    # ===================
    # STEPS
    # ===================

    async def _fetch_target_scope(
        self,
        target_scope: str,
        report: Callable,
        check_cancelled: Callable,
    ) -> list[AssetRecord]:
        """Page through every asset allocated to target_scope."""
        repository = PagedAssetRepository(self.store, load_more_size=self.page_size)

        check_cancelled(ReconciliationPhase.FETCHING)
        await repository.fetch_first_page(AssetQueryFilter(scope=target_scope), self.page_size)
        pages = 1
        report(ReconciliationPhase.FETCHING, self._fetch_percent(pages))

        while repository.has_more:
            check_cancelled(ReconciliationPhase.FETCHING)
            await repository.fetch_next_page()
            pages += 1
            report(ReconciliationPhase.FETCHING, self._fetch_percent(pages))

        logger.info(
            "target_scope_loaded",
            target_scope=target_scope,
            assets=repository.total_count,
            pages=pages
        )

        return repository.items

    @staticmethod
    def _fetch_percent(pages: int) -> int:
        """Climbs toward FETCH_DONE without reaching it (page count is unknown)."""
        return FETCH_DONE - FETCH_DONE // (pages + 1)

    @staticmethod
    def _index_by_serial(assets: list[AssetRecord], target_scope: str) -> dict[str, AssetRecord]:
        """Map serial -> asset; the first asset wins if the store repeats a serial."""
        by_serial: dict[str, AssetRecord] = {}
        for asset in assets:
            kept = by_serial.get(asset.serial)
            if kept is not None:
                logger.warning(
                    "duplicate_serial_in_store",
                    serial=asset.serial,
                    kept_id=kept.id,
                    ignored_id=asset.id,
                    scope=target_scope
                )
                continue
            by_serial[asset.serial] = asset
        return by_serial

    async def _fetch_batch(self, batch: list[str], check_cancelled: Callable) -> list[AssetRecord]:
        """Every record for one batch of serials, following the cursor to the end."""
        repository = PagedAssetRepository(self.store, load_more_size=self.page_size)

        await repository.fetch_first_page(AssetQueryFilter(serial_in=batch), self.page_size)
        while repository.has_more:
            check_cancelled(ReconciliationPhase.SEARCHING_REMAINDER)
            await repository.fetch_next_page()

        return repository.items

    async def _search_remainder(
        self,
        serials: list[str],
        target_scope: str,
        report: Callable,
        check_cancelled: Callable,
    ) -> dict[str, tuple[ScopeClassification, AssetRecord]]:
        """
        Look serials up in every scope, one batch at a time.

        Returns:
            serial -> (classification, asset) for every serial found
        """
        resolved: dict[str, tuple[ScopeClassification, AssetRecord]] = {}
        if not serials:
            return resolved

        batch_count = count_batches(len(serials), self.batch_size)
        span = SEARCH_DONE - FETCH_DONE

        for index, batch in enumerate(plan_batches(serials, self.batch_size), start=1):
            check_cancelled(ReconciliationPhase.SEARCHING_REMAINDER)

            records = await self._fetch_batch(batch, check_cancelled)

            requested = set(batch)
            for asset in records:
                if asset.serial not in requested:
                    logger.warning(
                        "unrequested_serial_returned",
                        serial=asset.serial,
                        asset_id=asset.id
                    )
                    continue
                if asset.serial in resolved:
                    logger.warning(
                        "duplicate_serial_in_store",
                        serial=asset.serial,
                        kept_id=resolved[asset.serial][1].id,
                        ignored_id=asset.id
                    )
                    continue
                resolved[asset.serial] = (self.classifier.classify(asset, target_scope), asset)

            report(
                ReconciliationPhase.SEARCHING_REMAINDER,
                FETCH_DONE + round(span * index / batch_count),
                batch_index=index,
                batch_count=batch_count
            )

        logger.info(
            "remainder_searched",
            target_scope=target_scope,
            serials=len(serials),
            batches=batch_count,
            found=len(resolved)
        )

        return resolved

    def _build_result(
        self,
        target_scope: str,
        parsed: ParsedSerialList,
        target_assets: list[AssetRecord],
        by_serial: dict[str, AssetRecord],
        resolved: dict[str, tuple[ScopeClassification, AssetRecord]],
    ) -> ReconciliationResult:
        """Place every unique serial in exactly one bucket, in input order."""
        matched: list[str] = []
        missing: list[str] = []
        in_other_scope: list[AssetRecord] = []
        in_service_order: list[AssetRecord] = []

        for serial in parsed.unique:
            if serial in by_serial:
                matched.append(serial)
                continue

            hit = resolved.get(serial)
            if hit is None:
                missing.append(serial)
                continue

            classification, asset = hit
            if classification == ScopeClassification.SERVICE_ORDER:
                in_service_order.append(asset)
            elif classification == ScopeClassification.OTHER_SCOPE:
                in_other_scope.append(asset)
            else:
                # Branch changed between the two queries; the asset is there now
                logger.warning(
                    "target_match_in_remainder",
                    serial=serial,
                    asset_id=asset.id,
                    target_scope=target_scope
                )
                matched.append(serial)

        unique = set(parsed.unique)
        extras = [asset for asset in target_assets if asset.serial not in unique]

        return ReconciliationResult(
            target_scope=target_scope,
            matched_count=len(matched),
            matched_serials=matched,
            missing_serials=missing,
            extras_in_target=extras,
            in_other_scope=in_other_scope,
            in_service_order=in_service_order,
            duplicates_in_input=list(parsed.duplicates),
            input_count=len(parsed.all),
            unique_count=len(parsed.unique),
            target_scope_count=len(target_assets),
        )


# Singleton instance for convenience
_reconciliation_service: Optional[ReconciliationService] = None


def get_reconciliation_service() -> ReconciliationService:
    """Get or create ReconciliationService instance."""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service
