"""
Asset browser API routes.

Pages are cursor based: pass the next_cursor of one response as the cursor
of the next request.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from config import settings
from models.asset import (
    AssetQueryFilter,
    AssetPageResponse,
    AssetStatus,
    FilterOptions,
    AllocationLabel,
)
from services.asset_store import get_asset_store
from services.paged_asset_repository import resolve_has_more
from services.filter_options_service import load_filter_options
from services.service_order_service import get_service_order_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=AssetPageResponse)
async def list_assets(
    scope: Optional[str] = Query(None, description="Exact allocation scope"),
    q: Optional[str] = Query(None, description="Serial starts with"),
    status: Optional[AssetStatus] = Query(None, description="Good or Bad"),
    kind: Optional[list[str]] = Query(None, description="Equipment types"),
    model: Optional[list[str]] = Query(None, description="Equipment models"),
    incomplete_only: bool = Query(False, description="Only assets missing serial_n"),
    service_order_only: bool = Query(False, description="Only assets under a service order"),
    cursor: Optional[str] = Query(None, description="next_cursor of the previous page"),
    page_size: Optional[int] = Query(None, ge=1, le=1000, description="Items per page"),
):
    """
    Get one page of assets.

    has_more is a size heuristic: an exactly-full last page reports true and
    the following page comes back empty.
    """
    try:
        field_in = {}
        if status:
            field_in["status"] = [status.value]
        if kind:
            field_in["kind"] = kind
        if model:
            field_in["model"] = model

        filters = AssetQueryFilter(
            scope=scope,
            serial_prefix=q,
            field_in=field_in,
            incomplete_only=incomplete_only,
            service_order_only=service_order_only,
        )
        if page_size is None:
            page_size = settings.browse_load_more_size if cursor else settings.browse_page_size

        result = await get_asset_store().query_assets(filters, page_size=page_size, cursor=cursor)

        return AssetPageResponse(
            data=result.records,
            count=len(result.records),
            next_cursor=result.next_cursor,
            has_more=resolve_has_more(result, page_size),
            incomplete_count=sum(1 for a in result.records if a.is_incomplete),
        )

    except Exception as e:
        return handle_error(e)


@router.get("/filter-options", response_model=FilterOptions)
async def get_filter_options():
    """Distinct values for each browser filter, from a sample of assets."""
    try:
        return await load_filter_options()

    except Exception as e:
        return handle_error(e)


@router.get("/allocation-label", response_model=AllocationLabel)
async def get_allocation_label(
    allocation: str = Query("", description="Allocation scope to label")
):
    """
    Display label for an allocation scope.

    Service orders are shown as "<event> - <number>" when the event is known.
    """
    try:
        service = get_service_order_service()
        return await service.format_allocation_label(allocation)

    except Exception as e:
        return handle_error(e)
