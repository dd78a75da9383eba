"""
Serial reconciliation API routes.

POST /api/reconciliation returns the result once the run completes.
POST /api/reconciliation/stream returns newline-delimited JSON: progress
events while the run is in flight, then one result or error object.
"""

import asyncio
import json

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse
import structlog

from models.reconciliation import ReconciliationRequest, ReconciliationResult
from services.reconciliation_service import get_reconciliation_service
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

@router.post("", response_model=ReconciliationResult)
async def run_reconciliation(request: ReconciliationRequest):
    """
    Compare a serial list against one branch.

    Raises:
        422: Empty serial list or missing branch
        502: Asset store failed during the run
    """
    try:
        service = get_reconciliation_service()
        return await service.reconcile(request)

    except Exception as e:
        return handle_error(e)


@router.post("/stream")
async def stream_reconciliation(request: ReconciliationRequest):
    """
    Compare a serial list against one branch, streaming progress.

    Each line is a JSON object with a "type" of "progress", "result" or
    "error". Preconditions are checked before the stream starts.
    """
    service = get_reconciliation_service()
    try:
        service.validate_request(request)
    except Exception as e:
        return handle_error(e)

    queue: asyncio.Queue = asyncio.Queue()

    def on_progress(progress) -> None:
        queue.put_nowait({"type": "progress", **progress.model_dump(mode="json")})

    async def run() -> None:
        try:
            result = await service.reconcile(request, on_progress=on_progress)
            queue.put_nowait({"type": "result", "result": result.model_dump(mode="json")})
        except AppError as e:
            queue.put_nowait({"type": "error", **e.to_dict()})
        except Exception as e:
            logger.error("reconciliation_stream_failed", error=str(e), type=type(e).__name__)
            queue.put_nowait({
                "type": "error",
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred"
                }
            })
        finally:
            queue.put_nowait(None)

    async def events():
        task = asyncio.create_task(run())
        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                yield json.dumps(item) + "\n"
        finally:
            # Client went away mid-run
            if not task.done():
                task.cancel()

    return StreamingResponse(events(), media_type="application/x-ndjson")
