"""
Asset Reconciliation Service: main application

FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog
from datetime import datetime

from config import settings, check_connection
from routes import assets_router, reconciliation_router

# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Probe the asset store once at startup; a failure is logged, not fatal."""
    db_status = await check_connection()
    logger.info(
        "application_started",
        environment=settings.environment,
        assets_table=settings.assets_table,
        database=db_status["status"],
        assets=db_status.get("assets_count"),
        error=db_status.get("error")
    )

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Asset Reconciliation Service",
    description="Serialized equipment inventory browsing and branch reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(assets_router, prefix="/api/assets", tags=["Assets"])
app.include_router(reconciliation_router, prefix="/api/reconciliation", tags=["Reconciliation"])


@app.get("/health")
async def health_check():
    """Service status plus asset store reachability."""
    db_status = await check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "database": db_status
    }


@app.get("/")
async def root():
    return {
        "name": "Asset Reconciliation API",
        "version": "0.1.0",
        "endpoints": {
            "assets": "/api/assets",
            "reconciliation": "/api/reconciliation",
            "health": "/health"
        }
    }


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Standard error body for anything a route did not handle."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "timestamp": datetime.utcnow().isoformat()
            }
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
