"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.assets import router as assets_router
from routes.reconciliation import router as reconciliation_router

__all__ = [
    "assets_router",
    "reconciliation_router",
]
