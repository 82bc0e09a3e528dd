"""
API Routers

This package contains modularized FastAPI routers.
"""

from mvrv_zscore.routers import mvrv_router
from mvrv_zscore.routers import system_router

__all__ = [
    "mvrv_router",
    "system_router",
]
