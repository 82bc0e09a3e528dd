"""
System and general API routes

Handles system-level endpoints:
- Root service info
- Health check with refresh scheduler status
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from mvrv_zscore.schemas import HealthResponse, ServiceInfoResponse
from mvrv_zscore.services.refresh_scheduler import MVRVRefreshScheduler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])

_refresh_scheduler: Optional[MVRVRefreshScheduler] = None


def set_refresh_scheduler(scheduler: Optional[MVRVRefreshScheduler]) -> None:
    """Register the running scheduler (called from main.py)"""
    global _refresh_scheduler
    _refresh_scheduler = scheduler


def get_refresh_scheduler() -> Optional[MVRVRefreshScheduler]:
    return _refresh_scheduler


@router.get("/", response_model=ServiceInfoResponse)
async def root():
    return ServiceInfoResponse(
        service="MVRV Z-Score 2YR Rolling",
        endpoints={
            "GET /api/mvrv-2yr": "Returns complete 2YR rolling Z-Score dataset (JSON)",
            "GET /api/mvrv-2yr/latest": "Returns the most recent 2YR rolling Z-Score point (JSON)",
            "GET /api/health": "Service health and scheduled refresh status",
        },
    )


@router.get("/api/health", response_model=HealthResponse)
async def health(scheduler: Optional[MVRVRefreshScheduler] = Depends(get_refresh_scheduler)):
    """Liveness plus scheduled refresh status"""
    refresh = scheduler.status if scheduler else {"running": False}
    return HealthResponse(status="ok", refresh=refresh)
