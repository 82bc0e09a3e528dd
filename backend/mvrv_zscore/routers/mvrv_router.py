"""
MVRV Z-Score 2YR Rolling Router

- GET /api/mvrv-2yr - complete rolling Z-Score dataset
- GET /api/mvrv-2yr/latest - most recent rolling Z-Score point

Z-Score uses a 2-year (730-day) trailing window:
(MVRV - mean_last_730_days) / stddev_last_730_days
"""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from mvrv_zscore.exceptions import AppError
from mvrv_zscore.schemas import DerivedPoint, MVRVResponse
from mvrv_zscore.services.mvrv_service import MVRVRollingService, get_mvrv_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mvrv-2yr", tags=["mvrv"])

BROWSER_CACHE_CONTROL = "public, max-age=3600"  # Browser cache for 1 hour
GENERIC_ERROR = "Failed to fetch MVRV data"


@router.get("", response_model=MVRVResponse, responses={500: {"description": GENERIC_ERROR}})
async def get_mvrv_2yr(
    response: Response,
    service: MVRVRollingService = Depends(get_mvrv_service),
):
    """
    Get the complete 2YR rolling Z-Score dataset.

    Served from cache when fresh (24h). Failures return {"error": ...}
    rather than an empty dataset.
    """
    try:
        data = await service.get_rolling_data()
    except AppError:
        # Rendered by the global AppError handler
        raise
    except Exception as e:
        logger.error(f"Error fetching MVRV 2YR data: {e}")
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    response.headers["Cache-Control"] = BROWSER_CACHE_CONTROL
    return data


@router.get("/latest", response_model=DerivedPoint)
async def get_mvrv_2yr_latest(
    response: Response,
    service: MVRVRollingService = Depends(get_mvrv_service),
):
    """Get the rolling Z-Score for the most recent day."""
    try:
        point = await service.get_latest_point()
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error fetching latest MVRV 2YR point: {e}")
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    response.headers["Cache-Control"] = BROWSER_CACHE_CONTROL
    return point
