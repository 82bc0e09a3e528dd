"""
MVRV 2YR Rolling Service

Decides when to serve cached data and when to recompute:
- Derived series (rolling Z-Score response) cached for 24 hours
- Raw MVRV series cached for 7 days
- Forced refresh (scheduler) always recomputes the derived series

The whole derived series is rebuilt from the raw series on every
recompute. A failed cache write is logged and the fresh result is still
returned.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mvrv_zscore.cache import SeriesStore
from mvrv_zscore.constants import (
    CACHE_KEY_HISTORICAL,
    CACHE_KEY_ROLLING,
    HISTORY_START_DATE,
    TTL_24_HOURS,
    TTL_7_DAYS,
    WINDOW_LABEL,
    WINDOW_SIZE,
)
from mvrv_zscore.exceptions import InsufficientHistoricalDataError
from mvrv_zscore.schemas import DerivedPoint, MVRVResponse, RawPoint
from mvrv_zscore.services.coinmetrics_client import fetch_historical_mvrv_data
from mvrv_zscore.services.rolling_zscore import latest_zscore, series_zscore

logger = logging.getLogger(__name__)

HistoricalFetcher = Callable[[str], Awaitable[List[RawPoint]]]


class MVRVRollingService:
    """Serves the rolling Z-Score series from cache, recomputing on miss."""

    def __init__(
        self,
        store: SeriesStore,
        fetcher: HistoricalFetcher = fetch_historical_mvrv_data,
        start_date: str = HISTORY_START_DATE,
    ):
        self.store = store
        self.fetcher = fetcher
        self.start_date = start_date

    async def get_rolling_data(self, force_refresh: bool = False) -> Dict[str, Any]:
        """
        Get MVRV 2YR rolling data (from cache or calculate fresh)

        Returns the MVRVResponse payload as a dict with the lastUpdate alias.

        Raises:
            InsufficientHistoricalDataError: fewer than WINDOW_SIZE + 1 raw points
            UpstreamFetchError: raw series had to be fetched and the fetch failed
        """
        if not force_refresh:
            cached = await self._read(CACHE_KEY_ROLLING)
            if cached:
                logger.info("Returning cached MVRV 2YR data")
                return cached

        logger.info("Cache miss or forced refresh - calculating fresh data")

        historical_values = await self.get_historical_values()

        if len(historical_values) < WINDOW_SIZE + 1:
            raise InsufficientHistoricalDataError(
                f"Insufficient historical data for 2YR rolling calculation: "
                f"{len(historical_values)} points, need {WINDOW_SIZE + 1}"
            )

        # CPU-bound (~n * 730 ops), keep it off the event loop
        final_data = await asyncio.to_thread(series_zscore, historical_values)

        logger.info(f"Calculated {len(final_data)} rolling Z-Score data points")

        response = MVRVResponse(
            window=WINDOW_LABEL,
            last_update=datetime.now(timezone.utc).isoformat(),
            data=final_data,
        ).model_dump(by_alias=True)

        await self._write(CACHE_KEY_ROLLING, response, TTL_24_HOURS)

        return response

    async def get_historical_values(self) -> List[RawPoint]:
        """Get historical MVRV values (from cache or Coin Metrics)"""
        cached = await self._read(CACHE_KEY_HISTORICAL)
        if cached:
            logger.info("Returning cached historical MVRV values")
            return [RawPoint.model_validate(item) for item in cached]

        logger.info("Fetching fresh historical data from Coin Metrics")

        # Upstream errors propagate as-is
        historical_data = await self.fetcher(self.start_date)

        await self._write(
            CACHE_KEY_HISTORICAL,
            [point.model_dump() for point in historical_data],
            TTL_7_DAYS,
        )

        logger.info(f"Cached {len(historical_data)} historical MVRV values")

        return historical_data

    async def get_latest_point(self) -> DerivedPoint:
        """Rolling Z-Score for the most recent day only"""
        historical_values = await self.get_historical_values()

        latest = latest_zscore(historical_values)
        if latest is None:
            raise InsufficientHistoricalDataError(
                f"Insufficient historical data for 2YR rolling calculation: "
                f"{len(historical_values)} points, need {WINDOW_SIZE + 1}"
            )
        return latest

    async def _read(self, key: str) -> Optional[Any]:
        """Cache read; a failing store counts as a miss."""
        try:
            return await self.store.get(key)
        except Exception as e:
            logger.warning(f"Failed to read cache entry {key}: {e}")
            return None

    async def _write(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Cache write; failures are logged, never raised."""
        try:
            await self.store.put(key, value, ttl_seconds)
        except Exception as e:
            logger.error(f"Failed to cache {key}, serving uncached result: {e}")


_default_service: Optional[MVRVRollingService] = None


def get_mvrv_service() -> MVRVRollingService:
    """Process-wide service built from settings (FastAPI dependency)."""
    global _default_service
    if _default_service is None:
        from mvrv_zscore.cache import create_series_store
        from mvrv_zscore.config import settings

        _default_service = MVRVRollingService(
            store=create_series_store(settings.cache_backend),
            start_date=settings.history_start_date,
        )
    return _default_service
