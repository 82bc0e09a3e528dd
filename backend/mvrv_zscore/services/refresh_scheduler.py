"""
Background service for refreshing the MVRV rolling Z-Score cache.

Runs a forced recompute once per interval so interactive requests are
normally served straight from the cache. Errors are logged and the loop
carries on; the previous cache entry stays in place until it expires.
"""

import asyncio
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

# Defaults (overridable per instance from settings)
REFRESH_INTERVAL = 24 * 60 * 60     # Daily
INITIAL_DELAY = 10                  # Wait 10 seconds after startup


class MVRVRefreshScheduler:
    """Background service that periodically re-derives the rolling series."""

    def __init__(self, service_factory, interval_seconds: int = REFRESH_INTERVAL,
                 initial_delay: int = INITIAL_DELAY):
        self._service_factory = service_factory
        self.interval_seconds = interval_seconds
        self.initial_delay = initial_delay
        self._task = None
        self._running = False
        self._last_refresh: datetime | None = None
        self._last_error: str | None = None

    async def start(self):
        """Start the background refresh task."""
        if self._running:
            logger.warning("MVRV refresh scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info("MVRV refresh scheduler started")

    async def stop(self):
        """Stop the background refresh task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("MVRV refresh scheduler stopped")

    async def _refresh_loop(self):
        """Main loop: refresh, then sleep for one interval."""
        # Wait a bit after startup before first refresh
        await asyncio.sleep(self.initial_delay)

        while self._running:
            await self.refresh_once()
            await asyncio.sleep(self.interval_seconds)

    async def refresh_once(self) -> bool:
        """Run one forced refresh. Returns True on success, never raises."""
        logger.info(f"Scheduled MVRV refresh started: {datetime.utcnow().isoformat()}")
        try:
            service = self._service_factory()
            await service.get_rolling_data(force_refresh=True)
        except Exception as e:
            self._last_error = str(e)
            logger.error(f"Error in scheduled MVRV update: {e}")
            return False

        self._last_refresh = datetime.utcnow()
        self._last_error = None
        logger.info("Successfully updated MVRV 2YR cache")

        # Drop rows left behind by expired entries
        cleanup = getattr(service.store, "cleanup_expired", None)
        if cleanup is not None:
            try:
                await cleanup()
            except Exception as e:
                logger.warning(f"Failed to clean up expired cache entries: {e}")

        return True

    @property
    def status(self) -> dict:
        """Get current status of the refresh scheduler."""
        return {
            "running": self._running,
            "last_refresh": self._last_refresh.isoformat() if self._last_refresh else None,
            "last_error": self._last_error,
            "interval_hours": self.interval_seconds / 3600,
        }
