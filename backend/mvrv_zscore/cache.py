"""
Key-value series store with TTL

Holds the raw MVRV series and the derived rolling Z-Score response.
Two interchangeable backends share the same get/put contract:
- SimpleCache: in-memory, for tests and single-process deployments
- SqlSeriesStore: SQLAlchemy-backed, survives restarts
"""

import asyncio
import copy
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mvrv_zscore.exceptions import CachePersistError
from mvrv_zscore.models import CacheRecord

logger = logging.getLogger(__name__)


class SeriesStore(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        ...

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...


class CacheEntry:
    """Single cache entry with TTL"""

    def __init__(self, value: Any, ttl_seconds: int):
        self.value = value
        self.expires_at = datetime.utcnow() + timedelta(seconds=ttl_seconds)

    def is_expired(self) -> bool:
        return datetime.utcnow() >= self.expires_at


class SimpleCache:
    """
    Simple in-memory cache with TTL support

    Safe for asyncio use. Expired entries are dropped lazily on read.
    Values are copied in and out so callers never share the cached object.
    """

    def __init__(self):
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired"""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired():
                del self._cache[key]
                return None

            return copy.deepcopy(entry.value)

    async def put(self, key: str, value: Any, ttl_seconds: int):
        """Set value in cache with TTL"""
        async with self._lock:
            self._cache[key] = CacheEntry(copy.deepcopy(value), ttl_seconds)

    async def clear(self):
        """Clear all cache entries"""
        async with self._lock:
            self._cache.clear()

    async def cleanup_expired(self):
        """Remove all expired entries"""
        async with self._lock:
            expired_keys = [key for key, entry in self._cache.items() if entry.is_expired()]
            for key in expired_keys:
                del self._cache[key]


class SqlSeriesStore:
    """
    Database-backed series store.

    Values are stored as JSON text in the cache_records table so the first
    request after a restart can be served without re-fetching upstream.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get(self, key: str) -> Optional[Any]:
        """Load a value. Returns None if missing or expired."""
        async with self._session_maker() as db:
            result = await db.execute(select(CacheRecord).where(CacheRecord.key == key))
            record = result.scalars().first()
            if record is None:
                return None

            now = datetime.utcnow()
            if now >= record.expires_at:
                logger.info(f"Cache entry {key} expired at {record.expires_at.isoformat()}")
                # A concurrent put may have replaced the row since the select
                await db.execute(
                    delete(CacheRecord).where(
                        CacheRecord.key == key, CacheRecord.expires_at <= now
                    )
                )
                await db.commit()
                return None

            return json.loads(record.payload)

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Persist a value with TTL. Raises CachePersistError on failure."""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise CachePersistError(f"Cache value for {key} is not JSON serializable: {e}")

        now = datetime.utcnow()
        try:
            async with self._session_maker() as db:
                await db.merge(CacheRecord(
                    key=key,
                    payload=payload,
                    expires_at=now + timedelta(seconds=ttl_seconds),
                    updated_at=now,
                ))
                await db.commit()
        except SQLAlchemyError as e:
            raise CachePersistError(f"Failed to write cache entry {key}: {e}")

    async def cleanup_expired(self) -> int:
        """Delete all expired rows. Returns the number removed."""
        async with self._session_maker() as db:
            result = await db.execute(
                delete(CacheRecord).where(CacheRecord.expires_at <= datetime.utcnow())
            )
            await db.commit()
            return result.rowcount or 0


def create_series_store(backend: str, session_maker: Optional[async_sessionmaker] = None) -> SeriesStore:
    """Build the configured store backend ("memory" or "database")"""
    if backend == "memory":
        return SimpleCache()
    if backend == "database":
        if session_maker is None:
            from mvrv_zscore.database import async_session_maker
            session_maker = async_session_maker
        return SqlSeriesStore(session_maker)
    raise ValueError(f"Unsupported cache backend: {backend}")
