"""
Data Fetcher for Coin Metrics Community API

Fetches historical BTC Market Cap, Realized Cap and price, and derives the
daily MVRV ratio. Handles pagination and spaces out page requests to stay
within the community rate limit.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from mvrv_zscore.config import settings
from mvrv_zscore.constants import HISTORY_START_DATE, MVRV_DECIMALS, PRICE_DECIMALS
from mvrv_zscore.exceptions import UpstreamFetchError
from mvrv_zscore.schemas import RawPoint

logger = logging.getLogger(__name__)

COINMETRICS_METRICS = "CapMrktCurUSD,CapRealUSD,PriceUSD"

# Shared aiohttp session (lazy-initialized, reused across requests)
_shared_session: Optional[aiohttp.ClientSession] = None
_SHARED_HEADERS = {"User-Agent": "MVRVZScore/1.0"}


async def get_shared_session() -> aiohttp.ClientSession:
    """Get or create a shared aiohttp session for external API calls."""
    global _shared_session
    if _shared_session is None or _shared_session.closed:
        _shared_session = aiohttp.ClientSession(headers=_SHARED_HEADERS)
    return _shared_session


async def close_shared_session() -> None:
    """Close the shared session (called on application shutdown)."""
    global _shared_session
    if _shared_session is not None and not _shared_session.closed:
        await _shared_session.close()
    _shared_session = None


def build_coinmetrics_params(
    start_date: str,
    end_date: str,
    page_token: Optional[str] = None,
) -> Dict[str, str]:
    """Query parameters for one asset-metrics page"""
    params = {
        "assets": "btc",
        "metrics": COINMETRICS_METRICS,
        "start_time": start_date,
        "end_time": end_date,
        "page_size": str(settings.coinmetrics_page_size),
    }
    if page_token:
        params["next_page_token"] = page_token
    return params


def parse_coinmetrics_point(point: Dict[str, Any]) -> Optional[RawPoint]:
    """
    Convert one Coin Metrics row into a RawPoint.

    Returns None when any required metric is missing, the realized cap
    is not positive (MVRV undefined) or the rounded MVRV is not positive.
    """
    market_cap_raw = point.get("CapMrktCurUSD")
    realized_cap_raw = point.get("CapRealUSD")
    price_raw = point.get("PriceUSD")
    time_raw = point.get("time")

    # Skip if missing required metrics
    if not market_cap_raw or not realized_cap_raw or not price_raw or not time_raw:
        return None

    market_cap = float(market_cap_raw)
    realized_cap = float(realized_cap_raw)
    price = float(price_raw)

    if realized_cap <= 0:
        return None

    mvrv = round(market_cap / realized_cap, MVRV_DECIMALS)
    if mvrv <= 0:
        return None

    return RawPoint(
        date=time_raw.split("T")[0],  # Extract YYYY-MM-DD
        mvrv=mvrv,
        price=round(price, PRICE_DECIMALS),
        market_cap=market_cap,
        realized_cap=realized_cap,
    )


def normalize_series(points: List[RawPoint]) -> List[RawPoint]:
    """Sort oldest to newest, keeping the last row seen for a duplicated date"""
    by_date: Dict[str, RawPoint] = {}
    for point in points:
        by_date[point.date] = point
    return [by_date[date] for date in sorted(by_date)]


async def fetch_historical_mvrv_data(
    start_date: str = HISTORY_START_DATE,
    end_date: Optional[str] = None,
) -> List[RawPoint]:
    """
    Fetch the daily MVRV series from Coin Metrics.

    Args:
        start_date: first day (YYYY-MM-DD)
        end_date: last day (YYYY-MM-DD), defaults to today (UTC)

    Returns:
        Chronologically sorted, de-duplicated RawPoints

    Raises:
        UpstreamFetchError: on HTTP errors, timeouts or malformed payloads
    """
    end = end_date or datetime.now(timezone.utc).strftime("%Y-%m-%d")
    timeout = aiohttp.ClientTimeout(total=settings.coinmetrics_timeout_seconds)
    all_data: List[RawPoint] = []
    skipped = 0
    next_page_token: Optional[str] = None

    logger.info(f"Fetching MVRV data from {start_date} to {end}")

    try:
        session = await get_shared_session()

        while True:
            params = build_coinmetrics_params(start_date, end, next_page_token)

            async with session.get(
                settings.coinmetrics_base_url, params=params, timeout=timeout
            ) as response:
                if response.status != 200:
                    logger.warning(f"Coin Metrics API returned {response.status}")
                    raise UpstreamFetchError(f"Coin Metrics API error: {response.status}")

                payload = await response.json()

            rows = payload.get("data", [])
            for row in rows:
                point = parse_coinmetrics_point(row)
                if point is None:
                    skipped += 1
                    continue
                all_data.append(point)

            logger.info(f"Fetched {len(rows)} data points (total: {len(all_data)})")

            next_page_token = payload.get("next_page_token")
            if not next_page_token:
                break

            # Respect rate limits
            await asyncio.sleep(settings.coinmetrics_page_delay_seconds)

    except UpstreamFetchError:
        raise
    except asyncio.TimeoutError:
        logger.warning("Timeout fetching from Coin Metrics")
        raise UpstreamFetchError("Coin Metrics API timeout")
    except aiohttp.ClientError as e:
        logger.error(f"Error fetching from Coin Metrics: {e}")
        raise UpstreamFetchError("Coin Metrics API error")
    except (ValueError, TypeError, AttributeError) as e:
        logger.error(f"Invalid Coin Metrics response: {e}")
        raise UpstreamFetchError("Invalid Coin Metrics response")

    if skipped:
        logger.info(f"Skipped {skipped} rows with missing metrics")

    series = normalize_series(all_data)
    if series:
        logger.info(
            f"Total data points fetched: {len(series)} "
            f"(first: {series[0].date}, last: {series[-1].date})"
        )
    else:
        logger.warning("Coin Metrics returned no usable data points")

    return series
