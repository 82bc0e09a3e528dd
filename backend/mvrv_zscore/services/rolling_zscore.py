"""
2-Year Rolling Z-Score Calculation

Formula: (MVRV_today - mean_last_730_days) / stddev_last_730_days

The window is the WINDOW_SIZE points strictly preceding the evaluated
day, counted by position rather than calendar span. Standard deviation
is the population one (divisor WINDOW_SIZE).
"""

import math
from typing import List, Optional, Sequence, Tuple

from mvrv_zscore.constants import MVRV_DECIMALS, WINDOW_SIZE, ZSCORE_DECIMALS
from mvrv_zscore.exceptions import InsufficientWindowDataError
from mvrv_zscore.schemas import DerivedPoint, RawPoint


def window_stats(window_values: Sequence[float]) -> Tuple[float, float]:
    """
    Mean and population standard deviation of a full rolling window

    Raises:
        InsufficientWindowDataError: window is not exactly WINDOW_SIZE long
    """
    if len(window_values) != WINDOW_SIZE:
        raise InsufficientWindowDataError(WINDOW_SIZE, len(window_values))

    # Identical values: summing them can leave float residue in the variance
    if min(window_values) == max(window_values):
        return float(window_values[0]), 0.0

    mean = sum(window_values) / WINDOW_SIZE
    variance = sum((v - mean) ** 2 for v in window_values) / WINDOW_SIZE
    return mean, math.sqrt(variance)


def point_zscore(current_value: float, window_values: Sequence[float]) -> float:
    """
    Rolling Z-Score for one day, rounded to 4 decimals

    Args:
        current_value: MVRV of the day being scored
        window_values: the WINDOW_SIZE MVRV values before that day, oldest first

    Returns:
        Z-Score, or exactly 0.0 when every window value is identical
    """
    mean, stddev = window_stats(window_values)

    # Flat window: no spread to measure against
    if stddev == 0:
        return 0.0

    zscore = (current_value - mean) / stddev
    return round(zscore, ZSCORE_DECIMALS)


def _derived_point(point: RawPoint, zscore: float) -> DerivedPoint:
    return DerivedPoint(
        date=point.date,
        zscore=zscore,
        mvrv=round(point.mvrv, MVRV_DECIMALS),
        price=point.price or 0,
    )


def series_zscore(raw_series: Sequence[RawPoint]) -> List[DerivedPoint]:
    """
    Rolling Z-Score for every day that has a full preceding window

    raw_series must already be sorted oldest to newest with no duplicate
    dates. Each point is recomputed from its own window. Returns an empty
    list when there are fewer than WINDOW_SIZE + 1 points.
    """
    values = [p.mvrv for p in raw_series]
    results: List[DerivedPoint] = []

    # Start from index WINDOW_SIZE (need WINDOW_SIZE prior days for first calculation)
    for i in range(WINDOW_SIZE, len(raw_series)):
        zscore = point_zscore(values[i], values[i - WINDOW_SIZE:i])
        results.append(_derived_point(raw_series[i], zscore))

    return results


def latest_zscore(raw_series: Sequence[RawPoint]) -> Optional[DerivedPoint]:
    """Rolling Z-Score for the newest day only, or None without a full window"""
    if len(raw_series) < WINDOW_SIZE + 1:
        return None

    # Last WINDOW_SIZE + 1 days: the window plus today
    recent = raw_series[-(WINDOW_SIZE + 1):]
    today = recent[-1]
    window = [p.mvrv for p in recent[:WINDOW_SIZE]]

    return _derived_point(today, point_zscore(today.mvrv, window))
