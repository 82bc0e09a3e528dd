"""
Application Constants

Centralized constants for the rolling window, cache keys and TTLs.
"""

# Rolling window: 2 years of daily points
WINDOW_SIZE = 730
WINDOW_LABEL = "730d"

# Cache keys
CACHE_KEY_ROLLING = "mvrv_2yr_rolling"  # Derived Z-Score series
CACHE_KEY_HISTORICAL = "mvrv_historical_values"  # Raw MVRV series

# Cache TTLs (in seconds)
TTL_24_HOURS = 86400  # 24 hours for rolling data
TTL_7_DAYS = 604800  # 7 days for historical values

# First day requested from Coin Metrics
HISTORY_START_DATE = "2012-01-01"

# Output precision (decimal places)
ZSCORE_DECIMALS = 4
MVRV_DECIMALS = 6
PRICE_DECIMALS = 2
