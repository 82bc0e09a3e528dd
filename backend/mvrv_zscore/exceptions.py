"""
Domain exceptions for the application.

Services raise these instead of fastapi.HTTPException to avoid coupling
the service layer to the web framework. A global exception handler in
main.py translates AppError subclasses into HTTP responses.
"""


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InsufficientHistoricalDataError(AppError):
    """Raw series too short for any rolling Z-Score (503)."""

    def __init__(self, message: str = "Insufficient historical data for 2YR rolling calculation"):
        super().__init__(message, status_code=503)


class UpstreamFetchError(AppError):
    """Upstream market data API unavailable (502)."""

    def __init__(self, message: str = "Upstream data service unavailable"):
        super().__init__(message, status_code=502)


class CachePersistError(AppError):
    """Series store write failed (500). Logged by callers, never surfaced."""

    def __init__(self, message: str = "Failed to persist cache entry"):
        super().__init__(message, status_code=500)


class InsufficientWindowDataError(ValueError):
    """
    Rolling window is not exactly WINDOW_SIZE values long.

    Raised by the calculation layer on a caller contract violation.
    Never translated into an HTTP response.
    """

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Need exactly {expected} days of MVRV data for rolling calculation, got {actual}"
        )
