"""Centralized Pydantic schemas for API requests/responses"""

from .mvrv import DerivedPoint, HealthResponse, MVRVResponse, RawPoint, ServiceInfoResponse

__all__ = [
    # Series schemas
    "RawPoint",
    "DerivedPoint",
    "MVRVResponse",
    # System schemas
    "ServiceInfoResponse",
    "HealthResponse",
]
