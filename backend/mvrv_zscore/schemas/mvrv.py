"""MVRV series Pydantic schemas"""
from typing import List, Optional

from pydantic import BaseModel, Field


class RawPoint(BaseModel):
    """One day of upstream data; mvrv = market cap / realized cap"""
    date: str  # ISO 8601 format: "YYYY-MM-DD"
    mvrv: float = Field(gt=0)
    price: Optional[float] = None  # Bitcoin price in USD
    market_cap: Optional[float] = None
    realized_cap: Optional[float] = None


class DerivedPoint(BaseModel):
    date: str  # ISO 8601 format: "YYYY-MM-DD"
    zscore: float  # 2-year rolling Z-Score
    mvrv: float  # Market Value to Realized Value ratio
    price: float  # Bitcoin price in USD


class MVRVResponse(BaseModel):
    window: str  # "730d" for 2-year rolling
    last_update: str = Field(alias="lastUpdate")  # ISO 8601 timestamp
    data: List[DerivedPoint]

    class Config:
        populate_by_name = True


class ServiceInfoResponse(BaseModel):
    service: str
    endpoints: dict


class HealthResponse(BaseModel):
    status: str
    refresh: dict
