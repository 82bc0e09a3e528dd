"""
Database Models

Persistent backing table for the series store.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from mvrv_zscore.database import Base


class CacheRecord(Base):
    """
    One key-value cache entry with an absolute expiry.

    Holds the raw MVRV series and the derived rolling Z-Score response as
    JSON text. Rows past expires_at are treated as absent and removed on
    read.
    """
    __tablename__ = "cache_records"

    key = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)
