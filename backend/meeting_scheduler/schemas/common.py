"""
Shared schema pieces: UTC normalization and simple response envelopes.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Convert an offset-aware datetime to naive UTC.

    Naive values are assumed to already be UTC and are returned unchanged.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class CountResponse(BaseModel):
    """Response schema for count endpoints."""

    count: int = Field(..., ge=0)


class ExistsResponse(BaseModel):
    """Response schema for existence checks."""

    exists: bool


class OverlapResponse(BaseModel):
    """Response schema for the overlap probe."""

    overlapping: bool
