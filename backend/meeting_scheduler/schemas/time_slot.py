"""
Time Slot Pydantic Schemas.

WHAT: Request/Response models for the time slot endpoints.

HOW: Incoming datetimes with an offset are normalized to naive UTC before
they reach the service. Ordering and duration rules are checked by
TimeSlotService so the same messages apply to every caller.
"""

from datetime import datetime, date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meeting_scheduler.models.time_slot import SlotStatus
from meeting_scheduler.schemas.common import to_naive_utc


# ============================================================================
# Request Schemas
# ============================================================================


class TimeSlotCreateRequest(BaseModel):
    """
    Request schema for creating a time slot.
    """

    start_time: datetime = Field(..., description="Slot start (UTC)")
    end_time: datetime = Field(..., description="Slot end (UTC)")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class TimeSlotUpdateRequest(BaseModel):
    """
    Request schema for updating a time slot.

    Start and end are overwritten; status is kept when omitted.
    """

    start_time: datetime = Field(..., description="Slot start (UTC)")
    end_time: datetime = Field(..., description="Slot end (UTC)")
    status: Optional[SlotStatus] = Field(default=None, description="Slot status")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


# ============================================================================
# Response Schemas
# ============================================================================


class TimeSlotResponse(BaseModel):
    """Response schema for time slot data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    calendar_id: UUID
    start_time: datetime
    end_time: datetime
    status: SlotStatus
    created_at: datetime
    updated_at: datetime


class TimeSlotListResponse(BaseModel):
    """Paginated time slot list."""

    items: List[TimeSlotResponse]
    total: int
    skip: int
    limit: int


class SlotDateCount(BaseModel):
    """Number of slots starting on one day."""

    date: date
    count: int


class SlotDateCountResponse(BaseModel):
    items: List[SlotDateCount]
