"""
Calendar Pydantic Schemas.

WHAT: Request/Response models for the calendar endpoints.
"""

from datetime import datetime
from typing import List
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _validate_timezone(value: str) -> str:
    value = value.strip()
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {value}")
    return value


# ============================================================================
# Request Schemas
# ============================================================================


class CalendarCreateRequest(BaseModel):
    """
    Request schema for creating a calendar.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Calendar name")
    user_id: str = Field(..., min_length=1, max_length=255, description="Owner user ID")
    timezone: str = Field(default="UTC", description="IANA timezone identifier")

    @field_validator("name", "user_id")
    @classmethod
    def strip_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v.strip()

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        return _validate_timezone(v)


class CalendarUpdateRequest(BaseModel):
    """
    Request schema for updating a calendar.

    Only name and timezone can change; the owner is fixed.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Calendar name")
    timezone: str = Field(..., description="IANA timezone identifier")

    @field_validator("name")
    @classmethod
    def strip_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v.strip()

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        return _validate_timezone(v)


# ============================================================================
# Response Schemas
# ============================================================================


class CalendarResponse(BaseModel):
    """Response schema for calendar data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    user_id: str
    timezone: str
    created_at: datetime
    updated_at: datetime


class CalendarListResponse(BaseModel):
    """
    Paginated calendar list.
    """

    items: List[CalendarResponse] = Field(..., description="Calendars in this page")
    total: int = Field(..., description="Total number of calendars for the user")
    skip: int = Field(..., description="Number of items skipped (offset)")
    limit: int = Field(..., description="Maximum items per page")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 3,
                "skip": 0,
                "limit": 20,
            }
        }
    )
