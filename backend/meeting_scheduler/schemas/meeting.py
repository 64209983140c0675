"""
Meeting Pydantic Schemas.

WHAT: Request/Response models for the meeting endpoints.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_participants(values: List[str]) -> List[str]:
    cleaned = []
    for value in values:
        value = value.strip()
        if not value:
            raise ValueError("Participant id cannot be blank")
        if value not in cleaned:
            cleaned.append(value)
    return cleaned


# ============================================================================
# Request Schemas
# ============================================================================


class MeetingCreateRequest(BaseModel):
    """
    Request schema for scheduling a meeting on a time slot.
    """

    title: str = Field(..., min_length=1, max_length=255, description="Meeting title")
    description: Optional[str] = Field(None, max_length=5000, description="Meeting description")
    time_slot_id: UUID = Field(..., description="Slot to book")
    participants: List[str] = Field(default_factory=list, description="Participant ids")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v.strip()

    @field_validator("participants")
    @classmethod
    def dedupe_participants(cls, v: List[str]) -> List[str]:
        return _clean_participants(v)


class MeetingUpdateRequest(BaseModel):
    """
    Request schema for updating a meeting.

    The time slot cannot be changed; cancel and reschedule instead.
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    participants: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v.strip()

    @field_validator("participants")
    @classmethod
    def dedupe_participants(cls, v: List[str]) -> List[str]:
        return _clean_participants(v)


class ParticipantRequest(BaseModel):
    participant_id: str = Field(..., min_length=1, max_length=255)

    @field_validator("participant_id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Participant id cannot be blank")
        return v.strip()


# ============================================================================
# Response Schemas
# ============================================================================


class MeetingResponse(BaseModel):
    """Response schema for meeting data, including the slot's times."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    time_slot_id: UUID
    participants: List[str]
    start_time: datetime
    end_time: datetime
    created_at: datetime
    updated_at: datetime


class MeetingListResponse(BaseModel):
    """Paginated meeting list."""

    items: List[MeetingResponse]
    total: int
    skip: int
    limit: int
