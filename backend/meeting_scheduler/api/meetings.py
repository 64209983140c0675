"""
Meeting API Routes.

WHAT: REST endpoints for scheduling, updating and cancelling meetings, and
for the meeting queries.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.core.deps import get_db, get_pagination, Pagination, day_range
from meeting_scheduler.schemas.common import CountResponse
from meeting_scheduler.schemas.meeting import (
    MeetingCreateRequest,
    MeetingUpdateRequest,
    ParticipantRequest,
    MeetingResponse,
    MeetingListResponse,
)
from meeting_scheduler.services.meeting_service import MeetingService


router = APIRouter(prefix="/meetings", tags=["meetings"])


def _meeting_to_response(meeting) -> MeetingResponse:
    """
    Convert Meeting model to response schema.

    Start and end come from the meeting's time slot.
    """
    return MeetingResponse(
        id=meeting.id,
        title=meeting.title,
        description=meeting.description,
        time_slot_id=meeting.time_slot_id,
        participants=meeting.participants,
        start_time=meeting.start_time,
        end_time=meeting.end_time,
        created_at=meeting.created_at,
        updated_at=meeting.updated_at,
    )


@router.post("", response_model=MeetingResponse, status_code=status.HTTP_201_CREATED)
async def schedule_meeting(
    request: MeetingCreateRequest,
    session: AsyncSession = Depends(get_db),
):
    """
    Schedule a meeting on an AVAILABLE time slot.

    The slot becomes BUSY. Returns 409 if the slot is BUSY or already has a
    meeting, 404 if it doesn't exist.
    """
    service = MeetingService(session)
    meeting = await service.schedule_meeting(
        title=request.title,
        time_slot_id=request.time_slot_id,
        description=request.description,
        participants=request.participants,
    )
    return _meeting_to_response(meeting)


@router.get("", response_model=List[MeetingResponse])
async def search_meetings(
    participant_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    title: Optional[str] = Query(None, min_length=1, description="Case-sensitive title fragment"),
    session: AsyncSession = Depends(get_db),
):
    """
    Search meetings.

    - ``title`` given: substring search on title (other filters ignored)
    - ``start_date`` and ``end_date`` given: meetings inside those days,
      optionally only those with ``participant_id``
    - otherwise: empty list
    """
    service = MeetingService(session)
    if title:
        meetings = await service.find_meetings_by_title(title)
    elif start_date is not None and end_date is not None:
        start, end = day_range(start_date, end_date)
        if participant_id:
            meetings = await service.list_meetings_by_participant_in_range(participant_id, start, end)
        else:
            meetings = await service.list_meetings_in_range(start, end)
    else:
        meetings = []
    return [_meeting_to_response(m) for m in meetings]


@router.get("/participant/{participant_id}", response_model=MeetingListResponse)
async def list_participant_meetings(
    participant_id: str,
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_db),
):
    service = MeetingService(session)
    meetings, total = await service.list_meetings_by_participant(
        participant_id, skip=page.skip, limit=page.limit
    )
    return MeetingListResponse(
        items=[_meeting_to_response(m) for m in meetings],
        total=total,
        skip=page.skip,
        limit=page.limit,
    )


@router.get("/participant/{participant_id}/count", response_model=CountResponse)
async def count_participant_meetings(
    participant_id: str,
    session: AsyncSession = Depends(get_db),
):
    service = MeetingService(session)
    return CountResponse(count=await service.count_by_participant(participant_id))


@router.get("/calendar-user/{user_id}", response_model=MeetingListResponse)
async def list_calendar_owner_meetings(
    user_id: str,
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_db),
):
    """Meetings held in any calendar owned by ``user_id``."""
    service = MeetingService(session)
    meetings, total = await service.list_meetings_by_calendar_owner(
        user_id, skip=page.skip, limit=page.limit
    )
    return MeetingListResponse(
        items=[_meeting_to_response(m) for m in meetings],
        total=total,
        skip=page.skip,
        limit=page.limit,
    )


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(
    meeting_id: UUID,
    session: AsyncSession = Depends(get_db),
):
    service = MeetingService(session)
    return await service.get_meeting_view(meeting_id)


@router.put("/{meeting_id}", response_model=MeetingResponse)
async def update_meeting(
    meeting_id: UUID,
    request: MeetingUpdateRequest,
    session: AsyncSession = Depends(get_db),
):
    """Overwrite title, description and participants."""
    service = MeetingService(session)
    meeting = await service.update_meeting(
        meeting_id,
        title=request.title,
        description=request.description,
        participants=request.participants,
    )
    return _meeting_to_response(meeting)


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_meeting(
    meeting_id: UUID,
    session: AsyncSession = Depends(get_db),
):
    """Cancel a meeting; its time slot becomes AVAILABLE again."""
    service = MeetingService(session)
    await service.cancel_meeting(meeting_id)


@router.post("/{meeting_id}/participants", response_model=MeetingResponse)
async def add_participant(
    meeting_id: UUID,
    request: ParticipantRequest,
    session: AsyncSession = Depends(get_db),
):
    service = MeetingService(session)
    meeting = await service.add_participant(meeting_id, request.participant_id)
    return _meeting_to_response(meeting)


@router.delete("/{meeting_id}/participants/{participant_id}", response_model=MeetingResponse)
async def remove_participant(
    meeting_id: UUID,
    participant_id: str,
    session: AsyncSession = Depends(get_db),
):
    service = MeetingService(session)
    meeting = await service.remove_participant(meeting_id, participant_id)
    return _meeting_to_response(meeting)
