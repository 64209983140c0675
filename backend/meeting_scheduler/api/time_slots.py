"""
Time Slot API Routes.

WHAT: REST endpoints for the slots of one calendar, plus the cross-calendar
busy-slot lookup.

HOW: Slot routes are nested under ``/calendars/{calendar_id}/slots``. A slot
id that belongs to a different calendar is answered with 404.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.core.deps import get_db, get_pagination, Pagination, day_range
from meeting_scheduler.core.exceptions import TimeSlotNotFoundError
from meeting_scheduler.models.time_slot import SlotStatus
from meeting_scheduler.schemas.common import OverlapResponse, to_naive_utc
from meeting_scheduler.schemas.time_slot import (
    TimeSlotCreateRequest,
    TimeSlotUpdateRequest,
    TimeSlotResponse,
    TimeSlotListResponse,
    SlotDateCount,
    SlotDateCountResponse,
)
from meeting_scheduler.services.time_slot_service import TimeSlotService


router = APIRouter(prefix="/calendars/{calendar_id}/slots", tags=["time-slots"])
busy_router = APIRouter(prefix="/slots", tags=["time-slots"])


def _slot_to_response(slot) -> TimeSlotResponse:
    return TimeSlotResponse(
        id=slot.id,
        calendar_id=slot.calendar_id,
        start_time=slot.start_time,
        end_time=slot.end_time,
        status=SlotStatus(slot.status),
        created_at=slot.created_at,
        updated_at=slot.updated_at,
    )


@router.post("", response_model=TimeSlotResponse, status_code=status.HTTP_201_CREATED)
async def create_time_slot(
    calendar_id: UUID,
    request: TimeSlotCreateRequest,
    session: AsyncSession = Depends(get_db),
):
    """
    Create an AVAILABLE slot.

    Returns 400 for an invalid interval and 409 when it overlaps another
    slot of the calendar.
    """
    service = TimeSlotService(session)
    slot = await service.create_time_slot(calendar_id, request.start_time, request.end_time)
    return _slot_to_response(slot)


@router.get("", response_model=TimeSlotListResponse)
async def list_time_slots(
    calendar_id: UUID,
    start_date: Optional[date] = Query(None, description="First day (inclusive)"),
    end_date: Optional[date] = Query(None, description="Last day (inclusive)"),
    status: Optional[SlotStatus] = Query(None, description="Filter by status"),
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_db),
):
    """
    List a calendar's slots ordered by start time.

    With both ``start_date`` and ``end_date`` only slots lying fully inside
    those days are returned.
    """
    service = TimeSlotService(session)
    if start_date is not None and end_date is not None:
        start, end = day_range(start_date, end_date)
        slots, total = await service.list_time_slots_in_range(
            calendar_id, start, end, status=status, skip=page.skip, limit=page.limit
        )
    else:
        slots, total = await service.list_time_slots_by_calendar(
            calendar_id, status=status, skip=page.skip, limit=page.limit
        )
    return TimeSlotListResponse(
        items=[_slot_to_response(s) for s in slots],
        total=total,
        skip=page.skip,
        limit=page.limit,
    )


@router.get("/available", response_model=List[TimeSlotResponse])
async def get_available_slots(
    calendar_id: UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    session: AsyncSession = Depends(get_db),
):
    """AVAILABLE slots lying fully inside the given days."""
    service = TimeSlotService(session)
    start, end = day_range(start_date, end_date)
    return await service.get_available_slots(calendar_id, start, end)


@router.get("/overlap", response_model=OverlapResponse)
async def check_overlap(
    calendar_id: UUID,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    exclude_id: Optional[UUID] = Query(None, description="Slot to ignore"),
    session: AsyncSession = Depends(get_db),
):
    """Report whether ``[start_time, end_time)`` would collide with an existing slot."""
    service = TimeSlotService(session)
    overlapping = await service.has_overlapping_slots(
        calendar_id, to_naive_utc(start_time), to_naive_utc(end_time), exclude_id
    )
    return OverlapResponse(overlapping=overlapping)


@router.get("/counts", response_model=SlotDateCountResponse)
async def get_slot_counts(
    calendar_id: UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    session: AsyncSession = Depends(get_db),
):
    """Number of slots per day."""
    service = TimeSlotService(session)
    start, end = day_range(start_date, end_date)
    rows = await service.get_slot_count_by_date(calendar_id, start, end)
    return SlotDateCountResponse(items=[SlotDateCount(date=d, count=c) for d, c in rows])


@router.get("/{slot_id}", response_model=TimeSlotResponse)
async def get_time_slot(
    calendar_id: UUID,
    slot_id: UUID,
    session: AsyncSession = Depends(get_db),
):
    service = TimeSlotService(session)
    view = await service.get_time_slot_view(slot_id)
    if view.calendar_id != calendar_id:
        raise TimeSlotNotFoundError(time_slot_id=slot_id, calendar_id=calendar_id)
    return view


@router.put("/{slot_id}", response_model=TimeSlotResponse)
async def update_time_slot(
    calendar_id: UUID,
    slot_id: UUID,
    request: TimeSlotUpdateRequest,
    session: AsyncSession = Depends(get_db),
):
    """Overwrite a slot's start and end, and its status when given."""
    service = TimeSlotService(session)
    await service.get_time_slot_in_calendar(calendar_id, slot_id)
    slot = await service.update_time_slot(
        slot_id,
        start_time=request.start_time,
        end_time=request.end_time,
        status=request.status,
    )
    return _slot_to_response(slot)


@router.patch("/{slot_id}/status", response_model=TimeSlotResponse)
async def set_time_slot_status(
    calendar_id: UUID,
    slot_id: UUID,
    status: SlotStatus = Query(..., description="New status"),
    session: AsyncSession = Depends(get_db),
):
    """Mark a slot BUSY or AVAILABLE. Setting the current status is a no-op."""
    service = TimeSlotService(session)
    await service.get_time_slot_in_calendar(calendar_id, slot_id)
    if status == SlotStatus.BUSY:
        slot = await service.mark_slot_busy(slot_id)
    else:
        slot = await service.mark_slot_available(slot_id)
    return _slot_to_response(slot)


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_slot(
    calendar_id: UUID,
    slot_id: UUID,
    session: AsyncSession = Depends(get_db),
):
    """
    Delete a slot. Returns 409 if a meeting is scheduled on it.
    """
    service = TimeSlotService(session)
    await service.get_time_slot_in_calendar(calendar_id, slot_id)
    await service.delete_time_slot(slot_id)


@busy_router.get("/busy", response_model=List[TimeSlotResponse])
async def get_busy_slots(
    user_ids: List[str] = Query(..., description="Calendar owners (repeat or comma-separate)"),
    start_date: date = Query(...),
    end_date: date = Query(...),
    session: AsyncSession = Depends(get_db),
):
    """
    BUSY slots across every calendar owned by the given users.
    """
    owners = [u.strip() for value in user_ids for u in value.split(",") if u.strip()]
    service = TimeSlotService(session)
    start, end = day_range(start_date, end_date)
    slots = await service.get_busy_slots_by_users(owners, start, end)
    return [_slot_to_response(s) for s in slots]
