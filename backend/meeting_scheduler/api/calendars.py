"""
Calendar API Routes.

WHAT: REST endpoints for calendar CRUD and per-user lookups.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.core.deps import get_db, get_pagination, Pagination
from meeting_scheduler.schemas.calendar import (
    CalendarCreateRequest,
    CalendarUpdateRequest,
    CalendarResponse,
    CalendarListResponse,
)
from meeting_scheduler.schemas.common import CountResponse, ExistsResponse
from meeting_scheduler.services.calendar_service import CalendarService


router = APIRouter(prefix="/calendars", tags=["calendars"])


def _calendar_to_response(calendar) -> CalendarResponse:
    return CalendarResponse(
        id=calendar.id,
        name=calendar.name,
        user_id=calendar.user_id,
        timezone=calendar.timezone,
        created_at=calendar.created_at,
        updated_at=calendar.updated_at,
    )


@router.post("", response_model=CalendarResponse, status_code=status.HTTP_201_CREATED)
async def create_calendar(
    request: CalendarCreateRequest,
    session: AsyncSession = Depends(get_db),
):
    """
    Create a calendar.

    Returns 409 if the user already has a calendar with the same name.
    """
    service = CalendarService(session)
    calendar = await service.create_calendar(
        name=request.name,
        user_id=request.user_id,
        timezone=request.timezone,
    )
    return _calendar_to_response(calendar)


@router.get("", response_model=CalendarListResponse)
async def list_calendars(
    user_id: str = Query(..., min_length=1, description="Owner user ID"),
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_db),
):
    """List one page of a user's calendars."""
    service = CalendarService(session)
    calendars, total = await service.list_calendars_by_user_paged(
        user_id, skip=page.skip, limit=page.limit
    )
    return CalendarListResponse(
        items=[_calendar_to_response(c) for c in calendars],
        total=total,
        skip=page.skip,
        limit=page.limit,
    )


@router.get("/user/{user_id}", response_model=List[CalendarResponse])
async def list_user_calendars(
    user_id: str,
    session: AsyncSession = Depends(get_db),
):
    """All calendars of a user, unpaged."""
    service = CalendarService(session)
    return await service.list_calendars_by_user(user_id)


@router.get("/user/{user_id}/exists", response_model=ExistsResponse)
async def calendar_name_exists(
    user_id: str,
    name: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_db),
):
    """Check whether the user already has a calendar named ``name``."""
    service = CalendarService(session)
    return ExistsResponse(exists=await service.exists_by_user_and_name(user_id, name))


@router.get("/user/{user_id}/count", response_model=CountResponse)
async def count_user_calendars(
    user_id: str,
    session: AsyncSession = Depends(get_db),
):
    service = CalendarService(session)
    return CountResponse(count=await service.count_by_user(user_id))


@router.get("/user/{user_id}/{calendar_id}", response_model=CalendarResponse)
async def get_user_calendar(
    user_id: str,
    calendar_id: UUID,
    session: AsyncSession = Depends(get_db),
):
    """
    Get a calendar only if ``user_id`` owns it.

    A calendar owned by someone else is reported as 404.
    """
    service = CalendarService(session)
    calendar = await service.get_calendar_by_user(calendar_id, user_id)
    return _calendar_to_response(calendar)


@router.get("/{calendar_id}", response_model=CalendarResponse)
async def get_calendar(
    calendar_id: UUID,
    session: AsyncSession = Depends(get_db),
):
    service = CalendarService(session)
    return await service.get_calendar_view(calendar_id)


@router.put("/{calendar_id}", response_model=CalendarResponse)
async def update_calendar(
    calendar_id: UUID,
    request: CalendarUpdateRequest,
    session: AsyncSession = Depends(get_db),
):
    """Rename a calendar and/or change its timezone."""
    service = CalendarService(session)
    calendar = await service.update_calendar(
        calendar_id,
        name=request.name,
        timezone=request.timezone,
    )
    return _calendar_to_response(calendar)


@router.delete("/{calendar_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calendar(
    calendar_id: UUID,
    session: AsyncSession = Depends(get_db),
):
    """
    Delete a calendar together with its time slots and their meetings.
    """
    service = CalendarService(session)
    await service.delete_calendar(calendar_id)
