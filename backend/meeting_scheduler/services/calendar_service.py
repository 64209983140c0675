"""
Calendar Service.

WHAT: Business logic for calendars: creation with per-user name uniqueness,
lookups, renames and the cascading delete.

HOW: Orchestrates CalendarDAO and the cache. Reads of a single calendar and
of a user's full calendar list go through the cache; every write
invalidates the keys it touched before the request commits.
"""

import logging
from typing import List, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.core.cache import (
    get_cache,
    evict,
    calendar_key,
    user_calendars_key,
    time_slot_key,
    available_slots_prefix,
    meeting_key,
)
from meeting_scheduler.core.exceptions import CalendarNotFoundError, DuplicateResourceError
from meeting_scheduler.dao.calendar import CalendarDAO
from meeting_scheduler.models.calendar import Calendar
from meeting_scheduler.schemas.calendar import CalendarResponse


logger = logging.getLogger(__name__)


class CalendarService:
    """
    Service for calendar operations.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize CalendarService.

        Args:
            session: Async database session
        """
        self.session = session
        self.calendar_dao = CalendarDAO(session)
        self.cache = get_cache()

    async def create_calendar(self, name: str, user_id: str, timezone: str = "UTC") -> Calendar:
        """
        Create a calendar for a user.

        Args:
            name: Calendar name, unique per user
            user_id: Owner user ID
            timezone: IANA timezone identifier

        Returns:
            Created Calendar

        Raises:
            DuplicateResourceError: If the user already has a calendar with this name
        """
        if await self.calendar_dao.exists_by_user_and_name(user_id, name):
            raise DuplicateResourceError(user_id=user_id, name=name)

        calendar = await self.calendar_dao.create(name=name, user_id=user_id, timezone=timezone)
        await evict(self.cache, self.session, user_calendars_key(user_id))

        logger.info(f"Created calendar {calendar.id} '{name}' for user {user_id}")
        return calendar

    async def get_calendar(self, calendar_id: UUID) -> Calendar:
        """
        Get a calendar by ID.

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
        """
        calendar = await self.calendar_dao.get_by_id(calendar_id)
        if not calendar:
            raise CalendarNotFoundError(calendar_id=calendar_id)
        return calendar

    async def get_calendar_view(self, calendar_id: UUID) -> CalendarResponse:
        """
        Cached read of a single calendar.

        Args:
            calendar_id: Calendar ID

        Returns:
            CalendarResponse

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
        """
        key = calendar_key(calendar_id)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return CalendarResponse.model_validate(cached)

        view = CalendarResponse.model_validate(await self.get_calendar(calendar_id))
        await self.cache.set(key, view.model_dump(mode="json"))
        return view

    async def get_calendar_by_user(self, calendar_id: UUID, user_id: str) -> Calendar:
        """
        Get a calendar only if ``user_id`` owns it.

        Raises:
            CalendarNotFoundError: If absent or owned by someone else
        """
        calendar = await self.calendar_dao.get_by_id_and_user(calendar_id, user_id)
        if not calendar:
            raise CalendarNotFoundError(calendar_id=calendar_id, user_id=user_id)
        return calendar

    async def list_calendars_by_user(self, user_id: str) -> List[CalendarResponse]:
        """
        All calendars of a user (cached per user).

        Args:
            user_id: Owner user ID

        Returns:
            List of CalendarResponse, oldest first
        """
        key = user_calendars_key(user_id)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return [CalendarResponse.model_validate(item) for item in cached]

        calendars = await self.calendar_dao.get_by_user(user_id)
        views = [CalendarResponse.model_validate(c) for c in calendars]
        await self.cache.set(key, [v.model_dump(mode="json") for v in views])
        return views

    async def list_calendars_by_user_paged(
        self, user_id: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Calendar], int]:
        return await self.calendar_dao.get_by_user_paged(user_id, skip=skip, limit=limit)

    async def update_calendar(self, calendar_id: UUID, name: str, timezone: str) -> Calendar:
        """
        Rename a calendar and/or change its timezone.

        Uniqueness is re-checked only when the name actually changes.

        Args:
            calendar_id: Calendar ID
            name: New name
            timezone: New timezone (always overwritten)

        Returns:
            Updated Calendar

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
            DuplicateResourceError: If the new name is taken by another of the user's calendars
        """
        calendar = await self.get_calendar(calendar_id)

        if name != calendar.name and await self.calendar_dao.exists_by_user_and_name(
            calendar.user_id, name
        ):
            raise DuplicateResourceError(user_id=calendar.user_id, name=name)

        calendar = await self.calendar_dao.update(calendar, name=name, timezone=timezone)
        await evict(
            self.cache, self.session, calendar_key(calendar.id), user_calendars_key(calendar.user_id)
        )

        logger.info(f"Updated calendar {calendar.id}")
        return calendar

    async def delete_calendar(self, calendar_id: UUID) -> None:
        """
        Delete a calendar with all of its slots and their meetings.

        Args:
            calendar_id: Calendar ID

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
        """
        calendar = await self.get_calendar(calendar_id)
        user_id = calendar.user_id

        slot_ids, meeting_ids = await self.calendar_dao.delete_cascade(calendar)

        await evict(
            self.cache,
            self.session,
            calendar_key(calendar_id),
            user_calendars_key(user_id),
            *[time_slot_key(slot_id) for slot_id in slot_ids],
            *[meeting_key(meeting_id) for meeting_id in meeting_ids],
            prefixes=[available_slots_prefix(calendar_id)],
        )

        logger.info(
            f"Deleted calendar {calendar_id} with {len(slot_ids)} slots "
            f"and {len(meeting_ids)} meetings"
        )

    async def exists_by_user_and_name(self, user_id: str, name: str) -> bool:
        return await self.calendar_dao.exists_by_user_and_name(user_id, name)

    async def count_by_user(self, user_id: str) -> int:
        return await self.calendar_dao.count_by_user(user_id)
