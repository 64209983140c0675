"""
Time Slot Service.

WHAT: Business logic for time slots.

HOW: Orchestrates TimeSlotDAO and enforces the slot rules:
1. start is strictly before end
2. start is not in the past
3. duration is between MIN_SLOT_MINUTES and MAX_SLOT_MINUTES inclusive
4. no two slots of one calendar overlap (half-open intervals)
5. a slot with a meeting cannot be deleted or set back to AVAILABLE

Status transitions (AVAILABLE <-> BUSY) are exposed both as idempotent
fetch-then-save operations and as the atomic ``claim_slot`` used by
MeetingService when scheduling.
"""

import logging
from datetime import datetime, date, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.core.cache import (
    get_cache,
    evict,
    time_slot_key,
    available_slots_key,
    available_slots_prefix,
    meeting_key,
)
from meeting_scheduler.core.config import settings
from meeting_scheduler.core.exceptions import (
    InvalidArgumentError,
    InvalidStateError,
    TimeConflictError,
    TimeSlotNotFoundError,
)
from meeting_scheduler.dao.meeting import MeetingDAO
from meeting_scheduler.dao.time_slot import TimeSlotDAO
from meeting_scheduler.models.time_slot import TimeSlot, SlotStatus
from meeting_scheduler.schemas.time_slot import TimeSlotResponse
from meeting_scheduler.services.calendar_service import CalendarService


logger = logging.getLogger(__name__)

BOOKED_SLOT_RELEASE_MESSAGE = "Cannot mark time slot with scheduled meeting as available"


class TimeSlotService:
    """
    Service for time slot operations.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize TimeSlotService.

        Args:
            session: Async database session
        """
        self.session = session
        self.slot_dao = TimeSlotDAO(session)
        self.meeting_dao = MeetingDAO(session)
        self.calendar_service = CalendarService(session)
        self.cache = get_cache()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_time_slot(self, start_time: datetime, end_time: datetime) -> None:
        """
        Check ordering, start-in-the-future and duration bounds.

        Args:
            start_time: Slot start (naive UTC)
            end_time: Slot end (naive UTC)

        Raises:
            InvalidArgumentError: If any rule is broken
        """
        if start_time >= end_time:
            raise InvalidArgumentError(
                message="Start time must be before end time",
                start_time=start_time,
                end_time=end_time,
            )

        if start_time < datetime.utcnow():
            raise InvalidArgumentError(
                message="Cannot create time slot in the past",
                start_time=start_time,
            )

        duration = end_time - start_time
        if duration < timedelta(minutes=settings.MIN_SLOT_MINUTES) or duration > timedelta(
            minutes=settings.MAX_SLOT_MINUTES
        ):
            raise InvalidArgumentError(
                message="Time slot duration must be between 15 minutes and 8 hours",
                duration_minutes=duration.total_seconds() / 60,
            )

    async def _ensure_no_meeting(self, slot: TimeSlot, message: str) -> None:
        if await self.meeting_dao.exists_for_slot(slot.id):
            raise InvalidStateError(message=message, time_slot_id=slot.id)

    async def _invalidate(self, slot: TimeSlot) -> None:
        keys = [time_slot_key(slot.id)]
        meeting_id = await self.meeting_dao.get_id_for_slot(slot.id)
        if meeting_id is not None:
            keys.append(meeting_key(meeting_id))
        await evict(
            self.cache, self.session, *keys, prefixes=[available_slots_prefix(slot.calendar_id)]
        )

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_time_slot(
        self, calendar_id: UUID, start_time: datetime, end_time: datetime
    ) -> TimeSlot:
        """
        Create an AVAILABLE slot in a calendar.

        Args:
            calendar_id: Calendar ID
            start_time: Slot start (naive UTC)
            end_time: Slot end (naive UTC)

        Returns:
            Created TimeSlot

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
            InvalidArgumentError: If the interval is invalid
            TimeConflictError: If the interval overlaps another slot of the calendar
        """
        await self.calendar_service.get_calendar(calendar_id)
        self.validate_time_slot(start_time, end_time)

        if await self.slot_dao.has_overlap(calendar_id, start_time, end_time):
            raise TimeConflictError(
                message="Time slot overlaps with existing slot",
                calendar_id=calendar_id,
                start_time=start_time,
                end_time=end_time,
            )

        slot = await self.slot_dao.create(
            calendar_id=calendar_id,
            start_time=start_time,
            end_time=end_time,
            status=SlotStatus.AVAILABLE.value,
        )
        await evict(self.cache, self.session, prefixes=[available_slots_prefix(calendar_id)])

        logger.info(f"Created time slot {slot.id} in calendar {calendar_id}: {start_time} - {end_time}")
        return slot

    async def get_time_slot(self, slot_id: UUID) -> TimeSlot:
        """
        Get a slot by ID.

        Raises:
            TimeSlotNotFoundError: If the slot doesn't exist
        """
        slot = await self.slot_dao.get_by_id(slot_id)
        if not slot:
            raise TimeSlotNotFoundError(time_slot_id=slot_id)
        return slot

    async def get_time_slot_in_calendar(self, calendar_id: UUID, slot_id: UUID) -> TimeSlot:
        """
        Get a slot and check that it belongs to ``calendar_id``.

        Raises:
            TimeSlotNotFoundError: If absent or in another calendar
        """
        slot = await self.get_time_slot(slot_id)
        if slot.calendar_id != calendar_id:
            raise TimeSlotNotFoundError(time_slot_id=slot_id, calendar_id=calendar_id)
        return slot

    async def get_time_slot_view(self, slot_id: UUID) -> TimeSlotResponse:
        """
        Cached read of a single slot.

        Raises:
            TimeSlotNotFoundError: If the slot doesn't exist
        """
        key = time_slot_key(slot_id)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return TimeSlotResponse.model_validate(cached)

        view = TimeSlotResponse.model_validate(await self.get_time_slot(slot_id))
        await self.cache.set(key, view.model_dump(mode="json"))
        return view

    async def list_time_slots_by_calendar(
        self,
        calendar_id: UUID,
        status: Optional[SlotStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[TimeSlot], int]:
        """
        Page through a calendar's slots, ordered by start time.

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
        """
        await self.calendar_service.get_calendar(calendar_id)
        return await self.slot_dao.get_by_calendar(calendar_id, status=status, skip=skip, limit=limit)

    async def list_time_slots_in_range(
        self,
        calendar_id: UUID,
        start: datetime,
        end: datetime,
        status: Optional[SlotStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[TimeSlot], int]:
        """
        Page through a calendar's slots lying fully inside ``[start, end]``.

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
        """
        await self.calendar_service.get_calendar(calendar_id)
        return await self.slot_dao.get_in_range(
            calendar_id, start, end, status=status, skip=skip, limit=limit
        )

    async def get_available_slots(
        self, calendar_id: UUID, start: datetime, end: datetime
    ) -> List[TimeSlotResponse]:
        """
        AVAILABLE slots fully inside ``[start, end]``, ordered by start.

        Cached per (calendar, start, end); any slot write in the calendar
        drops every cached range of that calendar.

        Raises:
            CalendarNotFoundError: If the calendar doesn't exist
        """
        key = available_slots_key(calendar_id, start, end)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return [TimeSlotResponse.model_validate(item) for item in cached]

        await self.calendar_service.get_calendar(calendar_id)
        slots = await self.slot_dao.get_available_in_range(calendar_id, start, end)
        views = [TimeSlotResponse.model_validate(s) for s in slots]
        await self.cache.set(key, [v.model_dump(mode="json") for v in views])
        return views

    async def update_time_slot(
        self,
        slot_id: UUID,
        start_time: datetime,
        end_time: datetime,
        status: Optional[SlotStatus] = None,
    ) -> TimeSlot:
        """
        Overwrite a slot's interval and, when given, its status.

        Args:
            slot_id: Slot ID
            start_time: New start
            end_time: New end
            status: New status (current status kept when None)

        Returns:
            Updated TimeSlot

        Raises:
            TimeSlotNotFoundError: If the slot doesn't exist
            InvalidArgumentError: If the interval is invalid
            TimeConflictError: If the new interval overlaps another slot
            InvalidStateError: If AVAILABLE is requested while a meeting is bound
        """
        slot = await self.get_time_slot(slot_id)
        self.validate_time_slot(start_time, end_time)
        new_status = SlotStatus(status).value if status is not None else slot.status

        if await self.slot_dao.has_overlap(slot.calendar_id, start_time, end_time, exclude_id=slot.id):
            raise TimeConflictError(
                message="Updated time slot would overlap with existing slot",
                time_slot_id=slot.id,
                start_time=start_time,
                end_time=end_time,
            )

        if new_status == SlotStatus.AVAILABLE.value:
            await self._ensure_no_meeting(slot, BOOKED_SLOT_RELEASE_MESSAGE)

        slot = await self.slot_dao.update(
            slot,
            start_time=start_time,
            end_time=end_time,
            status=new_status,
        )
        await self._invalidate(slot)

        logger.info(f"Updated time slot {slot.id}: {start_time} - {end_time} ({slot.status})")
        return slot

    async def delete_time_slot(self, slot_id: UUID) -> None:
        """
        Delete a slot that carries no meeting.

        Raises:
            TimeSlotNotFoundError: If the slot doesn't exist
            InvalidStateError: If a meeting is scheduled on the slot
        """
        slot = await self.get_time_slot(slot_id)
        await self._ensure_no_meeting(slot, "Cannot delete time slot with scheduled meeting")

        calendar_id = slot.calendar_id
        await self.slot_dao.delete_slot(slot)
        await evict(
            self.cache,
            self.session,
            time_slot_key(slot_id),
            prefixes=[available_slots_prefix(calendar_id)],
        )

        logger.info(f"Deleted time slot {slot_id} from calendar {calendar_id}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def has_overlapping_slots(
        self,
        calendar_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        return await self.slot_dao.has_overlap(calendar_id, start_time, end_time, exclude_id)

    async def get_busy_slots_by_users(
        self, user_ids: List[str], start: datetime, end: datetime
    ) -> List[TimeSlot]:
        """
        BUSY slots across every calendar owned by any of ``user_ids``.

        Returns:
            Slots fully inside ``[start, end]``, ordered by start
        """
        return await self.slot_dao.get_busy_by_users(user_ids, start, end)

    async def get_slot_count_by_date(
        self, calendar_id: UUID, start: datetime, end: datetime
    ) -> List[Tuple[date, int]]:
        return await self.slot_dao.count_by_date(calendar_id, start, end)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def _set_status(self, slot_id: UUID, status: SlotStatus) -> TimeSlot:
        slot = await self.get_time_slot(slot_id)
        if slot.status == status.value:
            return slot
        if status == SlotStatus.AVAILABLE:
            await self._ensure_no_meeting(slot, BOOKED_SLOT_RELEASE_MESSAGE)
        slot = await self.slot_dao.set_status(slot, status)
        await self._invalidate(slot)
        logger.info(f"Time slot {slot.id} marked {status.value}")
        return slot

    async def mark_slot_busy(self, slot_id: UUID) -> TimeSlot:
        """
        Set a slot to BUSY (no-op if already BUSY).

        Raises:
            TimeSlotNotFoundError: If the slot doesn't exist
        """
        return await self._set_status(slot_id, SlotStatus.BUSY)

    async def mark_slot_available(self, slot_id: UUID) -> TimeSlot:
        """
        Set a slot to AVAILABLE (no-op if already AVAILABLE).

        Raises:
            TimeSlotNotFoundError: If the slot doesn't exist
            InvalidStateError: If a meeting is still bound to the slot
        """
        return await self._set_status(slot_id, SlotStatus.AVAILABLE)

    async def claim_slot(self, slot: TimeSlot) -> bool:
        """
        Atomically move a slot from AVAILABLE to BUSY.

        Args:
            slot: Slot to claim

        Returns:
            True if this caller won the slot, False if it was no longer AVAILABLE
        """
        claimed = await self.slot_dao.claim(slot.id)
        if claimed:
            await evict(
                self.cache,
                self.session,
                time_slot_key(slot.id),
                prefixes=[available_slots_prefix(slot.calendar_id)],
            )
            logger.info(f"Time slot {slot.id} claimed")
        return claimed
