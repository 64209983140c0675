"""
Time Slot Data Access Object (DAO).

WHAT: Database operations for TimeSlot.

HOW: Extends BaseDAO with:
- Overlap detection within a calendar (half-open intervals)
- Range queries (slot fully inside ``[start, end]``), optionally by status
- Busy slots across the calendars of several users
- Per-day slot counts
- Row lock and atomic AVAILABLE -> BUSY claim used by scheduling
"""

from datetime import datetime, date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.dao.base import BaseDAO
from meeting_scheduler.models.calendar import Calendar
from meeting_scheduler.models.time_slot import TimeSlot, SlotStatus


class TimeSlotDAO(BaseDAO[TimeSlot]):
    """
    Data Access Object for TimeSlot model.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize TimeSlotDAO.

        Args:
            session: Async database session
        """
        super().__init__(TimeSlot, session)

    async def get_for_update(self, slot_id: UUID) -> Optional[TimeSlot]:
        """
        Re-read a slot from the database under a row lock.

        ``populate_existing`` overwrites any stale copy already in the
        identity map so the status check sees the committed value. SQLite
        drops ``FOR UPDATE``; there the conditional update in ``claim`` is
        what serializes competing bookings.

        Args:
            slot_id: Slot ID

        Returns:
            TimeSlot or None
        """
        result = await self.session.execute(
            select(TimeSlot)
            .where(TimeSlot.id == slot_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_calendar(
        self,
        calendar_id: UUID,
        status: Optional[SlotStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[TimeSlot], int]:
        """
        Get one page of a calendar's slots ordered by start time.

        Args:
            calendar_id: Calendar ID
            status: Optional status filter
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (slots, total)
        """
        conditions = [TimeSlot.calendar_id == calendar_id]
        if status is not None:
            conditions.append(TimeSlot.status == SlotStatus(status).value)

        total = (
            await self.session.execute(select(func.count(TimeSlot.id)).where(*conditions))
        ).scalar_one()
        result = await self.session.execute(
            select(TimeSlot)
            .where(*conditions)
            .order_by(TimeSlot.start_time)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_in_range(
        self,
        calendar_id: UUID,
        start: datetime,
        end: datetime,
        status: Optional[SlotStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[TimeSlot], int]:
        """
        Get slots of a calendar lying fully inside ``[start, end]``.

        Args:
            calendar_id: Calendar ID
            start: Range start (inclusive)
            end: Range end (inclusive)
            status: Optional status filter
            skip: Pagination offset
            limit: Pagination limit (None returns everything)

        Returns:
            Tuple of (slots ordered by start time, total)
        """
        conditions = [
            TimeSlot.calendar_id == calendar_id,
            TimeSlot.start_time >= start,
            TimeSlot.end_time <= end,
        ]
        if status is not None:
            conditions.append(TimeSlot.status == SlotStatus(status).value)

        total = (
            await self.session.execute(select(func.count(TimeSlot.id)).where(*conditions))
        ).scalar_one()
        query = select(TimeSlot).where(*conditions).order_by(TimeSlot.start_time).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def get_available_in_range(
        self, calendar_id: UUID, start: datetime, end: datetime
    ) -> List[TimeSlot]:
        slots, _ = await self.get_in_range(calendar_id, start, end, status=SlotStatus.AVAILABLE)
        return slots

    async def has_overlap(
        self,
        calendar_id: UUID,
        start: datetime,
        end: datetime,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """
        Check whether any other slot of the calendar intersects ``[start, end)``.

        Args:
            calendar_id: Calendar ID
            start: Candidate start
            end: Candidate end
            exclude_id: Slot to ignore (the slot being updated)

        Returns:
            True if an overlapping slot exists
        """
        query = select(TimeSlot.id).where(
            TimeSlot.calendar_id == calendar_id,
            TimeSlot.start_time < end,
            TimeSlot.end_time > start,
        )
        if exclude_id is not None:
            query = query.where(TimeSlot.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def get_busy_by_users(
        self, user_ids: List[str], start: datetime, end: datetime
    ) -> List[TimeSlot]:
        """
        Get BUSY slots in calendars owned by any of the users.

        Args:
            user_ids: Calendar owner IDs
            start: Range start (inclusive)
            end: Range end (inclusive)

        Returns:
            Slots fully inside the range, ordered by start time
        """
        if not user_ids:
            return []
        result = await self.session.execute(
            select(TimeSlot)
            .join(Calendar, Calendar.id == TimeSlot.calendar_id)
            .where(
                Calendar.user_id.in_(user_ids),
                TimeSlot.status == SlotStatus.BUSY.value,
                TimeSlot.start_time >= start,
                TimeSlot.end_time <= end,
            )
            .order_by(TimeSlot.start_time)
        )
        return list(result.scalars().all())

    async def count_by_date(
        self, calendar_id: UUID, start: datetime, end: datetime
    ) -> List[Tuple[date, int]]:
        """
        Count a calendar's slots per start date.

        Args:
            calendar_id: Calendar ID
            start: Range start (inclusive)
            end: Range end (inclusive)

        Returns:
            List of (date, count) ordered by date
        """
        slot_date = func.date(TimeSlot.start_time)
        result = await self.session.execute(
            select(slot_date.label("slot_date"), func.count(TimeSlot.id))
            .where(
                TimeSlot.calendar_id == calendar_id,
                TimeSlot.start_time >= start,
                TimeSlot.end_time <= end,
            )
            .group_by(slot_date)
            .order_by(slot_date)
        )
        rows = []
        for day, count in result.all():
            # SQLite returns DATE() as text
            if isinstance(day, str):
                day = date.fromisoformat(day)
            elif isinstance(day, datetime):
                day = day.date()
            rows.append((day, count))
        return rows

    async def set_status(self, slot: TimeSlot, status: SlotStatus) -> TimeSlot:
        return await self.update(slot, status=SlotStatus(status).value)

    async def claim(self, slot_id: UUID) -> bool:
        """
        Atomically flip a slot from AVAILABLE to BUSY.

        Only one concurrent caller can match ``status = 'AVAILABLE'``; the
        others update zero rows.

        Args:
            slot_id: Slot ID

        Returns:
            True if this call performed the transition
        """
        result = await self.session.execute(
            update(TimeSlot)
            .where(
                TimeSlot.id == slot_id,
                TimeSlot.status == SlotStatus.AVAILABLE.value,
            )
            .values(status=SlotStatus.BUSY.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    async def delete_slot(self, slot: TimeSlot) -> None:
        await self.session.delete(slot)
        await self.session.flush()
