"""
Calendar Data Access Object (DAO).

WHAT: Lookups of calendars by owner and by owner + name, and the bulk
delete that removes a calendar with everything under it.
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.dao.base import BaseDAO
from meeting_scheduler.models.calendar import Calendar
from meeting_scheduler.models.meeting import Meeting, MeetingParticipant
from meeting_scheduler.models.time_slot import TimeSlot


class CalendarDAO(BaseDAO[Calendar]):
    """
    Data Access Object for Calendar model.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize CalendarDAO.

        Args:
            session: Async database session
        """
        super().__init__(Calendar, session)

    async def get_by_id_and_user(self, calendar_id: UUID, user_id: str) -> Optional[Calendar]:
        """
        Get a calendar only if it belongs to the given user.

        Args:
            calendar_id: Calendar ID
            user_id: Owner user ID

        Returns:
            Calendar or None
        """
        result = await self.session.execute(
            select(Calendar).where(
                Calendar.id == calendar_id,
                Calendar.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: str) -> List[Calendar]:
        """All calendars of a user, oldest first."""
        result = await self.session.execute(
            select(Calendar)
            .where(Calendar.user_id == user_id)
            .order_by(Calendar.created_at, Calendar.name)
        )
        return list(result.scalars().all())

    async def get_by_user_paged(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Calendar], int]:
        """
        Get one page of a user's calendars and the total count.

        Args:
            user_id: Owner user ID
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (calendars, total)
        """
        total = await self.count_by_user(user_id)
        result = await self.session.execute(
            select(Calendar)
            .where(Calendar.user_id == user_id)
            .order_by(Calendar.created_at, Calendar.name)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def exists_by_user_and_name(self, user_id: str, name: str) -> bool:
        return await self.exists(user_id=user_id, name=name)

    async def count_by_user(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Calendar.id)).where(Calendar.user_id == user_id)
        )
        return result.scalar_one()

    async def delete_cascade(self, calendar: Calendar) -> Tuple[List[UUID], List[UUID]]:
        """
        Delete a calendar together with its slots, meetings and participants.

        Children are removed with bulk DELETE statements, deepest first, so no
        foreign key is left dangling at any point.

        Args:
            calendar: Calendar to delete

        Returns:
            Tuple of (deleted slot ids, deleted meeting ids)
        """
        slot_ids = list(
            (
                await self.session.execute(
                    select(TimeSlot.id).where(TimeSlot.calendar_id == calendar.id)
                )
            ).scalars().all()
        )
        meeting_ids: List[UUID] = []
        if slot_ids:
            meeting_ids = list(
                (
                    await self.session.execute(
                        select(Meeting.id).where(Meeting.time_slot_id.in_(slot_ids))
                    )
                ).scalars().all()
            )
        if meeting_ids:
            await self.session.execute(
                delete(MeetingParticipant).where(MeetingParticipant.meeting_id.in_(meeting_ids))
            )
            await self.session.execute(delete(Meeting).where(Meeting.id.in_(meeting_ids)))
        if slot_ids:
            await self.session.execute(delete(TimeSlot).where(TimeSlot.id.in_(slot_ids)))

        await self.session.delete(calendar)
        await self.session.flush()
        return slot_ids, meeting_ids
