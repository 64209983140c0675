"""
Meeting Data Access Object (DAO).

WHAT: Database operations for Meeting and its participant rows.

HOW: Every meeting query joins its time slot, because range filters and
ordering use the slot's start/end times.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.dao.base import BaseDAO
from meeting_scheduler.models.calendar import Calendar
from meeting_scheduler.models.meeting import Meeting, MeetingParticipant
from meeting_scheduler.models.time_slot import TimeSlot


class MeetingDAO(BaseDAO[Meeting]):
    """
    Data Access Object for Meeting model.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize MeetingDAO.

        Args:
            session: Async database session
        """
        super().__init__(Meeting, session)

    async def create_meeting(
        self,
        title: str,
        time_slot: TimeSlot,
        description: Optional[str] = None,
        participants: Optional[List[str]] = None,
    ) -> Meeting:
        """
        Insert a meeting bound to ``time_slot``.

        Args:
            title: Meeting title
            time_slot: Slot the meeting occupies
            description: Optional description
            participants: Participant ids (duplicates dropped, order kept)

        Returns:
            Created Meeting

        Raises:
            IntegrityError: If the slot already carries a meeting
        """
        # Passing the collection marks it loaded even when empty
        meeting = Meeting(
            title=title,
            description=description,
            time_slot_id=time_slot.id,
            time_slot=time_slot,
            participant_rows=[
                MeetingParticipant(participant_id=participant_id)
                for participant_id in dict.fromkeys(participants or [])
            ],
        )
        self.session.add(meeting)
        await self.session.flush()
        return meeting

    async def exists_for_slot(self, slot_id: UUID) -> bool:
        return await self.exists(time_slot_id=slot_id)

    async def get_id_for_slot(self, slot_id: UUID) -> Optional[UUID]:
        result = await self.session.execute(
            select(Meeting.id).where(Meeting.time_slot_id == slot_id)
        )
        return result.scalar_one_or_none()

    def _by_participant(self, participant_id: str):
        return Meeting.id.in_(
            select(MeetingParticipant.meeting_id).where(
                MeetingParticipant.participant_id == participant_id
            )
        )

    async def get_by_participant(
        self, participant_id: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Meeting], int]:
        """
        Get one page of the meetings a participant belongs to.

        Args:
            participant_id: Participant ID
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (meetings ordered by slot start, total)
        """
        total = await self.count_by_participant(participant_id)
        result = await self.session.execute(
            select(Meeting)
            .join(TimeSlot, TimeSlot.id == Meeting.time_slot_id)
            .where(self._by_participant(participant_id))
            .order_by(TimeSlot.start_time)
            .offset(skip)
            .limit(limit)
        )
        return list(result.unique().scalars().all()), total

    async def count_by_participant(self, participant_id: str) -> int:
        result = await self.session.execute(
            select(func.count(MeetingParticipant.id)).where(
                MeetingParticipant.participant_id == participant_id
            )
        )
        return result.scalar_one()

    async def get_in_range(
        self,
        start: datetime,
        end: datetime,
        participant_id: Optional[str] = None,
    ) -> List[Meeting]:
        """
        Get meetings whose slot lies fully inside ``[start, end]``.

        Args:
            start: Range start (inclusive)
            end: Range end (inclusive)
            participant_id: Restrict to meetings with this participant

        Returns:
            Meetings ordered by slot start
        """
        query = (
            select(Meeting)
            .join(TimeSlot, TimeSlot.id == Meeting.time_slot_id)
            .where(TimeSlot.start_time >= start, TimeSlot.end_time <= end)
        )
        if participant_id is not None:
            query = query.where(self._by_participant(participant_id))
        result = await self.session.execute(query.order_by(TimeSlot.start_time))
        return list(result.unique().scalars().all())

    async def get_by_calendar_owner(
        self, user_id: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Meeting], int]:
        """
        Get one page of meetings held in any calendar owned by ``user_id``.

        Returns:
            Tuple of (meetings ordered by slot start, total)
        """
        conditions = [Calendar.user_id == user_id]
        total = (
            await self.session.execute(
                select(func.count(Meeting.id))
                .join(TimeSlot, TimeSlot.id == Meeting.time_slot_id)
                .join(Calendar, Calendar.id == TimeSlot.calendar_id)
                .where(*conditions)
            )
        ).scalar_one()
        result = await self.session.execute(
            select(Meeting)
            .join(TimeSlot, TimeSlot.id == Meeting.time_slot_id)
            .join(Calendar, Calendar.id == TimeSlot.calendar_id)
            .where(*conditions)
            .order_by(TimeSlot.start_time)
            .offset(skip)
            .limit(limit)
        )
        return list(result.unique().scalars().all()), total

    async def find_by_title(self, fragment: str) -> List[Meeting]:
        """
        Case-sensitive substring search on the title.

        Returns:
            Meetings ordered by slot start
        """
        result = await self.session.execute(
            select(Meeting)
            .join(TimeSlot, TimeSlot.id == Meeting.time_slot_id)
            .where(Meeting.title.contains(fragment, autoescape=True))
            .order_by(TimeSlot.start_time)
        )
        # SQLite's LIKE ignores ASCII case
        return [m for m in result.unique().scalars().all() if fragment in m.title]

    async def delete_meeting(self, meeting: Meeting) -> None:
        await self.session.delete(meeting)
        await self.session.flush()
