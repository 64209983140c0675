"""
Meeting Service.

WHAT: Business logic for meetings: scheduling on a slot, cancellation,
participant management and the meeting queries.

HOW: Scheduling and cancellation change the meeting row and the slot status
in the same database transaction:
- schedule: lock and re-read the slot, reject if it is not AVAILABLE or
  already bound, claim it with a conditional update, then insert the
  meeting (the unique ``time_slot_id`` catches anything that slipped past)
- cancel: delete the meeting, then mark the slot AVAILABLE
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.core.cache import get_cache, evict, meeting_key
from meeting_scheduler.core.exceptions import (
    MeetingNotFoundError,
    SlotNotAvailableError,
    TimeSlotNotFoundError,
)
from meeting_scheduler.dao.meeting import MeetingDAO
from meeting_scheduler.dao.time_slot import TimeSlotDAO
from meeting_scheduler.models.meeting import Meeting
from meeting_scheduler.models.time_slot import SlotStatus
from meeting_scheduler.schemas.meeting import MeetingResponse
from meeting_scheduler.services.time_slot_service import TimeSlotService


logger = logging.getLogger(__name__)


class MeetingService:
    """
    Service for meeting operations.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize MeetingService.

        Args:
            session: Async database session
        """
        self.session = session
        self.meeting_dao = MeetingDAO(session)
        self.slot_dao = TimeSlotDAO(session)
        self.time_slot_service = TimeSlotService(session)
        self.cache = get_cache()

    async def schedule_meeting(
        self,
        title: str,
        time_slot_id: UUID,
        description: Optional[str] = None,
        participants: Optional[List[str]] = None,
    ) -> Meeting:
        """
        Book a meeting on an AVAILABLE slot and mark the slot BUSY.

        Args:
            title: Meeting title
            time_slot_id: Slot to book
            description: Optional description
            participants: Participant ids

        Returns:
            Created Meeting

        Raises:
            TimeSlotNotFoundError: If the slot doesn't exist
            SlotNotAvailableError: If the slot is BUSY, already has a meeting,
                or another request claimed it first
        """
        slot = await self.slot_dao.get_for_update(time_slot_id)
        if not slot:
            raise TimeSlotNotFoundError(time_slot_id=time_slot_id)

        if slot.status != SlotStatus.AVAILABLE.value:
            raise SlotNotAvailableError(time_slot_id=time_slot_id)

        if await self.meeting_dao.exists_for_slot(slot.id):
            raise SlotNotAvailableError(
                message="Time slot already has a scheduled meeting",
                time_slot_id=time_slot_id,
            )

        # Sole guard on engines without row locks: matches only while AVAILABLE
        if not await self.time_slot_service.claim_slot(slot):
            raise SlotNotAvailableError(time_slot_id=time_slot_id)

        try:
            meeting = await self.meeting_dao.create_meeting(
                title=title,
                time_slot=slot,
                description=description,
                participants=participants,
            )
        except IntegrityError as e:
            raise SlotNotAvailableError(
                message="Time slot already has a scheduled meeting",
                time_slot_id=time_slot_id,
            ) from e

        logger.info(f"Scheduled meeting {meeting.id} '{title}' on slot {slot.id}")
        return meeting

    async def get_meeting(self, meeting_id: UUID) -> Meeting:
        """
        Get a meeting by ID.

        Raises:
            MeetingNotFoundError: If the meeting doesn't exist
        """
        meeting = await self.meeting_dao.get_by_id(meeting_id)
        if not meeting:
            raise MeetingNotFoundError(meeting_id=meeting_id)
        return meeting

    async def get_meeting_view(self, meeting_id: UUID) -> MeetingResponse:
        """
        Cached read of a single meeting.

        Raises:
            MeetingNotFoundError: If the meeting doesn't exist
        """
        key = meeting_key(meeting_id)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return MeetingResponse.model_validate(cached)

        view = MeetingResponse.model_validate(await self.get_meeting(meeting_id))
        await self.cache.set(key, view.model_dump(mode="json"))
        return view

    async def list_meetings_by_participant(
        self, participant_id: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Meeting], int]:
        return await self.meeting_dao.get_by_participant(participant_id, skip=skip, limit=limit)

    async def list_meetings_in_range(self, start: datetime, end: datetime) -> List[Meeting]:
        """Meetings whose slot lies fully inside ``[start, end]``, by slot start."""
        return await self.meeting_dao.get_in_range(start, end)

    async def list_meetings_by_participant_in_range(
        self, participant_id: str, start: datetime, end: datetime
    ) -> List[Meeting]:
        return await self.meeting_dao.get_in_range(start, end, participant_id=participant_id)

    async def list_meetings_by_calendar_owner(
        self, user_id: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Meeting], int]:
        """
        Page through meetings held in any calendar owned by ``user_id``.

        Returns:
            Tuple of (meetings ordered by slot start, total)
        """
        return await self.meeting_dao.get_by_calendar_owner(user_id, skip=skip, limit=limit)

    async def update_meeting(
        self,
        meeting_id: UUID,
        title: str,
        description: Optional[str] = None,
        participants: Optional[List[str]] = None,
    ) -> Meeting:
        """
        Overwrite title, description and participants. The slot is unchanged.

        Raises:
            MeetingNotFoundError: If the meeting doesn't exist
        """
        meeting = await self.get_meeting(meeting_id)

        meeting.set_participants(participants or [])
        meeting = await self.meeting_dao.update(
            meeting,
            title=title,
            description=description,
            updated_at=datetime.utcnow(),
        )
        await evict(self.cache, self.session, meeting_key(meeting.id))

        logger.info(f"Updated meeting {meeting.id}")
        return meeting

    async def cancel_meeting(self, meeting_id: UUID) -> None:
        """
        Delete a meeting and free its slot.

        Raises:
            MeetingNotFoundError: If the meeting doesn't exist
        """
        meeting = await self.get_meeting(meeting_id)
        slot_id = meeting.time_slot_id

        await self.meeting_dao.delete_meeting(meeting)
        await self.time_slot_service.mark_slot_available(slot_id)
        await evict(self.cache, self.session, meeting_key(meeting_id))

        logger.info(f"Cancelled meeting {meeting_id}, slot {slot_id} freed")

    async def add_participant(self, meeting_id: UUID, participant_id: str) -> Meeting:
        """
        Add a participant (no-op if already present).

        Raises:
            MeetingNotFoundError: If the meeting doesn't exist
        """
        meeting = await self.get_meeting(meeting_id)
        if meeting.add_participant(participant_id):
            meeting = await self.meeting_dao.update(meeting, updated_at=datetime.utcnow())
            await evict(self.cache, self.session, meeting_key(meeting.id))
            logger.info(f"Added participant {participant_id} to meeting {meeting.id}")
        return meeting

    async def remove_participant(self, meeting_id: UUID, participant_id: str) -> Meeting:
        """
        Remove a participant (no-op if absent).

        Raises:
            MeetingNotFoundError: If the meeting doesn't exist
        """
        meeting = await self.get_meeting(meeting_id)
        if meeting.remove_participant(participant_id):
            meeting = await self.meeting_dao.update(meeting, updated_at=datetime.utcnow())
            await evict(self.cache, self.session, meeting_key(meeting.id))
            logger.info(f"Removed participant {participant_id} from meeting {meeting.id}")
        return meeting

    async def count_by_participant(self, participant_id: str) -> int:
        return await self.meeting_dao.count_by_participant(participant_id)

    async def find_meetings_by_title(self, fragment: str) -> List[Meeting]:
        """Case-sensitive substring match on title, ordered by slot start."""
        return await self.meeting_dao.find_by_title(fragment)
