"""
Meeting models.

WHAT: A meeting bound to exactly one time slot, plus its participant rows.

HOW:
- ``time_slot_id`` is unique and NOT NULL, so the database rejects a second
  meeting on the same slot even if two requests race past the service checks.
- Participants are rows in ``meeting_participants`` keyed by
  ``(meeting_id, participant_id)``; the ``participants`` property exposes
  them as an ordered list of ids.
- The slot is loaded eagerly so ``start_time``/``end_time`` are available
  without a lazy load in async code.
"""

import uuid
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from meeting_scheduler.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from meeting_scheduler.models.time_slot import TimeSlot


class Meeting(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Scheduled meeting.
    """

    __tablename__ = "meetings"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    time_slot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("time_slots.id"), nullable=False
    )

    # Relationships
    time_slot: Mapped["TimeSlot"] = relationship("TimeSlot", lazy="joined")
    participant_rows: Mapped[List["MeetingParticipant"]] = relationship(
        "MeetingParticipant",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="MeetingParticipant.id",
    )

    __table_args__ = (
        UniqueConstraint("time_slot_id", name="uq_meetings_time_slot_id"),
        Index("ix_meetings_title", "title"),
    )

    def __repr__(self) -> str:
        return f"<Meeting(id={self.id}, title={self.title!r}, time_slot_id={self.time_slot_id})>"

    @property
    def participants(self) -> List[str]:
        return [row.participant_id for row in self.participant_rows]

    @property
    def start_time(self) -> datetime:
        return self.time_slot.start_time

    @property
    def end_time(self) -> datetime:
        return self.time_slot.end_time

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self.participants

    def add_participant(self, participant_id: str) -> bool:
        """
        Add a participant id if not already present.

        Returns:
            True if the participant was added, False if already present
        """
        if self.has_participant(participant_id):
            return False
        self.participant_rows.append(MeetingParticipant(participant_id=participant_id))
        return True

    def remove_participant(self, participant_id: str) -> bool:
        """
        Remove a participant id if present.

        Returns:
            True if the participant was removed, False if absent
        """
        for row in self.participant_rows:
            if row.participant_id == participant_id:
                self.participant_rows.remove(row)
                return True
        return False

    def set_participants(self, participant_ids: List[str]) -> None:
        """Replace the participant set, keeping first-seen order."""
        wanted = list(dict.fromkeys(participant_ids))
        for row in list(self.participant_rows):
            if row.participant_id not in wanted:
                self.participant_rows.remove(row)
        for participant_id in wanted:
            self.add_participant(participant_id)


class MeetingParticipant(Base):
    """
    Participant of a meeting.
    """

    __tablename__ = "meeting_participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meeting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False
    )
    participant_id: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("meeting_id", "participant_id", name="uq_meeting_participants"),
        Index("ix_meeting_participants_participant_id", "participant_id"),
    )

    def __repr__(self) -> str:
        return f"<MeetingParticipant(meeting_id={self.meeting_id}, participant_id={self.participant_id!r})>"
