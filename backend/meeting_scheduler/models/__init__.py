"""
Database models package.

Importing every model here lets Alembic and ``Base.metadata.create_all``
see the full schema.
"""

from meeting_scheduler.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from meeting_scheduler.models.calendar import Calendar
from meeting_scheduler.models.time_slot import TimeSlot, SlotStatus
from meeting_scheduler.models.meeting import Meeting, MeetingParticipant

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Calendar",
    "TimeSlot",
    "SlotStatus",
    "Meeting",
    "MeetingParticipant",
]
