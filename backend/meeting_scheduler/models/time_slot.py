"""
Time slot model.

WHAT: A bookable interval in a calendar, AVAILABLE until a meeting claims it.

HOW: Start and end are naive UTC datetimes. Status is stored as the enum
value string. The "at most one meeting per slot" rule lives on the meeting
side as a unique foreign key.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, Index, CheckConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from meeting_scheduler.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class SlotStatus(str, Enum):
    """
    Booking status of a time slot.

    - AVAILABLE: Free to be claimed by a meeting
    - BUSY: Bound to a meeting (or manually blocked)
    """

    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"


class TimeSlot(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Interval in a calendar.
    """

    __tablename__ = "time_slots"

    calendar_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("calendars.id"), nullable=False
    )
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=SlotStatus.AVAILABLE.value, nullable=False
    )

    __table_args__ = (
        Index("ix_time_slots_calendar_start", "calendar_id", "start_time"),
        Index("ix_time_slots_status", "status"),
        CheckConstraint("start_time < end_time", name="ck_time_slots_valid_range"),
    )

    def __repr__(self) -> str:
        return (
            f"<TimeSlot(id={self.id}, "
            f"calendar_id={self.calendar_id}, "
            f"{self.start_time}-{self.end_time}, "
            f"status={self.status})>"
        )

    @property
    def is_available(self) -> bool:
        return self.status == SlotStatus.AVAILABLE.value

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open intersection: touching endpoints do not overlap."""
        return self.start_time < end and self.end_time > start
