"""
Calendar model.

WHAT: A named calendar owned by a user, with an IANA timezone identifier.

HOW: ``(user_id, name)`` is unique. Time slots reference the calendar by
foreign key; removing a calendar's slots and meetings is done explicitly by
CalendarService.delete_calendar.
"""

from sqlalchemy import String, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from meeting_scheduler.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Calendar(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    User-owned calendar.
    """

    __tablename__ = "calendars"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_calendars_user_id_name"),
        Index("ix_calendars_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Calendar(id={self.id}, user_id={self.user_id!r}, name={self.name!r})>"
