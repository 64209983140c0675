"""
Business logic services package.

Three-layer architecture: API -> Service -> DAO.
"""

from meeting_scheduler.services.calendar_service import CalendarService
from meeting_scheduler.services.time_slot_service import TimeSlotService
from meeting_scheduler.services.meeting_service import MeetingService

__all__ = ["CalendarService", "TimeSlotService", "MeetingService"]
