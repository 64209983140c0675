"""
Data Access Object (DAO) package.

DAOs hold every query; services hold the rules.
"""

from meeting_scheduler.dao.base import BaseDAO
from meeting_scheduler.dao.calendar import CalendarDAO
from meeting_scheduler.dao.time_slot import TimeSlotDAO
from meeting_scheduler.dao.meeting import MeetingDAO

__all__ = ["BaseDAO", "CalendarDAO", "TimeSlotDAO", "MeetingDAO"]
