"""Database package"""

from meeting_scheduler.db.session import AsyncSessionLocal, engine, get_db
from meeting_scheduler.models.base import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db"]
