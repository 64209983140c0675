"""
FastAPI dependencies shared by the routers.

WHAT: The database session dependency plus pagination and whole-day date
range helpers.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Tuple

from fastapi import Query

from meeting_scheduler.core.config import settings
from meeting_scheduler.core.exceptions import InvalidArgumentError
from meeting_scheduler.db.session import get_db

__all__ = ["get_db", "Pagination", "get_pagination", "day_range"]


@dataclass
class Pagination:
    skip: int
    limit: int


def get_pagination(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Maximum items to return",
    ),
) -> Pagination:
    """
    Pagination query parameters.

    Usage:
        @router.get("")
        async def list_items(page: Pagination = Depends(get_pagination)):
            ...
    """
    return Pagination(skip=skip, limit=limit)


def day_range(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    """
    Expand a date pair to ``[start_date 00:00, end_date 23:59:59.999999]``.

    Raises:
        InvalidArgumentError: If end_date is before start_date
    """
    if end_date < start_date:
        raise InvalidArgumentError(
            message="end_date must not be before start_date",
            start_date=start_date,
            end_date=end_date,
        )
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)
