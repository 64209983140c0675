"""
Logging configuration.

WHAT: One stream handler on the root logger, with every record stamped with
the current request id.
"""

import logging
import sys
from typing import Optional

from meeting_scheduler.core.config import settings
from meeting_scheduler.middleware.request_context import get_request_context


LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Adds ``request_id`` to each record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_request_context()
        record.request_id = context.request_id if context else "-"
        return True


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Safe to call more than once; the handler is replaced, not duplicated.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL
    """
    level_name = (level or settings.LOG_LEVEL).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_meeting_scheduler", False):
            root.removeHandler(existing)
    handler._meeting_scheduler = True
    root.addHandler(handler)
    root.setLevel(level_name)

    # SQL echo is controlled by DEBUG on the engine, keep the logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
