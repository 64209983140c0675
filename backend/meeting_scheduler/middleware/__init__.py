"""
Middleware package.

Cross-cutting request concerns that apply to every route.
"""

from meeting_scheduler.middleware.request_context import (
    RequestContextMiddleware,
    RequestContext,
    get_request_context,
    get_request_id,
    REQUEST_ID_HEADER,
)

__all__ = [
    "RequestContextMiddleware",
    "RequestContext",
    "get_request_context",
    "get_request_id",
    "REQUEST_ID_HEADER",
]
