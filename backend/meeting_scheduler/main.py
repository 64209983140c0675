"""
Main FastAPI application.

Configures logging, middleware, exception handlers and routers.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from meeting_scheduler.core.config import settings
from meeting_scheduler.core.exceptions import AppException
from meeting_scheduler.core.exception_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)
from meeting_scheduler.core.logging_config import configure_logging
from meeting_scheduler.middleware import RequestContextMiddleware
from meeting_scheduler.api import calendars, time_slots, meetings


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Calendars, bookable time slots and meetings",
        version=settings.VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(RequestContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """Liveness probe; does not touch the database or cache."""
        return {
            "status": "healthy",
            "version": settings.VERSION,
        }

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/api/docs",
        }

    # Register API routers
    app.include_router(calendars.router, prefix=settings.API_V1_PREFIX)
    app.include_router(time_slots.router, prefix=settings.API_V1_PREFIX)
    app.include_router(time_slots.busy_router, prefix=settings.API_V1_PREFIX)
    app.include_router(meetings.router, prefix=settings.API_V1_PREFIX)

    logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} ready")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("meeting_scheduler.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
