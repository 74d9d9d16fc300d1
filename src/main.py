"""Main FastAPI application entry point."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_meeting_service
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


async def meeting_sweep_loop(interval_seconds: int) -> None:
    """Periodically persist clock-driven meeting transitions for all groups."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            updated = await get_meeting_service().sweep_meeting_statuses()
            if updated:
                logger.info("meeting_sweep_completed", groups_updated=updated)
        except Exception:
            logger.exception("meeting_sweep_failed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    sweep_task = None
    if settings.meeting_sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(
            meeting_sweep_loop(settings.meeting_sweep_interval_seconds)
        )
    logger.info("application_started", environment=settings.app_env)
    yield
    if sweep_task is not None:
        sweep_task.cancel()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Study Groups\n\n"
            "Members organise study groups, schedule and run meetings, "
            "track attendance and chat.\n\n"
            "### Consistency\n"
            "Each study group is updated as a whole. Concurrent writers are "
            "retried automatically; a `409 CONCURRENCY_CONFLICT` means the "
            "request can be sent again.\n\n"
            "### Authentication\n"
            "All endpoints (except `/health`) require a valid JWT token "
            "in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```"
        ),
        version="1.0.0",
        debug=settings.debug,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "study-groups", "description": "Study groups and membership"},
            {"name": "meetings", "description": "Meeting lifecycle and attendance"},
            {"name": "chat", "description": "Group chat log"},
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # LIFO order: last added runs outermost
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
