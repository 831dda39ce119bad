"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.dependencies.auth import get_auth_provider
from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_broadcaster, get_project_service
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler
from infrastructure.cache.redis_client import close_redis
from infrastructure.database.session import engine
from infrastructure.realtime.broadcaster import SocketIOBroadcaster
from infrastructure.realtime.server import (
    create_socketio_app,
    get_sio,
    register_project_namespace,
)

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    logger.info(
        "app_started",
        environment=settings.app_env,
        realtime=settings.realtime_enabled,
    )
    yield

    broadcaster = get_broadcaster()
    if isinstance(broadcaster, SocketIOBroadcaster):
        await broadcaster.drain()
    await close_redis()
    await engine.dispose()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Collaborative Task Management API\n\n"
            "Projects with role-based membership, Kanban-style tasks, threaded "
            "comments and a per-project activity log. Changes are pushed to "
            "connected clients over Socket.IO (`/socket.io`).\n\n"
            "### Authentication\n"
            "Register or log in under `/api/v1/auth` to obtain an access/refresh "
            "token pair. All other endpoints (except `/health`) require the "
            "access token in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "### Rate Limits\n"
            "- Auth endpoints: 5 requests/minute\n"
            "- GET endpoints: 30 requests/minute\n"
            "- POST/PATCH/DELETE: 10 requests/minute"
        ),
        version="1.0.0",
        debug=settings.debug,
        license_info={
            "name": "MIT",
        },
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "auth", "description": "Registration, login and token rotation"},
            {"name": "users", "description": "Profiles and user administration"},
            {"name": "projects", "description": "Projects and project membership"},
            {"name": "tasks", "description": "Task board operations"},
            {"name": "comments", "description": "Threaded task comments and reactions"},
            {"name": "activity", "description": "Project activity log"},
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


async def _is_project_member(project_id: UUID, user_id: UUID) -> bool:
    return await get_project_service().is_member(project_id, user_id)


app = create_app()

register_project_namespace(get_sio(), get_auth_provider, _is_project_member)
asgi_app = create_socketio_app(get_sio(), app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:asgi_app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
