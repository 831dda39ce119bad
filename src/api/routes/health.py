"""Health check endpoints."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.config import settings
from infrastructure.cache.redis_client import get_redis
from infrastructure.database.session import ping_database

logger = structlog.get_logger()

router = APIRouter(tags=["health"])

HealthCheck = Callable[[], Awaitable[Any]]

CHECK_TIMEOUT_SECONDS = 3.0


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    checks: dict[str, str] | None = None


async def _ping_redis() -> None:
    await get_redis().ping()


def get_health_checks() -> dict[str, HealthCheck]:
    """Dependency checks run by the detailed health check."""
    return {"database": ping_database, "redis": _ping_redis}


async def _run_check(name: str, check: HealthCheck) -> str:
    try:
        await asyncio.wait_for(check(), timeout=CHECK_TIMEOUT_SECONDS)
    except Exception as e:
        logger.warning("health_check_failed", check=name, error=str(e))
        return f"unhealthy: {e}"
    return "healthy"


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """
    Basic health check for load balancers.

    Returns service status without checking dependencies. Fast and lightweight.
    """
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    checks: dict[str, HealthCheck] = Depends(get_health_checks),
) -> HealthResponse:
    """
    Detailed health check including database and Redis connectivity.

    Reports `degraded` when any dependency fails.
    """
    names = list(checks)
    results = await asyncio.gather(*(_run_check(n, checks[n]) for n in names))
    statuses = dict(zip(names, results))
    overall = "healthy" if all(s == "healthy" for s in results) else "degraded"

    return HealthResponse(
        status=overall,
        version="1.0.0",
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
        checks=statuses,
    )
