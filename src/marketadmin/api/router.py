"""Top-level routes: probes for the orchestrator and the versioned API."""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from marketadmin.api.dependencies import DBSession
from marketadmin.config import settings
from marketadmin.core.cache import redis_client
from marketadmin.modules import discover_modules


class LivenessStatus(BaseModel):
    status: str


class ReadinessStatus(BaseModel):
    """Overall readiness plus one entry per dependency ("ok" or the error)."""

    status: str
    checks: dict[str, str]


probe_router = APIRouter(tags=["health"])


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return str(exc)
    return "ok"


async def _check_redis() -> str:
    try:
        async with redis_client() as client:
            await client.ping()
    except Exception as exc:
        return str(exc)
    return "ok"


@probe_router.get(
    "/health/live",
    response_model=LivenessStatus,
    summary="Liveness probe",
)
async def liveness() -> LivenessStatus:
    return LivenessStatus(status="alive")


@probe_router.get(
    "/health/ready",
    response_model=ReadinessStatus,
    summary="Readiness probe",
    description=(
        "Reports 503 unless the database answers. Redis is only checked when "
        "it backs the rate limiter, because admin routes fail closed without it."
    ),
)
async def readiness(db: DBSession) -> JSONResponse:
    checks = {"database": await _check_database(db)}
    if settings.rate_limit_backend == "redis":
        checks["redis"] = await _check_redis()

    ready = all(result == "ok" for result in checks.values())
    body = ReadinessStatus(status="ready" if ready else "degraded", checks=checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )


@probe_router.get("/info", summary="Deployment metadata")
async def info() -> dict[str, Any]:
    return {
        "app": settings.app_name,
        "environment": settings.environment,
        "debug": settings.debug,
        "rate_limit_backend": settings.rate_limit_backend,
    }


# Feature modules are mounted under the versioned prefix
v1_router = APIRouter(prefix="/api/v1")
for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router = APIRouter()
api_router.include_router(probe_router)
api_router.include_router(v1_router)
