"""Top-level routing.

Operational endpoints (``/health/*`` and ``/info``) sit at the root so
load balancers can reach them without a token. Feature modules are
discovered at import time and mounted under ``/api/v1``.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from cityventure.api.dependencies import DBSession
from cityventure.config import settings
from cityventure.core.permissions.catalog import (
    CATALOG_VERSION,
    PERMISSIONS,
    PRESET_ROLES,
    SYSTEM_ROLES,
)
from cityventure.modules import discover_modules


API_PREFIX = "/api/v1"
CHECK_OK = "ok"


class Liveness(BaseModel):
    """The process answers requests."""

    status: str


class ReadinessReport(BaseModel):
    """Result of each dependency check."""

    status: str
    checks: dict[str, str]


class ServiceInfo(BaseModel):
    """What this deployment is running."""

    app: str
    environment: str
    permission_catalog_version: int
    permission_count: int
    default_roles: list[str]


async def _check_database(db: DBSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return str(e)
    return CHECK_OK


def _check_permission_cache(request: Request) -> str:
    # Built in the lifespan; missing means startup didn't finish
    if getattr(request.app.state, "permission_cache", None) is None:
        return "not initialized"
    return CHECK_OK


ops_router = APIRouter(tags=["operations"])


@ops_router.get(
    "/health/live",
    response_model=Liveness,
    summary="Liveness check",
    description="Answers 200 while the process is up.",
)
async def liveness() -> Liveness:
    """Report that the process is alive."""
    return Liveness(status="alive")


@ops_router.get(
    "/health/ready",
    response_model=ReadinessReport,
    summary="Readiness check",
    description="503 unless the database answers and the permission cache exists.",
)
async def readiness(request: Request, db: DBSession) -> JSONResponse:
    """Report whether requests can be served."""
    report = ReadinessReport(
        status="ready",
        checks={
            "database": await _check_database(db),
            "permission_cache": _check_permission_cache(request),
        },
    )
    code = status.HTTP_200_OK
    if any(result != CHECK_OK for result in report.checks.values()):
        report.status = "degraded"
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=report.model_dump())


@ops_router.get(
    "/info",
    response_model=ServiceInfo,
    summary="Service info",
    description="Deployment name, environment, and the permission catalog in use.",
)
async def info() -> ServiceInfo:
    """Describe the running service."""
    return ServiceInfo(
        app=settings.app_name,
        environment=settings.environment,
        permission_catalog_version=CATALOG_VERSION,
        permission_count=len(PERMISSIONS),
        default_roles=[template.name for template in (*SYSTEM_ROLES, *PRESET_ROLES)],
    )


def build_api_router() -> APIRouter:
    """Mount the operational endpoints and every discovered module."""
    feature_router = APIRouter(prefix=API_PREFIX)
    for module_router in discover_modules():
        feature_router.include_router(module_router)

    root = APIRouter()
    root.include_router(ops_router)
    root.include_router(feature_router)
    return root


api_router = build_api_router()
