"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version)
used for monitoring and deployment verification.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from immopro.core.database import ping
from immopro.core.logging_config import get_logger
from immopro.server.core import constant
from immopro.server.core.config import settings
from immopro.server.services import email_service, push_service, stripe_service
from immopro.server.services.deps import SessionDep

logger = get_logger(__name__)

router = APIRouter()


async def _database_status(session) -> str:
    try:
        return "connected" if await ping(session) else "disconnected"
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Health check database ping failed: {e}")
        return "disconnected"


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server and its database.",
    response_description="Status object.",
    responses={
        200: {"description": "Server and database are up"},
        503: {"description": "Database is unreachable"},
    },
)
async def health_check(session: SessionDep):
    """
    Health check endpoint.

    Runs ``SELECT 1`` against the database. Answers 503 when the database
    cannot be reached so that load balancers stop routing to the instance.
    """
    database = await _database_status(session)
    if database != "connected":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "database": database},
        )
    return {"status": "ok", "database": database}


@router.get(
    "/health/detailed",
    summary="Detailed Health Check",
    description="Database status plus the configuration state of every third-party integration.",
    response_description="Status object with one entry per integration.",
)
async def detailed_health_check(session: SessionDep):
    def configured(flag: bool) -> str:
        return "configured" if flag else "not configured"

    database = await _database_status(session)
    body = {
        "status": "ok" if database == "connected" else "error",
        "database": database,
        "services": {
            "stripe": configured(stripe_service.is_configured()),
            "email": configured(email_service.is_configured()),
            "web_push": configured(push_service.is_configured()),
            "geocoding": "enabled" if settings.geocoding.enabled else "disabled",
        },
        "version": constant.VERSION,
    }
    if database != "connected":
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    """
    Get API version.

    Returns the current semantic version of the API and supported schema version.
    """
    return {"version": constant.VERSION, "schema_version": "v1"}
