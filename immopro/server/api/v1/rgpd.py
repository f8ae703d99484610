"""
RGPD Endpoints.

Right of access and right to erasure of the authenticated user.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from immopro.core.logging_config import get_logger
from immopro.server.services.account import delete_user_data, export_user_data
from immopro.server.services.deps import CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["rgpd"])


@router.get(
    "/export-data",
    summary="Export Personal Data",
    description="Download every record owned by the caller as a JSON document.",
    response_description="JSON export served as an attachment.",
)
async def export_data(user: CurrentUser, session: SessionDep) -> JSONResponse:
    data = await export_user_data(session, user)
    logger.info(f"Personal data exported for user {user.id}")
    filename = f"immopro-export-{user.id}-{datetime.utcnow():%Y%m%d}.json"
    return JSONResponse(
        content=jsonable_encoder(data),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete(
    "/delete-account",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Account",
    description="Delete the caller's account and every record they own. Employees of the caller are detached.",
)
async def delete_account(user: CurrentUser, session: SessionDep) -> None:
    user_id = user.id
    await delete_user_data(session, user)
    logger.info(f"Account {user_id} deleted at the request of its owner")
