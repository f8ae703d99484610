"""
User Endpoints.

The authenticated user's profile and the members of their agency.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, status

from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.io.auth import UserRead
from immopro.server.services.account import delete_user_data
from immopro.server.services.deps import CurrentUser, ManagerUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["users"])


@router.get(
    "/me",
    response_model=UserRead,
    summary="Current User",
    description="Retrieve the profile of the authenticated user.",
    response_description="The authenticated user.",
)
async def read_me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)


@router.get(
    "/agents",
    response_model=List[UserRead],
    summary="List Agency Members",
    description="List the owner and employees of the caller's agency.",
    response_description="Agency members ordered by last name.",
)
async def list_agents(user: CurrentUser, session: SessionDep) -> List[UserRead]:
    members = await UserRepository(session).list_agency_members(user.agency_id)
    return [UserRead.model_validate(member) for member in members]


@router.delete(
    "/agents/{agent_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Agency Member",
    description="Delete a member of the caller's agency together with their data. OWNER or ADMIN only.",
    responses={
        204: {"description": "Member deleted"},
        400: {"description": "Attempt to delete one's own account"},
        403: {"description": "Caller is not an owner or an administrator"},
        404: {"description": "No such member in the caller's agency"},
    },
)
async def delete_agent(agent_id: int, user: ManagerUser, session: SessionDep) -> None:
    """
    Delete an agency member.

    Use the RGPD endpoint to delete one's own account.
    """
    if agent_id == user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    users = UserRepository(session)
    target = await users.get_by_id(agent_id)
    if target is None or target.agency_id != user.agency_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Agent {agent_id} not found")

    await delete_user_data(session, target)
    logger.info(f"Agent {agent_id} deleted by user {user.id}")
