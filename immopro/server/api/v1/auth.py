"""
Authentication Endpoints.

Self sign-up and login. Both answer a Bearer token together with the public
view of the user.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from immopro.core.database.entities.users import User
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import UserRole
from immopro.core.models.io.auth import LoginRequest, RegisterRequest, TokenResponse, UserRead
from immopro.server.core.security import (
    create_access_token,
    hash_password,
    is_valid_email,
    password_problems,
    verify_password,
)
from immopro.server.services.deps import SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS = "Invalid email or password"


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an agent account and return an access token.",
    response_description="Access token and the created user.",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Invalid email, weak password or email already used"},
    },
)
async def register(payload: RegisterRequest, session: SessionDep) -> TokenResponse:
    """
    Register a new agent.

    - **email**: Must be a valid email address, unique across accounts.
    - **password**: At least 8 characters with an upper-case letter, a
      lower-case letter and a digit.
    """
    email = payload.email.strip().lower()
    if not is_valid_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")

    problems = password_problems(payload.password)
    if problems:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problems[0])

    users = UserRepository(session)
    if await users.get_by_email(email) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This email is already used")

    user = await users.create(
        User(
            email=email,
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            role=UserRole.AGENT.value,
            hashed_password=hash_password(payload.password),
        )
    )
    logger.info(f"User registered: {user.id}")
    return TokenResponse(token=create_access_token(user.id, user.email), user=UserRead.model_validate(user))


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login",
    description="Exchange email and password for an access token.",
    response_description="Access token and the authenticated user.",
    responses={
        200: {"description": "Authenticated"},
        401: {"description": "Invalid email or password"},
    },
)
async def login(payload: LoginRequest, session: SessionDep) -> TokenResponse:
    user = await UserRepository(session).get_by_email(payload.email.strip())
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    logger.info(f"User logged in: {user.id}")
    return TokenResponse(token=create_access_token(user.id, user.email), user=UserRead.model_validate(user))
