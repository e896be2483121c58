"""
Admin login router.

POST /api/auth/login — exchange username/password for a bearer token.
Registration is disabled; users are created with scripts/create_user.py.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from featherlog.auth.tokens import issue_token
from featherlog.core.dependencies import DbSession
from featherlog.schemas.auth import LoginRequest, LoginResponse, UserOut
from featherlog.services.users import authenticate_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

# Same message for unknown user and wrong password
_INVALID_CREDENTIALS = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid credentials",
)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Admin login",
)
async def login(payload: LoginRequest, session: DbSession) -> LoginResponse:
    if not payload.username or not payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password required",
        )

    user = await authenticate_user(session, payload.username, payload.password)
    if user is None:
        logger.info("Failed login attempt")
        raise _INVALID_CREDENTIALS

    logger.info("Admin %s logged in", user.username)
    return LoginResponse(
        token=issue_token(user.id, user.username),
        user=UserOut(id=user.id, username=user.username),
    )
