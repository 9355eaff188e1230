"""
Login event: registers a new user and issues a bearer token.

Identity proofing (OAuth with an external provider) happens outside this
service, which normally only validates tokens minted elsewhere with the
shared secret. This endpoint is for local and self-hosted setups and is
off unless AUTH_LOGIN_ENABLED=true. It never hands out an existing
account: every login creates a fresh user id, and an email that is
already registered is refused.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config.settings import Settings, get_settings
from hookrelay.core.exceptions import EmailAlreadyRegisteredError, PersistenceError
from hookrelay.database.async_db import get_async_db
from hookrelay.models.auth import LoginRequest, LoginResponse
from hookrelay.repositories.user_repository import UserRepository
from hookrelay.services.id_generator import generate_id
from hookrelay.services.token_service import TokenService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_async_db),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> LoginResponse:
    """
    Register a new user under a generated id and return a signed token
    whose subject is that id.

    Raises:
        EmailAlreadyRegisteredError: the email belongs to an existing user (409)
    """
    if not settings.AUTH_LOGIN_ENABLED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    user_id = f"user_{generate_id(16)}"
    email = str(login_data.email)

    try:
        user = await UserRepository(db).register(user_id, email)
    except SQLAlchemyError as e:
        logger.error(f"Failed to register user {user_id}: {e}")
        raise PersistenceError("register_user", e) from e

    if user is None:
        logger.info("Login refused: email already registered")
        raise EmailAlreadyRegisteredError()

    token = TokenService(settings).create_access_token(user_id, email=email)
    logger.info(f"Issued token for user {user_id}")
    return LoginResponse(jwt_token=token, user_id=user_id)
