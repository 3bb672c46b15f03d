"""
Authentication API endpoints.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status

from ..config import Settings
from ..core.errors import AuthFlowError, AuthFlowReason
from ..models import LoginRequest, Token, User, UserCreate, UserIdentity
from ..storage import UserStorage
from ..utils.auth import (
    authenticate_user,
    check_authorized_origin,
    create_access_token,
    get_current_user_id,
    get_password_hash,
    get_settings,
    get_user_storage,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _public_user(user: dict) -> User:
    return User(**{k: v for k, v in user.items() if k != 'hashed_password'})


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    origin: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    user_storage: UserStorage = Depends(get_user_storage),
):
    """
    Register a new user.

    Raises:
        AuthFlowError: If the request comes from an unauthorized domain
        InputValidationError: If the username already exists
    """
    check_authorized_origin(origin, settings)

    user = await user_storage.create_user(
        user_id=str(uuid.uuid4()),
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        email=user_data.email,
        display_name=user_data.display_name,
        photo_url=user_data.photo_url,
    )
    return _public_user(user)


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    origin: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    user_storage: UserStorage = Depends(get_user_storage),
):
    """
    Login and get an access token.

    Raises:
        AuthFlowError: Unauthorized domain or invalid credentials
    """
    check_authorized_origin(origin, settings)

    user = await authenticate_user(user_storage, credentials.username, credentials.password)
    if not user:
        logger.warning(
            "Login failed",
            extra={"extra_fields": {"username": credentials.username}}
        )
        raise AuthFlowError(AuthFlowReason.INVALID_CREDENTIAL)

    access_token = create_access_token(
        data={"sub": user["user_id"], "username": user["username"]},
        settings=settings,
    )
    return Token(access_token=access_token, token_type="bearer")


@router.get("/me", response_model=UserIdentity)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    user_storage: UserStorage = Depends(get_user_storage),
):
    """Get the signed-in user's identity."""
    user = await user_storage.get_user(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return _public_user(user).to_identity()


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(user_id: str = Depends(get_current_user_id)):
    """
    Sign out. Tokens are stateless; the client discards its token.
    """
    logger.info("User signed out", extra={"extra_fields": {"user_id": user_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
