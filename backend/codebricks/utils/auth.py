"""
Authentication utilities - JWT token handling, password hashing and
request dependencies.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlparse

import bcrypt
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import Settings
from ..core.errors import AuthFlowError, AuthFlowReason
from ..models import TokenData
from ..storage import SnippetStore, UserStorage

# Bearer token security
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password."""
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
    return hashed.decode('utf-8')


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in the token
        settings: Settings holding the signing key and algorithm
        expires_delta: Optional expiration time delta

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> Optional[TokenData]:
    """
    Decode and verify a JWT access token.

    Returns:
        Optional[TokenData]: Token data if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None
    return TokenData(user_id=user_id, username=payload.get("username"))


def check_authorized_origin(origin: Optional[str], settings: Settings) -> None:
    """
    Reject sign-in requests coming from a page on an unauthorized domain.
    Requests without an Origin header (non-browser clients) are allowed.

    Raises:
        AuthFlowError: With reason UNAUTHORIZED_DOMAIN
    """
    if not origin:
        return
    host = urlparse(origin).hostname or origin
    if host not in settings.authorized_domains:
        raise AuthFlowError(AuthFlowReason.UNAUTHORIZED_DOMAIN)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_storage(request: Request) -> UserStorage:
    return request.app.state.user_storage


def get_snippet_store(request: Request) -> SnippetStore:
    return request.app.state.snippet_store


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Dependency to get current user ID from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    token_data = decode_access_token(credentials.credentials, settings)
    if token_data is None or token_data.user_id is None:
        raise credentials_exception

    return token_data.user_id


async def authenticate_user(
    user_storage: UserStorage,
    username: str,
    password: str
) -> Optional[dict]:
    """
    Authenticate a user by username and password.

    Returns:
        Optional[dict]: User data if authenticated, None otherwise
    """
    user = await user_storage.get_user_by_username(username)
    if not user:
        return None
    if not verify_password(password, user["hashed_password"]):
        return None
    return user
