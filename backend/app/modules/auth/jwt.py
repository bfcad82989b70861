"""JWT token handling for authentication."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.core.config import settings

ALGORITHM = "HS256"


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    sub: str  # User ID
    exp: datetime
    iat: datetime
    type: str  # "access"


def create_token(
    user_id: uuid.UUID,
    token_type: str,
    expires_delta: timedelta,
) -> str:
    """Create a signed JWT.

    Args:
        user_id: User UUID
        token_type: Token type claim
        expires_delta: Token lifetime

    Returns:
        str: The encoded token
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "type": token_type,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Create an access token for ``user_id``."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return create_token(user_id, "access", expires_delta)


def decode_token(token: str) -> Optional[TokenPayload]:
    """Decode a JWT, returning None if the signature or expiry is invalid."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            type=payload["type"],
        )
    except (JWTError, KeyError):
        return None


def get_user_id_from_token(token: str, expected_type: str = "access") -> Optional[uuid.UUID]:
    """Extract the user ID from a valid token of the expected type."""
    payload = decode_token(token)
    if payload is None or payload.type != expected_type:
        return None

    try:
        return uuid.UUID(payload.sub)
    except ValueError:
        return None


# FastAPI dependencies
security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> uuid.UUID:
    """Resolve the bearer token to the caller's user ID.

    Raises:
        HTTPException: 401 if the credential is missing or invalid
    """
    if credentials is None:
        raise _unauthenticated("Couldn't find JWT")

    user_id = get_user_id_from_token(credentials.credentials)
    if user_id is None:
        raise _unauthenticated("Couldn't validate JWT")
    return user_id
