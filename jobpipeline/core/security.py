"""Caller identity from JWT bearer tokens (issued by the auth service)."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from jobpipeline.config import settings

# HTTPBearer so Swagger accepts a pasted access token
security = HTTPBearer(auto_error=False)


def decode_subject(token: str) -> Optional[UUID]:
    """Return the user id in the token's ``sub`` claim, or None if invalid."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        return UUID(str(subject)) if subject else None
    except (JWTError, ValueError):
        return None


def create_access_token(user_id: UUID) -> str:
    """Sign a token for ``user_id`` (used by tests and local tooling)."""
    return jwt.encode({"sub": str(user_id)}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UUID:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    user_id = decode_subject(credentials.credentials)
    if user_id is None:
        raise credentials_exception
    return user_id
