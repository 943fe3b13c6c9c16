"""
JWT token generation and validation.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from uuid import UUID

from healthymeal.config import settings


@dataclass
class TokenPayload:
    """Decoded token payload."""
    user_id: UUID
    email: Optional[str] = None


def create_access_token(
    user_id: UUID,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User's UUID, stored as the subject claim
        email: Optional email claim, echoed back by /auth/me clients
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
    }
    if email:
        to_encode["email"] = email

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[TokenPayload]:
    """
    Decode and validate a JWT token.

    Returns:
        TokenPayload if token is valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        subject = payload.get("sub")
        if subject is None:
            return None
        return TokenPayload(user_id=UUID(subject), email=payload.get("email"))
    except (JWTError, ValueError):
        return None
