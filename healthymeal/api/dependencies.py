"""
FastAPI dependencies for authentication, rate limiting and AI generation.
"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from healthymeal.auth.jwt import decode_access_token
from healthymeal.db.database import get_db
from healthymeal.db.models import User
from healthymeal.engine.rate_limiter import RateLimiter
from healthymeal.services.ai_preview_service import RecipeModifier, create_recipe_modifier

# HTTP Bearer token scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.

    Usage:
        @app.get("/me")
        def get_me(current_user: User = Depends(get_current_user)):
            return current_user

    Raises:
        HTTPException: 401 if the token is invalid or the user no longer
            exists, 403 if the account is inactive
    """
    token_payload = decode_access_token(credentials.credentials)

    if token_payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == token_payload.user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


def get_rate_limiter(request: Request) -> RateLimiter:
    """The AI preview limiter created in the application lifespan."""
    return request.app.state.rate_limiter


def get_recipe_modifier() -> RecipeModifier:
    """AI backend for previews. Override in tests to stub the provider."""
    return create_recipe_modifier()
