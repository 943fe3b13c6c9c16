"""
Authentication API routes.
"""
import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Request
from pydantic import BaseModel, EmailStr, Field
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from healthymeal.api.dependencies import get_current_user
from healthymeal.auth.jwt import create_access_token
from healthymeal.auth.utils import hash_password, verify_password
from healthymeal.config import settings
from healthymeal.db.database import get_db
from healthymeal.db.models import DietaryPreferences, User
from healthymeal.errors import EmailAlreadyRegisteredError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Rate limiter for auth endpoints
# Disabled in debug/test mode or when rate_limit_enabled is False
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled and not settings.debug,
)


class RegisterRequest(BaseModel):
    """User registration request."""
    email: EmailStr
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")

    model_config = {
        "json_schema_extra": {
            "examples": [{"email": "user@example.com", "password": "SecurePass123!"}]
        }
    }


class LoginRequest(BaseModel):
    """User login request."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """User information response."""
    id: UUID
    email: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_register)
async def register(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Register a new user account.

    Creates an empty dietary preferences row alongside the user.
    Rate limited per IP. Returns a JWT access token.
    """
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        return EmailAlreadyRegisteredError(email).to_response()

    new_user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        is_active=True,
    )
    new_user.dietary_preferences = DietaryPreferences()

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"Registered user {new_user.id}")

    return TokenResponse(access_token=create_access_token(user_id=new_user.id, email=new_user.email))


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.rate_limit_login)
async def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Login with email and password.

    Rate limited per IP to slow down brute force attempts.
    """
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.warning(f"Failed login for {payload.email.lower()}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return TokenResponse(access_token=create_access_token(user_id=user.id, email=user.email))


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """
    Get current authenticated user's information.

    Requires: Bearer token in Authorization header.
    """
    return UserResponse.model_validate(current_user)
