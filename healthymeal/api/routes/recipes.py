"""
Recipe API routes, including AI preview generation.
"""
import logging
import time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from healthymeal.api.dependencies import get_current_user, get_rate_limiter, get_recipe_modifier
from healthymeal.config import settings
from healthymeal.db.database import get_db
from healthymeal.db.models import User
from healthymeal.engine.rate_limiter import RateLimiter
from healthymeal.errors import (
    AIServiceError,
    DatabaseError,
    ErrorResponse,
    HealthyMealError,
    RecipeNotFoundError,
    internal_error_response,
    rate_limit_response,
    validation_error_response,
)
from healthymeal.models.schemas import (
    AIPreviewResponse,
    RecipeCreate,
    RecipeListResponse,
    RecipeResponse,
)
from healthymeal.services.ai_preview_service import AIPreviewService, RecipeModifier
from healthymeal.services.recipe_service import RecipeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["recipes"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Recipe not found"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


def _parse_recipe_id(raw: str) -> Optional[UUID]:
    try:
        return UUID(raw)
    except ValueError:
        return None


@router.get("", response_model=RecipeListResponse, responses=ERROR_RESPONSES)
async def list_recipes(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(
        settings.pagination_default_limit,
        ge=1,
        le=settings.pagination_max_limit,
        description="Page size",
    ),
    is_ai_generated: Optional[bool] = Query(None, description="Filter AI-generated recipes"),
    parent_recipe_id: Optional[UUID] = Query(None, description="Only AI variants of this recipe"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List the current user's recipes, newest first.
    """
    return RecipeService(db).list_recipes(
        owner_id=current_user.id,
        page=page,
        limit=limit,
        is_ai_generated=is_ai_generated,
        parent_recipe_id=parent_recipe_id,
    )


@router.post(
    "",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_recipe(
    request: RecipeCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Create a recipe.

    Saving an AI preview sends is_ai_generated=true with the preview's
    ai_metadata and the original recipe as parent_recipe_id.
    """
    try:
        recipe = RecipeService(db).create_recipe(current_user.id, request)
    except HealthyMealError as e:
        return e.to_response()

    return RecipeResponse.model_validate(recipe)


@router.get("/{recipe_id}", response_model=RecipeResponse, responses=ERROR_RESPONSES)
async def get_recipe(
    recipe_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Get one of the current user's recipes.
    """
    parsed_id = _parse_recipe_id(recipe_id)
    if parsed_id is None:
        return validation_error_response("Invalid recipe ID format")

    recipe = RecipeService(db).get_recipe(parsed_id, current_user.id)
    if recipe is None:
        return RecipeNotFoundError(recipe_id).to_response()

    return RecipeResponse.model_validate(recipe)


@router.delete(
    "/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=ERROR_RESPONSES,
)
async def delete_recipe(
    recipe_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Delete one of the current user's recipes.

    AI variants of the deleted recipe are kept with their parent link cleared.
    """
    parsed_id = _parse_recipe_id(recipe_id)
    if parsed_id is None:
        return validation_error_response("Invalid recipe ID format")

    try:
        deleted = RecipeService(db).delete_recipe(parsed_id, current_user.id)
    except DatabaseError as e:
        return e.to_response()

    if not deleted:
        return RecipeNotFoundError(recipe_id).to_response()

    logger.info(f"Deleted recipe {parsed_id} for user {current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{recipe_id}/ai-preview",
    response_model=AIPreviewResponse,
    responses={
        **ERROR_RESPONSES,
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        503: {"model": ErrorResponse, "description": "AI service unavailable"},
    },
)
async def generate_ai_preview(
    recipe_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    modifier: RecipeModifier = Depends(get_recipe_modifier),
):
    """
    Generate an AI-modified version of a recipe for the user's dietary preferences.

    Nothing is saved; the client decides whether to keep the result.
    Rate limited per user (10 requests per minute by default).
    """
    started = time.perf_counter()
    user_id = str(current_user.id)

    parsed_id = _parse_recipe_id(recipe_id)
    if parsed_id is None:
        logger.warning(f"Invalid recipe ID format for AI preview: {recipe_id!r} (user {user_id})")
        return validation_error_response("Recipe ID must be a valid UUID")

    decision = rate_limiter.check(user_id)
    if not decision.allowed:
        logger.warning(
            f"AI preview rate limit exceeded for user {user_id} "
            f"(recipe {parsed_id}, retry after {decision.retry_after_seconds}s)"
        )
        return rate_limit_response(decision.retry_after_seconds)

    try:
        preview = await AIPreviewService(db, modifier).generate_preview(parsed_id, current_user.id)
    except AIServiceError as e:
        logger.error(f"AI service error for recipe {parsed_id} (user {user_id}): {e.reason}")
        return e.to_response()
    except HealthyMealError as e:
        logger.warning(
            f"AI preview for recipe {parsed_id} (user {user_id}) failed: {e.error_code.value}"
        )
        return e.to_response()
    except Exception:
        logger.exception(f"Unexpected error generating AI preview for recipe {parsed_id}")
        return internal_error_response()

    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(f"AI preview generated for recipe {parsed_id} (user {user_id}) in {duration_ms}ms")
    return preview
