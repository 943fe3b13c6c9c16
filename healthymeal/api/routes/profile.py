"""
Profile API routes for dietary preferences.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from healthymeal.api.dependencies import get_current_user
from healthymeal.db.database import get_db
from healthymeal.db.models import User
from healthymeal.errors import ErrorResponse, HealthyMealError
from healthymeal.models.schemas import DietaryPreferencesResponse, DietaryPreferencesUpdate
from healthymeal.services.dietary_preferences_service import DietaryPreferencesService

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get(
    "/dietary-preferences",
    response_model=DietaryPreferencesResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_dietary_preferences(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Get the current user's dietary preferences.
    """
    try:
        preferences = DietaryPreferencesService(db).get(current_user.id)
    except HealthyMealError as e:
        return e.to_response()
    return DietaryPreferencesResponse.model_validate(preferences)


@router.put(
    "/dietary-preferences",
    response_model=DietaryPreferencesResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_dietary_preferences(
    request: DietaryPreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Update the current user's dietary preferences.

    Only the fields present in the body change; send null to clear a field.
    """
    try:
        preferences = DietaryPreferencesService(db).update(current_user.id, request)
    except HealthyMealError as e:
        return e.to_response()
    return DietaryPreferencesResponse.model_validate(preferences)
