"""
Pydantic data models for HealthyMeal recipes, preferences and AI previews.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from healthymeal.config import settings
from healthymeal.utils.sanitization import TrimmedStr, TagList


class DietType(str, Enum):
    """Supported diet types."""
    OMNIVORE = "omnivore"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    PESCATARIAN = "pescatarian"
    KETO = "keto"
    PALEO = "paleo"
    LOW_CARB = "low_carb"
    LOW_FAT = "low_fat"
    MEDITERRANEAN = "mediterranean"
    OTHER = "other"


# ============================================================================
# Dietary preferences
# ============================================================================

class DietaryPreferencesResponse(BaseModel):
    """A user's dietary preferences."""
    user_id: UUID
    diet_type: Optional[DietType] = None
    allergies: Optional[List[str]] = None
    disliked_ingredients: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DietaryPreferencesUpdate(BaseModel):
    """Partial update of dietary preferences. At least one field is required."""
    diet_type: Optional[DietType] = None
    allergies: Optional[TagList] = None
    disliked_ingredients: Optional[TagList] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "diet_type": "vegan",
                    "allergies": ["gluten", "nuts"],
                    "disliked_ingredients": ["cilantro"]
                }
            ]
        }
    }

    @model_validator(mode="after")
    def at_least_one_field(self) -> "DietaryPreferencesUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


# ============================================================================
# Recipes
# ============================================================================

class AIMetadata(BaseModel):
    """How an AI-generated recipe was produced."""
    model: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    generation_duration: int = Field(..., gt=0, description="Generation time in milliseconds")
    raw_response: Dict[str, Any]

    model_config = {"protected_namespaces": ()}


class AIMetadataResponse(AIMetadata):
    """Stored AI metadata attached to a recipe."""
    recipe_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True, "protected_namespaces": ()}


class RecipeCreate(BaseModel):
    """Request to create a recipe, either hand-written or a saved AI preview."""
    title: TrimmedStr = Field(..., min_length=1, max_length=settings.recipe_title_max_length)
    ingredients: TrimmedStr = Field(..., min_length=1)
    instructions: TrimmedStr = Field(..., min_length=1)
    is_ai_generated: bool = False
    parent_recipe_id: Optional[UUID] = None
    ai_metadata: Optional[AIMetadata] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Vegan Pancakes",
                    "ingredients": "2 cups flour\n2 flax eggs\n1 cup almond milk",
                    "instructions": "Mix dry ingredients.\nWhisk in wet ingredients.\nCook on a hot griddle.",
                    "is_ai_generated": True,
                    "parent_recipe_id": "550e8400-e29b-41d4-a716-446655440000",
                    "ai_metadata": {
                        "model": "anthropic/claude-3.5-sonnet",
                        "provider": "openrouter",
                        "generation_duration": 2140,
                        "raw_response": {"id": "gen-123"}
                    }
                }
            ]
        }
    }

    @field_validator("title", "ingredients", "instructions")
    @classmethod
    def not_blank_after_trim(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @model_validator(mode="after")
    def check_content_and_metadata(self) -> "RecipeCreate":
        if len(self.ingredients) + len(self.instructions) > settings.recipe_content_max_length:
            raise ValueError(
                f"Combined ingredients and instructions must not exceed "
                f"{settings.recipe_content_max_length:,} characters"
            )
        if self.is_ai_generated and self.ai_metadata is None:
            raise ValueError("AI metadata is required when is_ai_generated is true")
        if not self.is_ai_generated and self.ai_metadata is not None:
            raise ValueError("AI metadata should not be provided when is_ai_generated is false")
        return self


class RecipeResponse(BaseModel):
    """Recipe with its AI metadata, if any."""
    id: UUID
    owner_id: UUID
    title: str
    ingredients: str
    instructions: str
    is_ai_generated: bool
    parent_recipe_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    ai_metadata: Optional[AIMetadataResponse] = None

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    """Pagination block of a list response."""
    page: int
    limit: int
    total: int
    total_pages: int


class RecipeListResponse(BaseModel):
    """Paginated recipe list response."""
    data: List[RecipeResponse]
    pagination: Pagination


# ============================================================================
# AI preview
# ============================================================================

class OriginalRecipePreview(BaseModel):
    """The recipe the preview was generated from."""
    id: UUID
    title: str
    ingredients: str
    instructions: str


class ModifiedRecipePreview(BaseModel):
    """The AI's proposed version of the recipe."""
    title: str
    ingredients: str
    instructions: str
    explanation: str

    @field_validator("ingredients", "instructions", mode="before")
    @classmethod
    def join_lines(cls, value: Any) -> Any:
        """Models sometimes answer with lists; store them as newline text."""
        if isinstance(value, list):
            return "\n".join(str(item) for item in value)
        return value


class AppliedPreferences(BaseModel):
    """Preferences the preview was tailored to."""
    diet_type: Optional[DietType] = None
    allergies: Optional[List[str]] = None
    disliked_ingredients: Optional[List[str]] = None


class AIPreviewResponse(BaseModel):
    """Payload of POST /api/recipes/{id}/ai-preview."""
    original_recipe: OriginalRecipePreview
    modified_recipe: ModifiedRecipePreview
    ai_metadata: AIMetadata
    applied_preferences: AppliedPreferences
