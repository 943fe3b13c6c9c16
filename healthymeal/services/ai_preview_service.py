"""
AI preview generation.

Produces a not-yet-saved, AI-modified version of a user's recipe tailored to
their dietary preferences. The caller decides whether to save it as a new
recipe through the regular create endpoint.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthymeal.clients.openai_client import OpenAIClient, OpenAIClientError
from healthymeal.config import settings
from healthymeal.db.models import DietaryPreferences, Recipe
from healthymeal.errors import (
    AIServiceError,
    DatabaseError,
    NoDietaryPreferencesError,
    RecipeNotFoundError,
)
from healthymeal.models.schemas import (
    AIMetadata,
    AIPreviewResponse,
    AppliedPreferences,
    ModifiedRecipePreview,
    OriginalRecipePreview,
)
from healthymeal.services.ai_preview_prompt import SYSTEM_PROMPT, build_recipe_modification_prompt
from healthymeal.services.dietary_preferences_service import DietaryPreferencesService
from healthymeal.services.recipe_service import RecipeService

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "ingredients", "instructions", "explanation")


@dataclass
class Modification:
    """A modified recipe and how it was generated."""

    recipe: ModifiedRecipePreview
    metadata: AIMetadata


class RecipeModifier(Protocol):
    """
    Protocol for recipe modification backends.

    Both LLMRecipeModifier and MockRecipeModifier implement this protocol.
    Implementations raise AIServiceError on any failure.
    """

    async def modify(self, recipe: Recipe, preferences: DietaryPreferences) -> Modification:
        ...


def elapsed_ms(started: float) -> int:
    """Milliseconds since a perf_counter reading, never less than 1."""
    return max(1, int((time.perf_counter() - started) * 1000))


def parse_modified_recipe(content: str) -> ModifiedRecipePreview:
    """
    Parse the model's JSON answer into a ModifiedRecipePreview.

    Raises:
        AIServiceError: Content is not JSON or lacks a required field
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response as JSON: {e}")
        raise AIServiceError("Invalid JSON response from AI") from e

    if not isinstance(data, dict) or not all(data.get(field) for field in REQUIRED_FIELDS):
        raise AIServiceError("AI response missing required fields")

    try:
        return ModifiedRecipePreview(**{field: data[field] for field in REQUIRED_FIELDS})
    except ValidationError as e:
        raise AIServiceError("AI response has invalid field types") from e


class LLMRecipeModifier:
    """Asks the configured chat model to adapt the recipe."""

    def __init__(self, client: OpenAIClient = None):
        self._client = client or OpenAIClient()

    async def modify(self, recipe: Recipe, preferences: DietaryPreferences) -> Modification:
        prompt = build_recipe_modification_prompt(
            title=recipe.title,
            ingredients=recipe.ingredients,
            instructions=recipe.instructions,
            diet_type=preferences.diet_type.value if preferences.diet_type else None,
            allergies=preferences.allergies,
            disliked_ingredients=preferences.disliked_ingredients,
        )

        started = time.perf_counter()
        try:
            result = await self._client.complete(
                system_prompt=SYSTEM_PROMPT,
                user_prompt=prompt,
                response_format={"type": "json_object"},
                temperature=settings.ai_temperature,
                max_tokens=settings.ai_max_tokens,
            )
        except OpenAIClientError as e:
            logger.error(
                f"AI provider call failed for recipe {recipe.id} "
                f"after {elapsed_ms(started)}ms: {e}"
            )
            raise AIServiceError(str(e)) from e

        duration = elapsed_ms(started)
        return Modification(
            recipe=parse_modified_recipe(result.content),
            metadata=AIMetadata(
                model=result.model,
                provider=settings.ai_provider_name,
                generation_duration=duration,
                raw_response=result.raw_response,
            ),
        )


def create_recipe_modifier() -> RecipeModifier:
    """
    Pick the modification backend from configuration.

    Uses the LLM when an API key is configured and the mock is not forced;
    otherwise falls back to the offline rule-based generator.
    """
    if settings.openrouter_api_key and not settings.ai_use_mock:
        return LLMRecipeModifier()

    from healthymeal.services.mock_ai_service import MockRecipeModifier

    logger.info("No AI provider configured, using rule-based recipe modifier")
    return MockRecipeModifier()


class AIPreviewService:
    """
    Builds AI previews for a user's recipes.

    Example:
        >>> service = AIPreviewService(db, create_recipe_modifier())
        >>> preview = await service.generate_preview(recipe_id, user.id)
    """

    def __init__(self, db: Session, modifier: RecipeModifier):
        self.db = db
        self.modifier = modifier
        self.recipes = RecipeService(db)
        self.preferences = DietaryPreferencesService(db)

    async def generate_preview(self, recipe_id: UUID, user_id: UUID) -> AIPreviewResponse:
        """
        Generate a modified version of a recipe without saving it.

        Raises:
            RecipeNotFoundError: The recipe is missing or owned by someone else
            NoDietaryPreferencesError: The user has no preference set
            AIServiceError: The model failed or answered unusably
            DatabaseError: Reading the recipe or preferences failed
        """
        try:
            recipe = self.recipes.get_recipe(recipe_id, user_id)
            preferences = self.preferences.find(user_id)
        except SQLAlchemyError as e:
            logger.exception(f"Database error loading preview inputs for recipe {recipe_id}")
            raise DatabaseError("load_preview_inputs", {"error_type": type(e).__name__}) from e

        if recipe is None:
            raise RecipeNotFoundError(str(recipe_id))

        if preferences is None or not preferences.has_any():
            raise NoDietaryPreferencesError(str(user_id))

        modification = await self.modifier.modify(recipe, preferences)

        return AIPreviewResponse(
            original_recipe=OriginalRecipePreview(
                id=recipe.id,
                title=recipe.title,
                ingredients=recipe.ingredients,
                instructions=recipe.instructions,
            ),
            modified_recipe=modification.recipe,
            ai_metadata=modification.metadata,
            applied_preferences=AppliedPreferences(
                diet_type=preferences.diet_type,
                allergies=preferences.allergies,
                disliked_ingredients=preferences.disliked_ingredients,
            ),
        )
