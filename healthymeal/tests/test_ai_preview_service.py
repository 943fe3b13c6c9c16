"""
Tests for AI preview generation on the server side.

The LLM path runs against a fake chat client; no provider is contacted.
"""
import json
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from healthymeal.clients.openai_client import ChatResult, OpenAIClientError
from healthymeal.errors import (
    AIServiceError,
    DatabaseError,
    NoDietaryPreferencesError,
    RecipeNotFoundError,
)
from healthymeal.services.ai_preview_prompt import build_recipe_modification_prompt
from healthymeal.services.ai_preview_service import (
    AIPreviewService,
    LLMRecipeModifier,
    create_recipe_modifier,
    parse_modified_recipe,
)
from healthymeal.services.mock_ai_service import MockRecipeModifier

MODEL_ANSWER = {
    "title": "Classic Pancakes (Vegan, Gluten-Free)",
    "ingredients": ["2 cups gluten-free flour", "2 flax eggs", "1 cup oat milk"],
    "instructions": "Prepare the flax eggs.\nWhisk and cook.",
    "explanation": "Replaced eggs with flax eggs and wheat flour with a gluten-free blend.",
}


def fake_client(content: str = None, error: Exception = None) -> AsyncMock:
    client = AsyncMock()
    if error is not None:
        client.complete.side_effect = error
    else:
        client.complete.return_value = ChatResult(
            content=content,
            model="anthropic/claude-3.5-sonnet",
            raw_response={"id": "gen-abc", "usage": {"total_tokens": 812}},
        )
    return client


class TestParseModifiedRecipe:

    def test_joins_list_fields(self):
        recipe = parse_modified_recipe(json.dumps(MODEL_ANSWER))

        assert recipe.ingredients == "2 cups gluten-free flour\n2 flax eggs\n1 cup oat milk"
        assert recipe.title == "Classic Pancakes (Vegan, Gluten-Free)"

    def test_invalid_json(self):
        with pytest.raises(AIServiceError) as exc_info:
            parse_modified_recipe("Sure! Here is your recipe:")

        assert exc_info.value.reason == "Invalid JSON response from AI"

    @pytest.mark.parametrize("missing", ["title", "ingredients", "instructions", "explanation"])
    def test_missing_field(self, missing):
        answer = {k: v for k, v in MODEL_ANSWER.items() if k != missing}

        with pytest.raises(AIServiceError) as exc_info:
            parse_modified_recipe(json.dumps(answer))

        assert exc_info.value.reason == "AI response missing required fields"

    def test_non_object_json(self):
        with pytest.raises(AIServiceError):
            parse_modified_recipe("[1, 2, 3]")


class TestPrompt:

    def test_includes_recipe_and_preferences(self):
        prompt = build_recipe_modification_prompt(
            title="Pancakes",
            ingredients="2 eggs",
            instructions="Beat the eggs.",
            diet_type="vegan",
            allergies=["gluten", "nuts"],
            disliked_ingredients=["cilantro"],
        )

        assert "Title: Pancakes" in prompt
        assert "Diet type: vegan" in prompt
        assert "Allergies: gluten, nuts" in prompt
        assert "Disliked ingredients: cilantro" in prompt
        assert '"explanation"' in prompt

    def test_omits_unset_preferences(self):
        prompt = build_recipe_modification_prompt("T", "I", "S", diet_type="keto")

        assert "Allergies" not in prompt
        assert "Disliked ingredients" not in prompt


class TestLLMRecipeModifier:

    @pytest.mark.asyncio
    async def test_builds_modification(self, test_user, test_recipe):
        client = fake_client(json.dumps(MODEL_ANSWER))
        modifier = LLMRecipeModifier(client=client)

        result = await modifier.modify(test_recipe, test_user.dietary_preferences)

        assert result.recipe.title == MODEL_ANSWER["title"]
        assert result.metadata.model == "anthropic/claude-3.5-sonnet"
        assert result.metadata.provider == "openrouter"
        assert result.metadata.generation_duration >= 1
        assert result.metadata.raw_response["usage"]["total_tokens"] == 812

    @pytest.mark.asyncio
    async def test_requests_json_output(self, test_user, test_recipe):
        client = fake_client(json.dumps(MODEL_ANSWER))

        await LLMRecipeModifier(client=client).modify(test_recipe, test_user.dietary_preferences)

        kwargs = client.complete.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 4000
        assert "Diet type: vegan" in kwargs["user_prompt"]

    @pytest.mark.asyncio
    async def test_provider_failure(self, test_user, test_recipe):
        client = fake_client(error=OpenAIClientError("AI provider call failed: 502"))

        with pytest.raises(AIServiceError):
            await LLMRecipeModifier(client=client).modify(test_recipe, test_user.dietary_preferences)

    @pytest.mark.asyncio
    async def test_unusable_answer(self, test_user, test_recipe):
        client = fake_client("not json")

        with pytest.raises(AIServiceError):
            await LLMRecipeModifier(client=client).modify(test_recipe, test_user.dietary_preferences)


class TestCreateRecipeModifier:

    def test_mock_without_api_key(self):
        with patch("healthymeal.services.ai_preview_service.settings") as mock_settings:
            mock_settings.openrouter_api_key = None
            mock_settings.ai_use_mock = False

            assert isinstance(create_recipe_modifier(), MockRecipeModifier)

    def test_llm_with_api_key(self):
        with patch("healthymeal.services.ai_preview_service.settings") as mock_settings:
            mock_settings.openrouter_api_key = "sk-or-test"
            mock_settings.ai_use_mock = False

            assert isinstance(create_recipe_modifier(), LLMRecipeModifier)

    def test_mock_can_be_forced(self):
        with patch("healthymeal.services.ai_preview_service.settings") as mock_settings:
            mock_settings.openrouter_api_key = "sk-or-test"
            mock_settings.ai_use_mock = True

            assert isinstance(create_recipe_modifier(), MockRecipeModifier)


class TestAIPreviewService:

    @pytest.mark.asyncio
    async def test_generates_preview(self, db_session, test_user, test_recipe):
        service = AIPreviewService(db_session, LLMRecipeModifier(client=fake_client(json.dumps(MODEL_ANSWER))))

        preview = await service.generate_preview(test_recipe.id, test_user.id)

        assert preview.original_recipe.id == test_recipe.id
        assert preview.modified_recipe.explanation == MODEL_ANSWER["explanation"]
        assert preview.applied_preferences.allergies == ["gluten"]

    @pytest.mark.asyncio
    async def test_recipe_not_found(self, db_session, test_user):
        service = AIPreviewService(db_session, MockRecipeModifier(latency_seconds=0))

        with pytest.raises(RecipeNotFoundError):
            await service.generate_preview(uuid4(), test_user.id)

    @pytest.mark.asyncio
    async def test_no_preferences_skips_ai(self, db_session, user_without_preferences):
        from healthymeal.db.models import Recipe

        recipe = Recipe(owner_id=user_without_preferences.id, title="T", ingredients="i", instructions="s")
        db_session.add(recipe)
        db_session.commit()
        client = fake_client(json.dumps(MODEL_ANSWER))

        with pytest.raises(NoDietaryPreferencesError):
            await AIPreviewService(db_session, LLMRecipeModifier(client=client)).generate_preview(
                recipe.id, user_without_preferences.id
            )

        client.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_database_failure(self, db_session, test_user, test_recipe):
        from sqlalchemy.exc import OperationalError

        service = AIPreviewService(db_session, MockRecipeModifier(latency_seconds=0))
        with patch.object(
            service.recipes, "get_recipe", side_effect=OperationalError("SELECT", {}, Exception("gone"))
        ):
            with pytest.raises(DatabaseError):
                await service.generate_preview(test_recipe.id, test_user.id)
