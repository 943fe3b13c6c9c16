"""
Rule-based stand-in for the AI recipe modifier.

Applies common substitutions for the user's diet, allergies and disliked
ingredients and wraps the result in a chat-completion shaped raw response,
so the preview flow can run without an AI provider (local development,
demos, tests).
"""
import asyncio
import json
import re
import time
import uuid
from typing import Dict, List, Optional, Tuple

from healthymeal.config import settings
from healthymeal.db.models import DietaryPreferences, Recipe
from healthymeal.models.schemas import AIMetadata, ModifiedRecipePreview
from healthymeal.services.ai_preview_service import Modification, elapsed_ms

MOCK_MODEL = "anthropic/claude-3.5-sonnet"

CROSS_CONTAMINATION_NOTE = (
    "Note: Ensure all cooking surfaces and utensils are free from "
    "cross-contamination with allergens."
)

# (pattern, replacement) pairs, applied in order
DIET_SUBSTITUTIONS: Dict[str, List[Tuple[str, str]]] = {
    "vegan": [
        (r"\beggs?\b", "flax eggs"),
        (r"\bmilk\b", "almond milk"),
        (r"\bbutter\b", "vegan butter"),
        (r"\bcheese\b", "vegan cheese"),
        (r"\bhoney\b", "maple syrup"),
    ],
    "vegetarian": [
        (r"\bchicken\b", "tofu"),
        (r"\bbeef\b", "tempeh"),
        (r"\bpork\b", "mushrooms"),
    ],
}

ALLERGY_SUBSTITUTIONS: Dict[str, List[Tuple[str, str]]] = {
    "gluten": [
        (r"\ball-purpose flour\b", "gluten-free flour blend"),
        (r"\bwheat flour\b", "rice flour"),
        (r"(?<!-free )(?<!rice )\bflour\b(?! blend)", "almond flour"),
    ],
    "dairy": [
        (r"\bmilk\b", "oat milk"),
        (r"\bcream\b", "coconut cream"),
        (r"\bbutter\b", "coconut oil"),
    ],
    "nuts": [
        (r"\balmond\b", "sunflower seed"),
        (r"\bwalnuts?\b", "pumpkin seeds"),
        (r"\bpeanuts?\b", "seeds"),
    ],
}

VEGAN_INSTRUCTION_SUBSTITUTIONS: List[Tuple[str, str]] = [
    (r"\bbeat the eggs\b", "prepare the flax eggs (1 tbsp flaxseed + 3 tbsp water per egg)"),
    (r"\bmelt the butter\b", "melt the vegan butter"),
]


def _apply(text: str, substitutions: List[Tuple[str, str]]) -> str:
    for pattern, replacement in substitutions:
        text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
    return text


def _diet_value(preferences: DietaryPreferences) -> Optional[str]:
    diet_type = preferences.diet_type
    if diet_type is None:
        return None
    return getattr(diet_type, "value", diet_type)


def modify_title(title: str, preferences: DietaryPreferences) -> str:
    """Append diet and allergen-free markers, e.g. 'Pancakes (Vegan, Gluten-Free)'."""
    suffixes: List[str] = []

    diet = _diet_value(preferences)
    if diet and diet != "omnivore":
        suffixes.append(diet[:1].upper() + diet[1:])

    if preferences.allergies:
        suffixes.append(
            ", ".join(allergy[:1].upper() + allergy[1:] + "-Free" for allergy in preferences.allergies)
        )

    if not suffixes:
        return f"{title} (Modified)"
    return f"{title} ({', '.join(suffixes)})"


def modify_ingredients(ingredients: str, preferences: DietaryPreferences) -> str:
    """Swap ingredients that conflict with the preferences."""
    modified = _apply(ingredients, DIET_SUBSTITUTIONS.get(_diet_value(preferences), []))

    allergies = [allergy.lower() for allergy in preferences.allergies or []]
    for allergy, substitutions in ALLERGY_SUBSTITUTIONS.items():
        if allergy in allergies:
            modified = _apply(modified, substitutions)

    for disliked in preferences.disliked_ingredients or []:
        modified = re.sub(
            rf"\b{re.escape(disliked)}\b",
            f"[substitute for {disliked}]",
            modified,
            flags=re.IGNORECASE,
        )

    return modified


def modify_instructions(instructions: str, preferences: DietaryPreferences) -> str:
    """Adjust method steps and add an allergen handling note."""
    modified = instructions
    if _diet_value(preferences) == "vegan":
        modified = _apply(modified, VEGAN_INSTRUCTION_SUBSTITUTIONS)
    if preferences.allergies:
        modified += f"\n\n{CROSS_CONTAMINATION_NOTE}"
    return modified


def generate_explanation(preferences: DietaryPreferences) -> str:
    """Summarize which preferences drove the changes."""
    changes: List[str] = []
    diet = _diet_value(preferences)
    if diet:
        changes.append(f"Modified to be {diet}")
    if preferences.allergies:
        changes.append(f"Removed allergens: {', '.join(preferences.allergies)}")
    if preferences.disliked_ingredients:
        changes.append(f"Replaced disliked ingredients: {', '.join(preferences.disliked_ingredients)}")

    explanation = "This recipe has been modified based on your dietary preferences."
    if changes:
        explanation += "\n\nKey changes:\n- " + "\n- ".join(changes)
    return explanation


class MockRecipeModifier:
    """Offline RecipeModifier built on the substitution tables above."""

    def __init__(self, latency_seconds: float = None):
        self.latency_seconds = (
            settings.ai_mock_latency_seconds if latency_seconds is None else latency_seconds
        )

    async def modify(self, recipe: Recipe, preferences: DietaryPreferences) -> Modification:
        started = time.perf_counter()
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

        modified = ModifiedRecipePreview(
            title=modify_title(recipe.title, preferences),
            ingredients=modify_ingredients(recipe.ingredients, preferences),
            instructions=modify_instructions(recipe.instructions, preferences),
            explanation=generate_explanation(preferences),
        )

        prompt_tokens = (len(recipe.ingredients) + len(recipe.instructions)) // 4
        completion_tokens = (
            len(modified.ingredients) + len(modified.instructions) + len(modified.explanation)
        ) // 4
        raw_response = {
            "id": f"gen-{uuid.uuid4().hex[:12]}",
            "model": MOCK_MODEL,
            "created": int(time.time()),
            "object": "chat.completion",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": json.dumps(modified.model_dump())},
                    "finish_reason": "stop",
                }
            ],
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        }

        return Modification(
            recipe=modified,
            metadata=AIMetadata(
                model=MOCK_MODEL,
                provider=settings.ai_provider_name,
                generation_duration=elapsed_ms(started),
                raw_response=raw_response,
            ),
        )
