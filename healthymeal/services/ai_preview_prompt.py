"""
Prompts for AI recipe modification.
"""
from typing import List, Optional

SYSTEM_PROMPT = (
    "You are a professional chef and nutritionist. Modify recipes based on dietary "
    "preferences while maintaining taste and quality. Always provide detailed "
    "explanations for changes."
)


def describe_preferences(
    diet_type: Optional[str],
    allergies: Optional[List[str]],
    disliked_ingredients: Optional[List[str]],
) -> str:
    """Render preferences as one line per set field."""
    parts: List[str] = []
    if diet_type:
        parts.append(f"Diet type: {diet_type}")
    if allergies:
        parts.append(f"Allergies: {', '.join(allergies)}")
    if disliked_ingredients:
        parts.append(f"Disliked ingredients: {', '.join(disliked_ingredients)}")
    return "\n".join(parts)


def build_recipe_modification_prompt(
    title: str,
    ingredients: str,
    instructions: str,
    diet_type: Optional[str] = None,
    allergies: Optional[List[str]] = None,
    disliked_ingredients: Optional[List[str]] = None,
) -> str:
    """
    Build the user prompt asking the model to adapt a recipe.

    The model is asked for a JSON object with title, ingredients,
    instructions and explanation keys.
    """
    preferences_text = describe_preferences(diet_type, allergies, disliked_ingredients)

    return f"""Please modify the following recipe based on these dietary preferences:

{preferences_text}

Original Recipe:
Title: {title}

Ingredients:
{ingredients}

Instructions:
{instructions}

Please provide a modified version of this recipe that accommodates the dietary preferences above. Return your response as a JSON object with the following structure:
{{
  "title": "Modified recipe title (include dietary preference indicators like 'Vegan', 'Gluten-Free', etc.)",
  "ingredients": "Complete list of modified ingredients",
  "instructions": "Complete cooking instructions with any necessary adjustments",
  "explanation": "Detailed explanation of the changes made and why (include specific ingredient substitutions)"
}}

Important:
- Make realistic and practical substitutions
- Maintain the essence and appeal of the original dish
- Provide clear explanations for all changes
- Ensure the modified recipe is complete and ready to use
- If multiple dietary preferences apply, address all of them"""
