"""
Recipe persistence service.
"""
import logging
import math
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from healthymeal.db.models import Recipe, RecipeAIMetadata
from healthymeal.errors import DatabaseError, ParentRecipeNotFoundError
from healthymeal.models.schemas import (
    Pagination,
    RecipeCreate,
    RecipeListResponse,
    RecipeResponse,
)

logger = logging.getLogger(__name__)


class RecipeService:
    """
    Service for a user's recipe collection.

    All reads are scoped to the owning user; a recipe belonging to someone
    else is indistinguishable from a missing one.
    """

    def __init__(self, db: Session):
        """
        Initialize the recipe service.

        Args:
            db: SQLAlchemy database session for persistence operations.
        """
        self.db = db

    def get_recipe(self, recipe_id: UUID, owner_id: UUID) -> Optional[Recipe]:
        """Fetch one recipe owned by owner_id, or None."""
        return (
            self.db.query(Recipe)
            .options(joinedload(Recipe.ai_metadata))
            .filter(Recipe.id == recipe_id, Recipe.owner_id == owner_id)
            .first()
        )

    def list_recipes(
        self,
        owner_id: UUID,
        page: int = 1,
        limit: int = 20,
        is_ai_generated: Optional[bool] = None,
        parent_recipe_id: Optional[UUID] = None,
    ) -> RecipeListResponse:
        """
        List a user's recipes, newest first.

        Args:
            owner_id: User whose recipes to list
            page: 1-based page number
            limit: Page size
            is_ai_generated: Only AI (True) or only hand-written (False) recipes
            parent_recipe_id: Only AI variants of this recipe

        Returns:
            RecipeListResponse with data and pagination block
        """
        query = self.db.query(Recipe).filter(Recipe.owner_id == owner_id)

        if is_ai_generated is not None:
            query = query.filter(Recipe.is_ai_generated == is_ai_generated)
        if parent_recipe_id is not None:
            query = query.filter(Recipe.parent_recipe_id == parent_recipe_id)

        total = query.count()
        recipes = (
            query.options(joinedload(Recipe.ai_metadata))
            .order_by(Recipe.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return RecipeListResponse(
            data=[RecipeResponse.model_validate(recipe) for recipe in recipes],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )

    def create_recipe(self, owner_id: UUID, command: RecipeCreate) -> Recipe:
        """
        Create a recipe and, for AI recipes, its metadata row in one transaction.

        Raises:
            ParentRecipeNotFoundError: parent_recipe_id is not one of the user's recipes
            DatabaseError: the insert failed
        """
        if command.parent_recipe_id is not None:
            if self.get_recipe(command.parent_recipe_id, owner_id) is None:
                raise ParentRecipeNotFoundError(str(command.parent_recipe_id))

        recipe = Recipe(
            owner_id=owner_id,
            title=command.title,
            ingredients=command.ingredients,
            instructions=command.instructions,
            is_ai_generated=command.is_ai_generated,
            parent_recipe_id=command.parent_recipe_id,
        )
        if command.ai_metadata is not None:
            recipe.ai_metadata = RecipeAIMetadata(
                owner_id=owner_id,
                model=command.ai_metadata.model,
                provider=command.ai_metadata.provider,
                generation_duration=command.ai_metadata.generation_duration,
                raw_response=command.ai_metadata.raw_response,
            )

        try:
            self.db.add(recipe)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to create recipe")
            raise DatabaseError("create_recipe", {"error_type": type(e).__name__}) from e

        self.db.refresh(recipe)
        logger.info(f"Created recipe {recipe.id} (ai={recipe.is_ai_generated}) for user {owner_id}")
        return recipe

    def delete_recipe(self, recipe_id: UUID, owner_id: UUID) -> bool:
        """
        Delete a recipe. AI variants keep existing with their parent link cleared.

        Returns:
            True if deleted, False if not found or not owned
        """
        recipe = self.get_recipe(recipe_id, owner_id)
        if recipe is None:
            return False

        try:
            self.db.query(Recipe).filter(Recipe.parent_recipe_id == recipe_id).update(
                {Recipe.parent_recipe_id: None}, synchronize_session=False
            )
            self.db.delete(recipe)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Failed to delete recipe {recipe_id}")
            raise DatabaseError("delete_recipe", {"error_type": type(e).__name__}) from e

        return True
