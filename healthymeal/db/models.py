"""
SQLAlchemy ORM models for HealthyMeal database.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, DateTime, Text,
    ForeignKey, Enum as SQLEnum, Boolean, JSON, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
import uuid

from healthymeal.db.database import Base
from healthymeal.models.schemas import DietType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User account with authentication."""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    dietary_preferences = relationship(
        "DietaryPreferences", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    recipes = relationship("Recipe", back_populates="owner", cascade="all, delete-orphan")


class DietaryPreferences(Base):
    """One row per user; all-null fields mean no preferences are set."""
    __tablename__ = "dietary_preferences"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    diet_type = Column(SQLEnum(DietType), nullable=True)
    allergies = Column(JSON, nullable=True)  # List[str]
    disliked_ingredients = Column(JSON, nullable=True)  # List[str]
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="dietary_preferences")

    def has_any(self) -> bool:
        """True if at least one preference is set."""
        return (
            self.diet_type is not None
            or bool(self.allergies)
            or bool(self.disliked_ingredients)
        )


class Recipe(Base):
    """User-created or AI-modified recipe."""
    __tablename__ = "recipes"
    __table_args__ = (
        # Recipe list for a user, newest first
        Index('ix_recipes_owner_id_created_at', 'owner_id', 'created_at'),
        CheckConstraint('length(title) <= 200', name='recipes_title_length_chk'),
        CheckConstraint(
            'length(ingredients) + length(instructions) <= 10000',
            name='recipes_content_length_chk',
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    ingredients = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False)
    is_ai_generated = Column(Boolean, default=False, nullable=False)
    parent_recipe_id = Column(
        UUID(as_uuid=True), ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="recipes")
    ai_metadata = relationship(
        "RecipeAIMetadata", back_populates="recipe", uselist=False, cascade="all, delete-orphan"
    )


class RecipeAIMetadata(Base):
    """Provenance of an AI-generated recipe."""
    __tablename__ = "recipe_ai_metadata"

    recipe_id = Column(UUID(as_uuid=True), ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    model = Column(String(255), nullable=False)
    provider = Column(String(255), nullable=False)
    generation_duration = Column(Integer, nullable=False)  # milliseconds
    raw_response = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    recipe = relationship("Recipe", back_populates="ai_metadata")
