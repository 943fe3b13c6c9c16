"""
Shared pytest fixtures for HealthyMeal backend tests.

This module provides common fixtures for:
- Database sessions
- Test users, dietary preferences and authentication
- FastAPI test client with the AI backend stubbed out
- Recipes
"""
import os
import pytest
from typing import Generator, Dict

# Set test environment variables BEFORE importing app modules
# This ensures Settings loads in debug/test mode
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from healthymeal.api.dependencies import get_recipe_modifier
from healthymeal.db.database import Base, get_db
from healthymeal.db.models import DietaryPreferences, Recipe, RecipeAIMetadata, User
from healthymeal.auth.utils import hash_password
from healthymeal.auth.jwt import create_access_token
from healthymeal.models.schemas import DietType
from healthymeal.services.mock_ai_service import MockRecipeModifier
from healthymeal.main import app


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database for testing.

    Uses SQLite for fast, isolated tests without PostgreSQL dependency.
    Each test function gets a fresh database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with database and AI backend overrides.

    AI previews use the rule-based modifier so no provider is called.
    Entering the client runs the lifespan, which starts the preview rate
    limiter; leaving it shuts the limiter down and clears its entries.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_recipe_modifier] = lambda: MockRecipeModifier(latency_seconds=0)

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# User Fixtures
# ============================================================================

def _create_user(db_session, email: str, is_active: bool = True, **preferences) -> User:
    user = User(
        email=email,
        hashed_password=hash_password("testpassword123"),
        is_active=is_active,
    )
    user.dietary_preferences = DietaryPreferences(**preferences)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session) -> User:
    """Create a standard test user with preferences set.

    Returns a persisted User instance with:
    - email: test@example.com
    - password: testpassword123
    - diet_type: VEGAN, allergies: gluten, disliked: cilantro
    """
    return _create_user(
        db_session,
        "test@example.com",
        diet_type=DietType.VEGAN,
        allergies=["gluten"],
        disliked_ingredients=["cilantro"],
    )


@pytest.fixture
def user_without_preferences(db_session) -> User:
    """Create a user whose preferences row is empty, as after registration."""
    return _create_user(db_session, "noprefs@example.com")


@pytest.fixture
def other_user(db_session) -> User:
    """Create a second user to check ownership scoping."""
    return _create_user(db_session, "other@example.com", diet_type=DietType.VEGETARIAN)


@pytest.fixture
def inactive_user(db_session) -> User:
    """Create an inactive test user."""
    return _create_user(db_session, "inactive@example.com", is_active=False)


# ============================================================================
# Authentication Fixtures
# ============================================================================

def _headers_for(user: User) -> Dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user) -> Dict[str, str]:
    """Create Authorization headers with Bearer token."""
    return _headers_for(test_user)


@pytest.fixture
def no_preferences_headers(user_without_preferences) -> Dict[str, str]:
    """Authorization headers for the user without preferences."""
    return _headers_for(user_without_preferences)


@pytest.fixture
def other_auth_headers(other_user) -> Dict[str, str]:
    """Authorization headers for the second user."""
    return _headers_for(other_user)


@pytest.fixture
def inactive_auth_headers(inactive_user) -> Dict[str, str]:
    """Create Authorization headers for inactive user."""
    return _headers_for(inactive_user)


# ============================================================================
# Recipe Fixtures
# ============================================================================

@pytest.fixture
def test_recipe(db_session, test_user) -> Recipe:
    """Create a hand-written recipe owned by the test user."""
    recipe = Recipe(
        owner_id=test_user.id,
        title="Classic Pancakes",
        ingredients="2 cups flour\n2 eggs\n1 cup milk\n2 tbsp butter\n1 tbsp honey",
        instructions="Beat the eggs with the milk.\nMelt the butter.\nWhisk in the flour and cook.",
    )
    db_session.add(recipe)
    db_session.commit()
    db_session.refresh(recipe)
    return recipe


@pytest.fixture
def other_user_recipe(db_session, other_user) -> Recipe:
    """Create a recipe owned by the second user."""
    recipe = Recipe(
        owner_id=other_user.id,
        title="Beef Stew",
        ingredients="500g beef\n3 carrots",
        instructions="Brown the beef.\nSimmer with carrots for 2 hours.",
    )
    db_session.add(recipe)
    db_session.commit()
    db_session.refresh(recipe)
    return recipe


@pytest.fixture
def ai_recipe(db_session, test_user, test_recipe) -> Recipe:
    """Create a saved AI variant of test_recipe."""
    recipe = Recipe(
        owner_id=test_user.id,
        title="Classic Pancakes (Vegan)",
        ingredients="2 cups almond flour\n2 flax eggs\n1 cup almond milk",
        instructions="Prepare the flax eggs.\nWhisk in the flour and cook.",
        is_ai_generated=True,
        parent_recipe_id=test_recipe.id,
    )
    recipe.ai_metadata = RecipeAIMetadata(
        owner_id=test_user.id,
        model="anthropic/claude-3.5-sonnet",
        provider="openrouter",
        generation_duration=1850,
        raw_response={"id": "gen-test"},
    )
    db_session.add(recipe)
    db_session.commit()
    db_session.refresh(recipe)
    return recipe
