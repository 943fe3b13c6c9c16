"""initial_schema

Revision ID: 0001_initial
Revises:
Create Date: 2025-11-30 21:17:46.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DIET_TYPES = (
    'OMNIVORE', 'VEGETARIAN', 'VEGAN', 'PESCATARIAN', 'KETO',
    'PALEO', 'LOW_CARB', 'LOW_FAT', 'MEDITERRANEAN', 'OTHER',
)


def upgrade() -> None:
    """Create users, dietary preferences, recipes and recipe AI metadata."""
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # One preferences row per user, created empty at registration
    op.create_table(
        'dietary_preferences',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('diet_type', sa.Enum(*DIET_TYPES, name='diettype'), nullable=True),
        sa.Column('allergies', sa.JSON(), nullable=True),
        sa.Column('disliked_ingredients', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id'),
    )

    # Create recipes table
    op.create_table(
        'recipes',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('ingredients', sa.Text(), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=False),
        sa.Column('is_ai_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('parent_recipe_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_recipe_id'], ['recipes.id'], ondelete='SET NULL'),
        sa.CheckConstraint('length(title) <= 200', name='recipes_title_length_chk'),
        sa.CheckConstraint(
            'length(ingredients) + length(instructions) <= 10000',
            name='recipes_content_length_chk',
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_recipes_owner_id_created_at', 'recipes', ['owner_id', 'created_at'])
    op.create_index('ix_recipes_parent_recipe_id', 'recipes', ['parent_recipe_id'])

    # Provenance of AI-generated recipes
    op.create_table(
        'recipe_ai_metadata',
        sa.Column('recipe_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('model', sa.String(255), nullable=False),
        sa.Column('provider', sa.String(255), nullable=False),
        sa.Column('generation_duration', sa.Integer(), nullable=False),
        sa.Column('raw_response', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('recipe_id'),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('recipe_ai_metadata')
    op.drop_index('ix_recipes_parent_recipe_id', table_name='recipes')
    op.drop_index('ix_recipes_owner_id_created_at', table_name='recipes')
    op.drop_table('recipes')
    op.drop_table('dietary_preferences')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    # Drop enum type (postgres only)
    sa.Enum(name='diettype').drop(op.get_bind(), checkfirst=True)
