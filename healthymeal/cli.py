"""
CLI for HealthyMeal: database setup and AI preview requests against a running API.
"""
import asyncio
import json

import click

from healthymeal.client.preview import (
    AIPreviewController,
    Failed,
    HttpPreviewTransport,
    Idle,
    Loading,
    PreviewErrorKind,
    PreviewState,
    Success,
)

# Exit codes per failure kind so scripts can branch on them
EXIT_CODES = {
    PreviewErrorKind.UNKNOWN: 1,
    PreviewErrorKind.NO_PREFERENCES: 2,
    PreviewErrorKind.NOT_FOUND: 3,
    PreviewErrorKind.RATE_LIMIT: 4,
    PreviewErrorKind.SERVICE_UNAVAILABLE: 5,
}


def describe_state(state: PreviewState) -> str:
    """One-line human summary of a preview state."""
    if isinstance(state, Idle):
        return "idle"
    if isinstance(state, Loading):
        return "⏳ Generating AI preview..."
    if isinstance(state, Success):
        return f"✓ Preview ready: {state.modified_recipe.get('title', '')}"
    if state.kind == PreviewErrorKind.NO_PREFERENCES:
        return "❌ No dietary preferences set. Add them in your profile settings first."
    if state.kind == PreviewErrorKind.NOT_FOUND:
        return "❌ Recipe not found."
    if state.kind == PreviewErrorKind.RATE_LIMIT:
        return f"⚠️  Too many AI requests. Try again in {state.retry_after_seconds}s."
    if state.kind == PreviewErrorKind.SERVICE_UNAVAILABLE:
        return "⚠️  AI service is temporarily unavailable. Try again later."
    return f"❌ {state.message}"


def _echo_success(state: Success) -> None:
    modified = state.modified_recipe
    click.echo("=" * 60)
    click.echo(f"ORIGINAL: {state.original_recipe.get('title', '')}")
    click.echo(f"MODIFIED: {modified.get('title', '')}")
    click.echo("=" * 60)
    click.echo("\n🥕 INGREDIENTS")
    click.echo(modified.get("ingredients", ""))
    click.echo("\n📋 INSTRUCTIONS")
    click.echo(modified.get("instructions", ""))
    click.echo("\n💡 WHAT CHANGED")
    click.echo(modified.get("explanation", ""))
    metadata = state.ai_metadata
    click.echo(
        f"\n({metadata.get('provider')}/{metadata.get('model')}, "
        f"{metadata.get('generation_duration')} ms)"
    )


async def run_preview(recipe_id: str, base_url: str, token: str) -> PreviewState:
    """Drive one preview request, echoing every state transition."""
    async with HttpPreviewTransport(base_url, token=token) as transport:
        controller = AIPreviewController(transport)
        unsubscribe = controller.subscribe(lambda state: click.echo(describe_state(state)))
        try:
            return await controller.generate(recipe_id)
        finally:
            unsubscribe()


@click.group()
def cli():
    """HealthyMeal - recipes with AI dietary adaptation"""


@cli.command("init-db")
def init_db():
    """Create all database tables."""
    from healthymeal.db.database import create_tables

    create_tables()
    click.echo("✓ Database tables created")


@cli.command()
@click.argument("recipe_id")
@click.option("--base-url", default="http://localhost:8000", show_default=True, help="API base URL")
@click.option("--token", envvar="HEALTHYMEAL_TOKEN", required=True, help="Bearer token (or HEALTHYMEAL_TOKEN)")
@click.option("--json", "as_json", is_flag=True, help="Print the raw preview as JSON")
def preview(recipe_id: str, base_url: str, token: str, as_json: bool):
    """Generate an AI preview of RECIPE_ID for your dietary preferences."""
    state = asyncio.run(run_preview(recipe_id, base_url, token))

    if isinstance(state, Success):
        if as_json:
            click.echo(json.dumps({
                "original_recipe": state.original_recipe,
                "modified_recipe": state.modified_recipe,
                "ai_metadata": state.ai_metadata,
                "applied_preferences": state.applied_preferences,
            }, indent=2))
        else:
            _echo_success(state)
        return

    if isinstance(state, Failed):
        raise SystemExit(EXIT_CODES[state.kind])


if __name__ == "__main__":
    cli()
