"""tests / test-prompt commands — test suggestions for a reviewed pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from prcritic_core.followup import FollowupError, generate_test_prompt, generate_test_suggestions
from prcritic_core.models import TestSuggestions
from prcritic_core.providers.base import CompletionError
from prcritic_cli.session import client_from_context, load_session, save_session

console = Console()


@click.command("tests")
@click.argument("session_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--save/--no-save",
    default=True,
    show_default=True,
    help="Store the suggestions in the session file for `test-prompt`.",
)
@click.pass_context
def tests_cmd(ctx, session_path: str, save: bool):
    """Suggest unit tests, integration tests and manual checks for a saved review."""
    session = load_session(session_path)
    client = client_from_context(ctx)
    try:
        suggestions = generate_test_suggestions(
            client,
            session.context_summary,
            session.diff,
            model=ctx.obj["config"].get("model"),
            on_log=session.api_log.append,
        )
    except (CompletionError, FollowupError) as e:
        raise click.ClickException(f"Failed to generate test suggestions: {e}")

    for key, (_, label) in TestSuggestions.CATEGORIES.items():
        items = suggestions.items(key)
        console.print(f"\n[bold]{label}[/bold] [dim]({key})[/dim]")
        if not items:
            console.print("  [dim]none[/dim]")
        for i, item in enumerate(items, 1):
            console.print(f"  {i}. {escape(item)}")

    if save:
        session.test_suggestions = suggestions
        save_session(session, session_path)


@click.command("test-prompt")
@click.argument("session_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("category", type=click.Choice(list(TestSuggestions.CATEGORIES)))
@click.argument("index", type=click.IntRange(min=1))
@click.pass_context
def test_prompt_cmd(ctx, session_path: str, category: str, index: int):
    """Print a prompt that implements suggested test INDEX of CATEGORY."""
    session = load_session(session_path)
    if session.test_suggestions is None:
        raise click.UsageError(f"No test suggestions in {session_path}. Run `prcritic tests {session_path}` first.")

    items = session.test_suggestions.items(category)
    if index > len(items):
        raise click.UsageError(f"There are {len(items)} {category} suggestion(s); there is no #{index}.")

    _, label = TestSuggestions.CATEGORIES[category]
    client = client_from_context(ctx)
    try:
        prompt = generate_test_prompt(
            client,
            items[index - 1],
            label,
            session.context_summary,
            session.diff,
            model=ctx.obj["config"].get("model"),
        )
    except CompletionError as e:
        raise click.ClickException(f"Failed to generate test creation prompt: {e}")

    click.echo(prompt)
