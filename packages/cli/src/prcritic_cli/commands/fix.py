"""fix command — turn one review finding into a prompt for a coding assistant."""

from __future__ import annotations

import click

from prcritic_core.followup import SnapshotNotFoundError, generate_fix_prompt
from prcritic_core.providers.base import CompletionError
from prcritic_cli.session import client_from_context, load_session


@click.command("fix")
@click.argument("session_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("index", type=click.IntRange(min=1))
@click.option(
    "--context-lines",
    type=click.IntRange(min=0),
    default=None,
    help="Lines of code shown on each side of the finding. Overrides config file.",
)
@click.pass_context
def fix_cmd(ctx, session_path: str, index: int, context_lines: int | None):
    """Print a fix prompt for finding number INDEX of a saved review."""
    session = load_session(session_path)
    findings = session.review.improvements
    if index > len(findings):
        raise click.UsageError(f"The review has {len(findings)} finding(s); there is no finding #{index}.")

    config = ctx.obj["config"]
    if context_lines is None:
        context_lines = config.get("snippet_context_lines", 5)

    client = client_from_context(ctx)
    try:
        prompt = generate_fix_prompt(
            client,
            findings[index - 1],
            session.snapshots,
            model=config.get("model"),
            context_lines=context_lines,
        )
    except SnapshotNotFoundError as e:
        raise click.ClickException(str(e))
    except CompletionError as e:
        raise click.ClickException(f"Failed to generate fix prompt: {e}")

    click.echo(prompt)
