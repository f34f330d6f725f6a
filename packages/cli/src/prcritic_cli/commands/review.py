"""review command — run the AI review pipeline on a pull request."""

from __future__ import annotations

import click
from github import GithubException
from rich.console import Console
from rich.markup import escape

from prcritic_core.config import PROVIDERS
from prcritic_core.gh.pull_request import GitHubReader
from prcritic_core.pipeline import PipelineError
from prcritic_core.providers.base import CompletionError
from prcritic_core.reviewer import flush_api_log, print_api_log, print_review, run_review
from prcritic_core.utils.url import InvalidPrUrlError, parse_pr_url
from prcritic_cli.session import client_from_context, save_session

console = Console()


@click.command("review")
@click.argument("pr_url")
@click.option(
    "--provider",
    type=click.Choice(PROVIDERS),
    default=None,
    help="AI provider. Overrides config file.",
)
@click.option("--model", default=None, help="Model name. Overrides config file.")
@click.option(
    "--save",
    "save_path",
    default=None,
    help="Write the finished review to this session file for `fix` and `tests`.",
)
@click.option("--log-file", default=None, help="Append every AI exchange to this file as JSON lines.")
@click.option("--show-log", is_flag=True, help="Print the AI exchange log after the review.")
@click.pass_context
def review_cmd(
    ctx,
    pr_url: str,
    provider: str | None,
    model: str | None,
    save_path: str | None,
    log_file: str | None,
    show_log: bool,
):
    """Review the pull request at PR_URL.

    Gathers PR context, drafts a review, critiques and refines it, then keeps
    only the findings that point at lines inside the diff.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      GEMINI_API_KEY       Required when using --provider gemini (default)
      ANTHROPIC_API_KEY    Required when using --provider anthropic
      OPENAI_API_KEY       Required when using --provider openai
    """
    config = dict(ctx.obj["config"])
    if provider is not None:
        config["provider"] = provider
    if model is not None:
        config["model"] = model

    # Input problems are reported before any network call.
    try:
        parse_pr_url(pr_url)
    except InvalidPrUrlError as e:
        raise click.UsageError(str(e))

    token = ctx.obj["credentials"].get_credential("GITHUB_TOKEN")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    client = client_from_context(ctx, config)
    reader = GitHubReader(token, base_url=config.get("github_api_url"))

    api_log = []
    try:
        session = run_review(pr_url, config, reader, client, on_log=api_log.append)
    except (PipelineError, CompletionError) as e:
        raise click.ClickException(str(e))
    except GithubException as e:
        raise click.ClickException(f"GitHub request failed: {e}")
    finally:
        # Flushed even on failure so the failed stage can be inspected.
        if log_file and api_log:
            flush_api_log(api_log, log_file)

    coords = session.coords
    console.print(f"\n[bold]Review of {coords.full_name}#{coords.pull_number}: {escape(session.title)}[/bold]")
    print_review(session.review, discarded=session.discarded)

    if show_log:
        print_api_log(session.api_log)

    if save_path:
        save_session(session, save_path)
        console.print(f"[green]Session saved to {save_path}.[/green]")
