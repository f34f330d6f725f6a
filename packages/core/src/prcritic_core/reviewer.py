"""Core PR review orchestration."""

from __future__ import annotations

import json
import logging
from typing import Callable

from rich.console import Console
from rich.markup import escape

from prcritic_core.config import PROVIDER_CREDENTIALS, Credentials
from prcritic_core.models import ApiLogEntry, PipelineContext, PrCoordinates, ReviewResult, ReviewSession
from prcritic_core.pipeline import ReviewPipeline
from prcritic_core.providers.base import BaseCompletionClient
from prcritic_core.utils.code import is_snapshot_worthy
from prcritic_core.utils.diff import changed_files, parse_diff_ranges
from prcritic_core.utils.links import attach_links
from prcritic_core.utils.url import parse_pr_url
from prcritic_core.validation import discarded_findings, filter_findings

console = Console()
logger = logging.getLogger(__name__)

README_PLACEHOLDER = "README.md not found in the repository."
SNAPSHOT_PLACEHOLDER = "(This is a new file or could not be fetched from the base branch.)"


class MissingCredentialError(ValueError):
    pass


def get_client(config: dict, credentials: Credentials) -> BaseCompletionClient:
    provider = config["provider"]
    if provider not in PROVIDER_CREDENTIALS:
        raise ValueError(f"Unknown model provider: {provider!r}. Choose 'gemini', 'anthropic' or 'openai'.")

    name = PROVIDER_CREDENTIALS[provider]
    api_key = credentials.get_credential(name)
    if not api_key:
        raise MissingCredentialError(f"{name} is not set. It is required for the {provider} provider.")

    if provider == "gemini":
        from prcritic_core.providers.gemini import GeminiClient

        return GeminiClient(api_key=api_key)
    if provider == "anthropic":
        from prcritic_core.providers.anthropic import AnthropicClient

        return AnthropicClient(api_key=api_key)

    from prcritic_core.providers.openai import OpenAIClient

    return OpenAIClient(api_key=api_key)


def fetch_snapshots(reader, coords: PrCoordinates, ref: str, paths) -> dict[str, str | None]:
    """Fetch the base-branch content of each changed file, one file at a time.

    A file that cannot be fetched maps to None; it never aborts the others.
    """
    snapshots: dict[str, str | None] = {}
    for path in paths:
        if path in snapshots:
            continue
        if not is_snapshot_worthy(path):
            logger.debug("Skipping snapshot for non-code file %s", path)
            snapshots[path] = None
            continue
        try:
            snapshots[path] = reader.get_file_snapshot(coords.owner, coords.repo, ref, path)
        except Exception as e:
            logger.warning("Could not fetch snapshot of %s@%s: %s", path, ref, e)
            snapshots[path] = None
    return snapshots


def render_snapshots(snapshots: dict[str, str | None], max_chars: int | None = None) -> str:
    """Concatenate snapshots into the block the context-gathering prompt expects."""
    blocks = []
    for path, content in snapshots.items():
        if content is None:
            content = SNAPSHOT_PLACEHOLDER
        elif max_chars and len(content) > max_chars:
            content = content[:max_chars] + "\n... [file truncated]"
        blocks.append(f"--- File: {path} ---\n{content}\n\n")
    return "".join(blocks)


def run_review(
    pr_url: str,
    config: dict,
    reader,
    client: BaseCompletionClient,
    on_log: Callable[[ApiLogEntry], None] | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> ReviewSession:
    """Run the full PR review and return everything needed for follow-ups.

    Raises InvalidPrUrlError before any fetch, PipelineError when an AI stage
    fails. There is no partial result: either a validated, linked review
    comes back or an exception does.
    """
    coords = parse_pr_url(pr_url)

    console.print(f"[cyan]Fetching PR data for {coords.full_name}#{coords.pull_number}...[/cyan]")
    metadata = reader.get_pr_metadata(coords)
    diff = reader.get_diff(coords)
    ranges = parse_diff_ranges(diff)

    console.print("[cyan]Fetching repository context...[/cyan]")
    readme = reader.get_readme(coords.owner, coords.repo, metadata.base_ref)
    if readme is None:
        readme = README_PLACEHOLDER
    snapshots = fetch_snapshots(reader, coords, metadata.base_ref, changed_files(diff))

    context = PipelineContext(
        title=metadata.title,
        body=metadata.body,
        diff=diff,
        readme=readme,
        snapshots=render_snapshots(snapshots, config.get("max_chars_per_file")),
    )

    def _log_and_report(entry: ApiLogEntry):
        if on_log is not None:
            on_log(entry)
        console.print(f"[dim]  {entry.step} done.[/dim]")

    console.print("[cyan]Running review pipeline...[/cyan]")
    pipeline = ReviewPipeline(client, context, model=config.get("model"), on_log=_log_and_report)
    review = pipeline.run(should_cancel=should_cancel)

    console.print("[cyan]Validating review...[/cyan]")
    dropped = discarded_findings(review, ranges)
    validated = filter_findings(review, ranges)

    final = attach_links(validated, coords, max_workers=config.get("link_workers", 8))

    return ReviewSession(
        coords=coords,
        title=metadata.title,
        diff=diff,
        context_summary=pipeline.summary or "",
        snapshots=snapshots,
        review=final,
        discarded=len(dropped),
        api_log=list(pipeline.log),
    )


def print_review(review: ReviewResult, discarded: int = 0) -> None:
    """Print strengths and findings to the terminal."""
    _category_color = {"security": "red", "correctness": "yellow", "performance": "magenta", "style": "blue"}

    if review.strengths:
        console.print("\n[bold green]Strengths[/bold green]")
        for strength in review.strengths:
            console.print(f"  • {escape(strength)}")

    if not review.improvements:
        console.print("\n[green]No addressable improvements found.[/green]")
    else:
        console.print(f"\n[bold]Improvements — {len(review.improvements)} finding(s)[/bold]\n")
        for i, f in enumerate(review.improvements, 1):
            color = _category_color.get(f.category.lower(), "white")
            console.print(
                f"[bold]{i}.[/bold] [bold cyan]{escape(f.file)}[/bold cyan]  line [bold]{f.line}[/bold]  "
                f"[{color}]{escape(f.category.upper())}[/{color}]"
            )
            console.print(f"   {escape(f.comment)}")
            if f.link:
                console.print(f"   [dim]{f.link}[/dim]")
            console.print()

    if discarded:
        console.print(f"[dim]{discarded} suggestion(s) outside the diff were discarded.[/dim]")


def print_api_log(entries: list[ApiLogEntry]) -> None:
    for entry in entries:
        status = f"[red]error: {escape(entry.error)}[/red]" if entry.error else "[green]ok[/green]"
        console.print(f"[bold]{entry.timestamp}[/bold]  {escape(entry.step)}  {status}")
        console.print(f"[dim]{len(entry.prompt)} prompt chars, {len(entry.response or '')} response chars[/dim]")


def flush_api_log(entries: list[ApiLogEntry], log_path: str = "prcritic-api.log") -> None:
    """Append audit entries to ``log_path``, one JSON object per line."""
    with open(log_path, "a", encoding="utf-8") as f:
        for entry in entries:
            f.write(json.dumps(entry.to_dict()) + "\n")
