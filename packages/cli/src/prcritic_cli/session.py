"""Helpers shared by the commands that work on a saved review.

A session file is a finished review written to disk as JSON; the follow-up
commands (fix, tests, test-prompt) read it back instead of re-running the
pipeline.
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from prcritic_core.models import ReviewSession
from prcritic_core.providers.base import BaseCompletionClient
from prcritic_core.reviewer import MissingCredentialError, get_client


def save_session(session: ReviewSession, path: str) -> None:
    Path(path).write_text(json.dumps(session.to_dict(), indent=2), encoding="utf-8")


def load_session(path: str) -> ReviewSession:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return ReviewSession.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise click.ClickException(f"Could not read session file {path}: {e}")


def client_from_context(ctx: click.Context, config: dict | None = None) -> BaseCompletionClient:
    """Build the configured completion client, or fail with a usage error."""
    try:
        return get_client(config or ctx.obj["config"], ctx.obj["credentials"])
    except MissingCredentialError as e:
        raise click.UsageError(str(e))
