"""Credential resolution for the command line.

Resolution happens once, in the top-level command, and yields an immutable
Credentials object that is handed to every collaborator. For the GitHub
token the order is:
  1. GITHUB_TOKEN environment variable (CI / explicit override)
  2. `gh auth token` (GitHub CLI session — works after `gh auth login`)
AI provider keys come from their environment variables only.
"""

from __future__ import annotations

import logging
import os
import subprocess

from prcritic_core.config import Credentials, resolve_credentials

logger = logging.getLogger(__name__)


def gh_cli_token() -> str | None:
    """Return the token stored by `gh auth login`, or None. Never raises."""
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out.
        return None
    if result.returncode != 0:
        return None
    token = result.stdout.strip()
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
    return token or None


def load_credentials() -> Credentials:
    if os.environ.get("GITHUB_TOKEN"):
        return resolve_credentials()
    return resolve_credentials({"GITHUB_TOKEN": gh_cli_token()})
