"""CLI entry point for prcritic.

Commands:
  review       — run the three-stage AI review on a pull request
  fix          — build a coding-assistant prompt that fixes one finding
  tests        — suggest test cases for a reviewed pull request
  test-prompt  — build a coding-assistant prompt that implements one suggested test
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.logging import RichHandler

from prcritic_cli.commands.fix import fix_cmd
from prcritic_cli.commands.review import review_cmd
from prcritic_cli.commands.tests import test_prompt_cmd, tests_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("prcritic"),
    prog_name="prcritic",
)
@click.option(
    "--config",
    "config_path",
    default=".prcritic.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRCRITIC_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every AI request and GitHub fetch.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Multi-stage AI code review for GitHub pull requests."""
    from prcritic_core.config import load_config
    from prcritic_cli.auth import load_credentials

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(str(e))

    # Resolved once here; every subcommand receives the same credentials.
    ctx.obj["config"] = config
    ctx.obj["credentials"] = load_credentials()


main.add_command(review_cmd)
main.add_command(fix_cmd)
main.add_command(tests_cmd)
main.add_command(test_prompt_cmd)
