"""Follow-up requests built on top of a finished review.

Each call is a single exchange with the completion client. The fix and
test-implementation prompts return the model's answer followed by a context
trailer that repeats the structured inputs, so the result can be pasted
into a coding assistant without any further context.
"""

from __future__ import annotations

import logging
from typing import Callable

from prcritic_core.models import ApiLogEntry, Finding, TestSuggestions
from prcritic_core.prompts import (
    FIX_DETAILS,
    FIX_PROMPT,
    FIX_TRAILER,
    TEST_PROMPT,
    TEST_SUGGESTIONS_PROMPT,
    TEST_SUGGESTIONS_SCHEMA,
    TEST_TRAILER,
)
from prcritic_core.providers.base import BaseCompletionClient, CompletionError
from prcritic_core.validation import TestSuggestionsParseFailure, parse_test_suggestions

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES = 5

STEP_FIX_PROMPT = "Generate Copilot Prompt"
STEP_TEST_PROMPT = "Generate Test Creation Prompt"
STEP_TEST_SUGGESTIONS = "Test Suggestions"


class SnapshotNotFoundError(LookupError):
    """No pre-change content is available for the file a finding points at."""


class FollowupError(RuntimeError):
    pass


def extract_snippet(content: str, line: int, context_lines: int = DEFAULT_CONTEXT_LINES) -> str:
    """Return ``context_lines`` lines on each side of ``line`` (1-based), clamped to the file."""
    lines = content.split("\n")
    index = line - 1
    start = max(0, index - context_lines)
    end = min(len(lines), index + context_lines + 1)
    return "\n".join(lines[start:end])


def _ask(
    client: BaseCompletionClient,
    model: str | None,
    step: str,
    prompt: str,
    schema: dict | None,
    on_log: Callable[[ApiLogEntry], None] | None,
) -> str:
    # A failed follow-up is logged, then propagates; there is no fallback answer.
    try:
        text = client.complete(model, prompt, schema)
    except CompletionError as e:
        if on_log is not None:
            on_log(ApiLogEntry(step=step, prompt=prompt, response=None, error=str(e)))
        raise
    if on_log is not None:
        on_log(ApiLogEntry(step=step, prompt=prompt, response=text))
    return text


def generate_fix_prompt(
    client: BaseCompletionClient,
    finding: Finding,
    snapshots: dict[str, str | None],
    model: str | None = None,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    on_log: Callable[[ApiLogEntry], None] | None = None,
) -> str:
    """Build a self-contained prompt asking a coding assistant to fix ``finding``."""
    content = snapshots.get(finding.file)
    if content is None:
        raise SnapshotNotFoundError(f"Could not find content for file: {finding.file}")

    snippet = extract_snippet(content, finding.line, context_lines)
    details = FIX_DETAILS.format(
        file=finding.file,
        line=finding.line,
        category=finding.category,
        comment=finding.comment,
        snippet=snippet,
    )
    answer = _ask(client, model, STEP_FIX_PROMPT, FIX_PROMPT.format(details=details), None, on_log)
    return FIX_TRAILER.format(answer=answer, details=details).strip()


def generate_test_prompt(
    client: BaseCompletionClient,
    suggestion: str,
    category: str,
    context_summary: str,
    diff: str,
    model: str | None = None,
    on_log: Callable[[ApiLogEntry], None] | None = None,
) -> str:
    """Build a self-contained prompt asking a coding assistant to write one suggested test."""
    prompt = TEST_PROMPT.format(category=category, suggestion=suggestion, summary=context_summary, diff=diff)
    answer = _ask(client, model, STEP_TEST_PROMPT, prompt, None, on_log)
    return TEST_TRAILER.format(
        answer=answer,
        category=category,
        suggestion=suggestion,
        summary=context_summary,
    ).strip()


def generate_test_suggestions(
    client: BaseCompletionClient,
    context_summary: str,
    diff: str,
    model: str | None = None,
    on_log: Callable[[ApiLogEntry], None] | None = None,
) -> TestSuggestions:
    prompt = TEST_SUGGESTIONS_PROMPT.format(summary=context_summary, diff=diff)
    text = _ask(client, model, STEP_TEST_SUGGESTIONS, prompt, TEST_SUGGESTIONS_SCHEMA, on_log)
    parsed = parse_test_suggestions(text)
    if isinstance(parsed, TestSuggestionsParseFailure):
        logger.error("Test suggestions response rejected: %s", parsed.reason)
        raise FollowupError(f"Invalid test suggestions response: {parsed.reason}")
    return parsed.suggestions
