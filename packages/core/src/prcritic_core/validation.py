"""Checks on what the model returned.

Two concerns live here:

* Parsing a structured answer. Invalid output is an expected outcome, so the
  parsers return a tagged result (a parsed value or a failure with a reason)
  rather than raising.
* Filtering findings against the diff. The model is told to stay inside the
  hunks, but only this filter enforces it: a finding survives only when its
  file is in the range table and its line falls inside one of that file's
  ranges. Nothing is clamped or corrected.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from prcritic_core.models import Finding, LineRange, ReviewResult, TestSuggestions

logger = logging.getLogger(__name__)

_FINDING_FIELDS = ("line", "file", "category", "comment")


@dataclass(frozen=True)
class ParsedReview:
    review: ReviewResult


@dataclass(frozen=True)
class ReviewParseFailure:
    reason: str


@dataclass(frozen=True)
class ParsedTestSuggestions:
    suggestions: TestSuggestions


@dataclass(frozen=True)
class TestSuggestionsParseFailure:
    __test__ = False

    reason: str


def _load_json_object(raw: str) -> tuple[dict | None, str | None]:
    # Strip only an outer ```json ... ``` fence, NOT backticks inside string values.
    cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
    cleaned = re.sub(r"\s*```$", "", cleaned.strip())
    if not cleaned:
        return None, "empty response"
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return None, f"response is not valid JSON: {e}"
    if not isinstance(data, dict):
        return None, f"expected a JSON object, got {type(data).__name__}"
    return data, None


def _string_list(data: dict, key: str) -> tuple[list[str] | None, str | None]:
    value = data.get(key, [])
    if value is None:
        return [], None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None, f"'{key}' must be a list of strings"
    return value, None


def _parse_line(value) -> int | None:
    # bool is an int subclass; true/false is never a line number.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_review(raw: str) -> ParsedReview | ReviewParseFailure:
    """Parse a review-stage answer into a ReviewResult, or say why it cannot be."""
    data, error = _load_json_object(raw)
    if error:
        return ReviewParseFailure(error)

    strengths, error = _string_list(data, "strengths")
    if error:
        return ReviewParseFailure(error)

    items = data.get("improvements", [])
    if items is None:
        items = []
    if not isinstance(items, list):
        return ReviewParseFailure("'improvements' must be a list")

    findings: list[Finding] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            return ReviewParseFailure(f"improvements[{index}] must be an object")
        missing = [name for name in _FINDING_FIELDS if name not in item]
        if missing:
            return ReviewParseFailure(f"improvements[{index}] is missing {', '.join(missing)}")
        line = _parse_line(item["line"])
        if line is None:
            return ReviewParseFailure(f"improvements[{index}].line must be an integer, got {item['line']!r}")
        for name in ("file", "category", "comment"):
            if not isinstance(item[name], str):
                return ReviewParseFailure(f"improvements[{index}].{name} must be a string")
        findings.append(Finding(line=line, file=item["file"], category=item["category"], comment=item["comment"]))

    return ParsedReview(ReviewResult(strengths=strengths, improvements=findings))


def parse_test_suggestions(raw: str) -> ParsedTestSuggestions | TestSuggestionsParseFailure:
    data, error = _load_json_object(raw)
    if error:
        return TestSuggestionsParseFailure(error)

    lists = {}
    for key in ("unitTests", "integrationTests", "manualChecks"):
        value, error = _string_list(data, key)
        if error:
            return TestSuggestionsParseFailure(error)
        lists[key] = value

    return ParsedTestSuggestions(
        TestSuggestions(
            unit_tests=lists["unitTests"],
            integration_tests=lists["integrationTests"],
            manual_checks=lists["manualChecks"],
        )
    )


def is_addressable(finding: Finding, ranges: dict[str, list[LineRange]]) -> bool:
    file_ranges = ranges.get(finding.file)
    if file_ranges is None:
        return False
    return any(r.contains(finding.line) for r in file_ranges)


def filter_findings(review: ReviewResult, ranges: dict[str, list[LineRange]]) -> ReviewResult:
    """Keep only the findings that land inside a diff hunk, in their original order."""
    kept: list[Finding] = []
    for finding in review.improvements:
        if finding.file not in ranges:
            logger.warning("Discarding suggestion for file not in diff: %s", finding.file)
            continue
        if not is_addressable(finding, ranges):
            logger.warning(
                "Discarding suggestion for line %d in file %s as it is outside changed hunks.",
                finding.line,
                finding.file,
            )
            continue
        kept.append(finding)
    return ReviewResult(strengths=list(review.strengths), improvements=kept)


def discarded_findings(review: ReviewResult, ranges: dict[str, list[LineRange]]) -> list[Finding]:
    return [f for f in review.improvements if not is_addressable(f, ranges)]
