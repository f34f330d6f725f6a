"""Tests for structured-output parsing and diff-based finding filtering."""

import json
import logging

from prcritic_core.models import Finding, LineRange, ReviewResult
from prcritic_core.utils.diff import parse_diff_ranges
from prcritic_core.validation import (
    ParsedReview,
    ParsedTestSuggestions,
    ReviewParseFailure,
    TestSuggestionsParseFailure,
    discarded_findings,
    filter_findings,
    parse_review,
    parse_test_suggestions,
)

VALID_REVIEW = {
    "strengths": ["Clear naming"],
    "improvements": [{"line": 3, "file": "src/a.ts", "category": "Correctness", "comment": "Handle `null`."}],
}


def _finding(file, line):
    return Finding(line=line, file=file, category="Style", comment="c")


# ---------------------------------------------------------------------------
# parse_review
# ---------------------------------------------------------------------------


class TestParseReview:
    def test_parses_valid_json(self):
        result = parse_review(json.dumps(VALID_REVIEW))
        assert isinstance(result, ParsedReview)
        assert result.review.strengths == ["Clear naming"]
        assert result.review.improvements == [
            Finding(line=3, file="src/a.ts", category="Correctness", comment="Handle `null`.")
        ]

    def test_strips_markdown_code_fences(self):
        result = parse_review(f"```json\n{json.dumps(VALID_REVIEW)}\n```")
        assert isinstance(result, ParsedReview)

    def test_preserves_code_blocks_inside_comments(self):
        payload = {
            "improvements": [
                {"line": 1, "file": "f.py", "category": "Style", "comment": "Use:\n```python\nfoo()\n```"}
            ]
        }
        result = parse_review(f"```json\n{json.dumps(payload)}\n```")
        assert "```python" in result.review.improvements[0].comment

    def test_integral_float_line_accepted(self):
        payload = {"improvements": [{"line": 7.0, "file": "f.py", "category": "Style", "comment": "x"}]}
        assert parse_review(json.dumps(payload)).review.improvements[0].line == 7

    def test_strengths_and_improvements_optional(self):
        result = parse_review("{}")
        assert isinstance(result, ParsedReview)
        assert result.review == ReviewResult()

    def test_extra_fields_ignored(self):
        payload = dict(VALID_REVIEW, verdict="approve")
        assert isinstance(parse_review(json.dumps(payload)), ParsedReview)

    def test_invalid_json_is_a_failure_not_an_exception(self):
        result = parse_review("not json at all")
        assert isinstance(result, ReviewParseFailure)
        assert "not valid JSON" in result.reason

    def test_empty_response(self):
        assert parse_review("   ") == ReviewParseFailure("empty response")

    def test_top_level_list_rejected(self):
        result = parse_review("[]")
        assert isinstance(result, ReviewParseFailure)
        assert "JSON object" in result.reason

    def test_missing_finding_field_rejected(self):
        payload = {"improvements": [{"line": 3, "file": "f.py", "comment": "x"}]}
        result = parse_review(json.dumps(payload))
        assert isinstance(result, ReviewParseFailure)
        assert "category" in result.reason

    def test_non_integral_line_rejected(self):
        payload = {"improvements": [{"line": 2.5, "file": "f.py", "category": "Style", "comment": "x"}]}
        assert isinstance(parse_review(json.dumps(payload)), ReviewParseFailure)

    def test_boolean_line_rejected(self):
        payload = {"improvements": [{"line": True, "file": "f.py", "category": "Style", "comment": "x"}]}
        assert isinstance(parse_review(json.dumps(payload)), ReviewParseFailure)

    def test_string_line_rejected(self):
        payload = {"improvements": [{"line": "3", "file": "f.py", "category": "Style", "comment": "x"}]}
        assert isinstance(parse_review(json.dumps(payload)), ReviewParseFailure)

    def test_strengths_must_be_strings(self):
        assert isinstance(parse_review(json.dumps({"strengths": [1, 2]})), ReviewParseFailure)

    def test_improvements_must_be_list(self):
        assert isinstance(parse_review(json.dumps({"improvements": {"line": 1}})), ReviewParseFailure)


class TestParseTestSuggestions:
    def test_parses_all_categories(self):
        raw = json.dumps({"unitTests": ["u"], "integrationTests": ["i"], "manualChecks": ["m"]})
        result = parse_test_suggestions(raw)
        assert isinstance(result, ParsedTestSuggestions)
        assert result.suggestions.unit_tests == ["u"]
        assert result.suggestions.integration_tests == ["i"]
        assert result.suggestions.manual_checks == ["m"]

    def test_missing_categories_default_to_empty(self):
        result = parse_test_suggestions(json.dumps({"unitTests": ["u"]}))
        assert result.suggestions.manual_checks == []

    def test_wrong_type_rejected(self):
        assert isinstance(parse_test_suggestions(json.dumps({"unitTests": "u"})), TestSuggestionsParseFailure)

    def test_invalid_json_rejected(self):
        assert isinstance(parse_test_suggestions("{"), TestSuggestionsParseFailure)


# ---------------------------------------------------------------------------
# filter_findings
# ---------------------------------------------------------------------------


class TestFilterFindings:
    RANGES = parse_diff_ranges("+++ b/src/a.ts\n@@ -1,3 +1,5 @@")

    def test_line_inside_range_kept_outside_dropped(self):
        review = ReviewResult(improvements=[_finding("src/a.ts", 10), _finding("src/a.ts", 3)])
        assert filter_findings(review, self.RANGES).improvements == [_finding("src/a.ts", 3)]

    def test_range_bounds_are_inclusive(self):
        review = ReviewResult(improvements=[_finding("src/a.ts", 1), _finding("src/a.ts", 5)])
        assert len(filter_findings(review, self.RANGES).improvements) == 2

    def test_file_not_in_diff_dropped(self):
        review = ReviewResult(improvements=[_finding("src/other.ts", 1)])
        assert filter_findings(review, self.RANGES).improvements == []

    def test_file_with_no_ranges_drops_everything(self):
        ranges = {"gone.py": []}
        review = ReviewResult(improvements=[_finding("gone.py", 1)])
        assert filter_findings(review, ranges).improvements == []

    def test_any_of_several_ranges_matches(self):
        ranges = {"f.py": [LineRange(1, 2), LineRange(40, 45)]}
        review = ReviewResult(improvements=[_finding("f.py", 42), _finding("f.py", 20)])
        assert filter_findings(review, ranges).improvements == [_finding("f.py", 42)]

    def test_order_preserved_and_strengths_untouched(self):
        findings = [_finding("src/a.ts", 5), _finding("nope.py", 1), _finding("src/a.ts", 2)]
        result = filter_findings(ReviewResult(strengths=["s"], improvements=findings), self.RANGES)
        assert result.improvements == [findings[0], findings[2]]
        assert result.strengths == ["s"]

    def test_idempotent(self):
        review = ReviewResult(improvements=[_finding("src/a.ts", 10), _finding("src/a.ts", 3), _finding("x", 1)])
        once = filter_findings(review, self.RANGES)
        assert filter_findings(once, self.RANGES) == once

    def test_does_not_clamp_lines(self):
        result = filter_findings(ReviewResult(improvements=[_finding("src/a.ts", 6)]), self.RANGES)
        assert result.improvements == []

    def test_kept_findings_lie_in_a_range_and_dropped_do_not(self):
        ranges = {"a.py": [LineRange(3, 4), LineRange(10, 12)], "b.py": [LineRange(1, 1)]}
        findings = [_finding(f, line) for f in ("a.py", "b.py", "c.py") for line in range(0, 14)]
        review = ReviewResult(improvements=findings)

        kept = filter_findings(review, ranges).improvements
        dropped = discarded_findings(review, ranges)

        assert len(kept) + len(dropped) == len(findings)
        for f in kept:
            assert any(r.start <= f.line <= r.end for r in ranges[f.file])
        for f in dropped:
            assert f.file not in ranges or not any(r.start <= f.line <= r.end for r in ranges[f.file])

    def test_discards_are_logged(self, caplog):
        review = ReviewResult(improvements=[_finding("nope.py", 1), _finding("src/a.ts", 99)])
        with caplog.at_level(logging.WARNING, logger="prcritic_core.validation"):
            filter_findings(review, self.RANGES)
        assert "file not in diff: nope.py" in caplog.text
        assert "line 99 in file src/a.ts" in caplog.text
