"""Review data models shared across the pipeline.

Plain dataclasses with explicit ``to_dict``/``from_dict`` helpers so a
completed review can be written to a session file and read back for
follow-up prompts without pulling in a serialization library.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone


@dataclass(frozen=True)
class PrCoordinates:
    """Where a pull request lives. Built once by parse_pr_url, never mutated."""

    owner: str
    repo: str
    pull_number: int
    host: str = "github.com"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_dict(self) -> dict:
        return {"owner": self.owner, "repo": self.repo, "pull_number": self.pull_number, "host": self.host}

    @classmethod
    def from_dict(cls, data: dict) -> PrCoordinates:
        return cls(
            owner=data["owner"],
            repo=data["repo"],
            pull_number=int(data["pull_number"]),
            host=data.get("host", "github.com"),
        )


@dataclass(frozen=True)
class LineRange:
    """Inclusive range of new-file line numbers covered by one hunk."""

    start: int
    end: int

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end


@dataclass(frozen=True)
class Finding:
    """One AI-proposed improvement anchored to a file and a new-file line."""

    line: int
    file: str
    category: str
    comment: str
    link: str | None = None

    def with_link(self, link: str) -> Finding:
        return replace(self, link=link)

    def to_dict(self) -> dict:
        data = {"line": self.line, "file": self.file, "category": self.category, "comment": self.comment}
        if self.link is not None:
            data["link"] = self.link
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Finding:
        return cls(
            line=int(data["line"]),
            file=data["file"],
            category=data["category"],
            comment=data["comment"],
            link=data.get("link"),
        )


@dataclass
class ReviewResult:
    """Strengths plus addressable findings. One per completed pipeline run."""

    strengths: list[str] = field(default_factory=list)
    improvements: list[Finding] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "strengths": list(self.strengths),
            "improvements": [f.to_dict() for f in self.improvements],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ReviewResult:
        return cls(
            strengths=list(data.get("strengths", [])),
            improvements=[Finding.from_dict(f) for f in data.get("improvements", [])],
        )


@dataclass(frozen=True)
class PrMetadata:
    title: str
    body: str
    base_ref: str


@dataclass
class PipelineContext:
    """Inputs threaded through the three review stages.

    ``snapshots`` is the rendered concatenation of the pre-change file
    contents; ``summary`` is filled in by the context-gathering stage.
    """

    title: str
    body: str
    diff: str
    readme: str
    snapshots: str
    summary: str | None = None


@dataclass
class ApiLogEntry:
    """Audit record of one request/response exchange with the AI endpoint."""

    step: str
    prompt: str
    response: str | None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "prompt": self.prompt,
            "response": self.response,
            "timestamp": self.timestamp,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ApiLogEntry:
        return cls(
            step=data["step"],
            prompt=data["prompt"],
            response=data.get("response"),
            timestamp=data["timestamp"],
            error=data.get("error"),
        )


@dataclass
class TestSuggestions:
    """Test cases proposed for a PR, grouped the way QA usually splits them."""

    __test__ = False  # not a pytest test class

    unit_tests: list[str] = field(default_factory=list)
    integration_tests: list[str] = field(default_factory=list)
    manual_checks: list[str] = field(default_factory=list)

    # category key → (attribute, human label)
    CATEGORIES = {
        "unit": ("unit_tests", "Unit Tests"),
        "integration": ("integration_tests", "Integration Tests"),
        "manual": ("manual_checks", "Manual Checks"),
    }

    def items(self, category: str) -> list[str]:
        attr, _ = self.CATEGORIES[category]
        return getattr(self, attr)

    def to_dict(self) -> dict:
        return {
            "unitTests": list(self.unit_tests),
            "integrationTests": list(self.integration_tests),
            "manualChecks": list(self.manual_checks),
        }

    @classmethod
    def from_dict(cls, data: dict) -> TestSuggestions:
        return cls(
            unit_tests=list(data.get("unitTests", [])),
            integration_tests=list(data.get("integrationTests", [])),
            manual_checks=list(data.get("manualChecks", [])),
        )


@dataclass
class ReviewSession:
    """Everything a completed review leaves behind for follow-up work.

    ``snapshots`` maps each changed path to its pre-change content, or None
    when the file could not be fetched (new file, binary, fetch error).
    """

    coords: PrCoordinates
    title: str
    diff: str
    context_summary: str
    snapshots: dict[str, str | None]
    review: ReviewResult
    discarded: int = 0
    api_log: list[ApiLogEntry] = field(default_factory=list)
    test_suggestions: TestSuggestions | None = None

    def to_dict(self) -> dict:
        return {
            "coords": self.coords.to_dict(),
            "title": self.title,
            "diff": self.diff,
            "context_summary": self.context_summary,
            "snapshots": dict(self.snapshots),
            "review": self.review.to_dict(),
            "discarded": self.discarded,
            "api_log": [e.to_dict() for e in self.api_log],
            "test_suggestions": self.test_suggestions.to_dict() if self.test_suggestions else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ReviewSession:
        suggestions = data.get("test_suggestions")
        return cls(
            coords=PrCoordinates.from_dict(data["coords"]),
            title=data.get("title", ""),
            diff=data["diff"],
            context_summary=data["context_summary"],
            snapshots=dict(data.get("snapshots", {})),
            review=ReviewResult.from_dict(data["review"]),
            discarded=data.get("discarded", 0),
            api_log=[ApiLogEntry.from_dict(e) for e in data.get("api_log", [])],
            test_suggestions=TestSuggestions.from_dict(suggestions) if suggestions else None,
        )
