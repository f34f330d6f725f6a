"""Deep links from review findings to lines in the PR's "Files changed" view.

GitHub anchors each file in that view as ``#diff-<sha1 of the path>``, and a
specific new-file line as ``R<line>``. The digest must be SHA-1 over the UTF-8
path, hex encoded in lowercase, or the anchor will not resolve.
"""

from __future__ import annotations

import hashlib
from concurrent.futures import ThreadPoolExecutor

from prcritic_core.models import Finding, PrCoordinates, ReviewResult

_DEFAULT_WORKERS = 8


def content_hash(path: str) -> str:
    return hashlib.sha1(path.encode("utf-8")).hexdigest()


def build_finding_link(coords: PrCoordinates, finding: Finding, base_url: str | None = None) -> str:
    base = (base_url or f"https://{coords.host}").rstrip("/")
    return (
        f"{base}/{coords.owner}/{coords.repo}/pull/{coords.pull_number}"
        f"/files#diff-{content_hash(finding.file)}R{finding.line}"
    )


def attach_links(
    review: ReviewResult,
    coords: PrCoordinates,
    base_url: str | None = None,
    max_workers: int = _DEFAULT_WORKERS,
) -> ReviewResult:
    """Return a copy of the review with a deep link on every finding.

    Links are computed concurrently; Executor.map yields results in input
    order, so the final zip lines each link up with its finding.
    """
    findings = review.improvements
    if not findings:
        return ReviewResult(strengths=list(review.strengths), improvements=[])

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(findings)))) as executor:
        links = list(executor.map(lambda f: build_finding_link(coords, f, base_url), findings))

    return ReviewResult(
        strengths=list(review.strengths),
        improvements=[finding.with_link(link) for finding, link in zip(findings, links)],
    )
