"""Read-only access to pull requests through PyGithub.

Metadata and diff failures propagate (without them there is nothing to
review). README and file snapshots are optional context: a miss returns
None instead of raising, and the caller substitutes a placeholder.
"""

from __future__ import annotations

import logging

from github import Github, GithubException

from prcritic_core.models import PrCoordinates, PrMetadata
from prcritic_core.utils.diff import render_file_diff

logger = logging.getLogger(__name__)


def _decode(content_file) -> str | None:
    # Files over 1 MB come back with encoding "none" and no inline content.
    if content_file.encoding != "base64":
        logger.warning("Skipping %s: contents API returned encoding %r.", content_file.path, content_file.encoding)
        return None
    return content_file.decoded_content.decode("utf-8", errors="replace")


class GitHubReader:
    def __init__(self, token: str, base_url: str | None = None):
        if base_url:
            self._github = Github(token, base_url=base_url)
        else:
            self._github = Github(token)

    def get_repo(self, owner: str, repo: str):
        return self._github.get_repo(f"{owner}/{repo}")

    def get_pull(self, coords: PrCoordinates):
        return self.get_repo(coords.owner, coords.repo).get_pull(coords.pull_number)

    def get_pr_metadata(self, coords: PrCoordinates) -> PrMetadata:
        pr = self.get_pull(coords)
        return PrMetadata(title=pr.title or "", body=pr.body or "", base_ref=pr.base.ref)

    def get_diff(self, coords: PrCoordinates) -> str:
        """Return the PR's unified diff, rebuilt from the per-file patches."""
        files = self.get_pull(coords).get_files()
        return "".join(
            render_file_diff(
                f.filename,
                f.status,
                f.patch,
                previous_filename=getattr(f, "previous_filename", None),
            )
            for f in files
        )

    def get_file_snapshot(self, owner: str, repo: str, ref: str, path: str) -> str | None:
        try:
            contents = self.get_repo(owner, repo).get_contents(path, ref=ref)
        except GithubException as e:
            logger.warning("Could not fetch %s@%s: %s", path, ref, e)
            return None
        if isinstance(contents, list):
            # The path is a directory at this ref.
            return None
        return _decode(contents)

    def get_readme(self, owner: str, repo: str, ref: str) -> str | None:
        try:
            return _decode(self.get_repo(owner, repo).get_readme(ref=ref))
        except GithubException:
            logger.warning("README.md not found in %s/%s@%s.", owner, repo, ref)
            return None
