from __future__ import annotations

import re

from prcritic_core.models import PrCoordinates

# https://<host>/<owner>/<repo>/pull/<digits>, optionally followed by a tab
# path (/files, /commits), a query string or a fragment.
_PR_URL_RE = re.compile(r"^https://([^/\s]+)/([^/\s]+)/([^/\s]+)/pull/(\d+)(?:[/?#]\S*)?$")


class InvalidPrUrlError(ValueError):
    pass


def parse_pr_url(url: str) -> PrCoordinates:
    """Extract owner, repo and pull number from a pull request URL.

    Raises InvalidPrUrlError for anything that is not a PR URL.
    """
    match = _PR_URL_RE.match(url.strip())
    if not match:
        raise InvalidPrUrlError(
            f"Invalid PR URL: {url!r}. Use the format https://github.com/owner/repo/pull/123"
        )
    host, owner, repo, number = match.groups()
    pull_number = int(number)
    if pull_number < 1:
        raise InvalidPrUrlError(f"Invalid PR URL: {url!r}. Pull request numbers start at 1.")
    return PrCoordinates(owner=owner, repo=repo, pull_number=pull_number, host=host)
