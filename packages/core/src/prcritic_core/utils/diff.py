"""Unified-diff helpers.

Everything here works in new-file line numbering, the coordinate space
GitHub uses to anchor review comments.
"""

from __future__ import annotations

import re

from prcritic_core.models import LineRange

# @@ -<oldStart>[,<oldLen>] +<newStart>[,<newLen>] @@
_HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

_NO_FILE_TARGETS = {"/dev/null", "dev/null"}


def _target_path(header_line: str) -> str | None:
    """Return the path named by a ``+++`` header, or None for a deleted file."""
    target = header_line[4:].split("\t", 1)[0].rstrip("\r")
    if target.startswith("b/"):
        target = target[2:]
    if not target or target in _NO_FILE_TARGETS:
        return None
    return target


def parse_diff_ranges(diff: str) -> dict[str, list[LineRange]]:
    """Map every new-file target in a unified diff to its hunk line ranges.

    A path is present iff the diff carries a ``+++`` header for it that is not
    ``/dev/null``. A file whose hunks are all pure deletions keeps an empty
    list, which tells "touched but nothing addable" apart from "never touched".
    Ranges are kept in encounter order; overlapping ranges are not merged.
    Malformed hunk headers are skipped.

    Hunk bodies are consumed using the line counts from their headers, so an
    added line whose text begins with ``++ `` is never mistaken for a header.
    """
    ranges: dict[str, list[LineRange]] = {}
    current_file: str | None = None
    old_left = new_left = 0

    for line in diff.splitlines():
        if (old_left > 0 or new_left > 0) and _is_hunk_body(line):
            if line.startswith("+"):
                new_left -= 1
            elif line.startswith("-"):
                old_left -= 1
            elif not line.startswith("\\"):
                old_left -= 1
                new_left -= 1
            continue
        old_left = new_left = 0

        if line.startswith("+++ "):
            current_file = _target_path(line)
            if current_file is not None:
                ranges.setdefault(current_file, [])
        elif line.startswith("@@"):
            match = _HUNK_HEADER_RE.match(line)
            if not match:
                continue
            old_left = int(match.group(1)) if match.group(1) is not None else 1
            new_start = int(match.group(2))
            # Omitted length means a single line; 0 means nothing left in the new file.
            new_length = int(match.group(3)) if match.group(3) is not None else 1
            new_left = new_length
            if current_file is None or new_length == 0 or new_start < 1:
                continue
            ranges[current_file].append(LineRange(new_start, new_start + new_length - 1))

    return ranges


def _is_hunk_body(line: str) -> bool:
    # An empty line is a context line whose trailing space was stripped.
    return not line or line[0] in " +-\\"


def changed_files(diff: str) -> list[str]:
    """Paths that exist in the new version of the PR, in diff order."""
    return list(parse_diff_ranges(diff))


def render_file_diff(filename: str, status: str, patch: str | None, previous_filename: str | None = None) -> str:
    """Rebuild the ``git diff`` section for one file from its API patch.

    The GitHub REST API returns per-file patches without the file headers,
    so the headers are reconstructed here. Added files read from /dev/null,
    removed files write to /dev/null.
    """
    old_name = previous_filename or filename
    old_target = "/dev/null" if status == "added" else f"a/{old_name}"
    new_target = "/dev/null" if status == "removed" else f"b/{filename}"

    lines = [f"diff --git a/{old_name} b/{filename}", f"--- {old_target}", f"+++ {new_target}"]
    if patch:
        lines.append(patch.rstrip("\n"))
    return "\n".join(lines) + "\n"
