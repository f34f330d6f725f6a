from pathlib import PurePosixPath

# Files whose base-branch content is useless as review context: binaries,
# media, archives and generated lockfiles. Their snapshots are never fetched.
SKIPPED_SNAPSHOT_SUFFIXES = frozenset(
    {
        # images
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".bmp",
        # documents and fonts
        ".pdf", ".woff", ".woff2", ".ttf", ".eot", ".otf",
        # media
        ".mp4", ".mp3", ".wav", ".ogg",
        # archives and compiled artifacts
        ".zip", ".tar", ".gz", ".rar", ".7z", ".jar", ".whl", ".pyc", ".class", ".so", ".dll", ".exe",
        ".lock",  # yarn.lock, poetry.lock, Pipfile.lock
    }
)


def is_snapshot_worthy(path: str) -> bool:
    return PurePosixPath(path.lower()).suffix not in SKIPPED_SNAPSHOT_SUFFIXES
