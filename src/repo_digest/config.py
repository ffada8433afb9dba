"""Defaults and per-call options for repository analysis."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_MAX_COMMITS = 10
DEFAULT_MAX_FILE_SIZE_KB = 500
DEFAULT_IGNORE_PATTERNS = (".git", "node_modules", "dist", "build")
MAX_SCAN_DEPTH = 8  # hard stop for pathological trees
DIGEST_COMMIT_LIMIT = 5
DEFAULT_MAX_DIFF_CHARS = 20000
GIT_TIMEOUT = 60  # seconds per git call
CLONE_TIMEOUT = 600  # full clones of large repositories are slow
HTTP_TIMEOUT = 10


@dataclass
class AnalysisOptions:
    """Knobs for a single ``analyze_repository`` call."""

    max_commits: int = DEFAULT_MAX_COMMITS
    max_file_size_kb: int | None = DEFAULT_MAX_FILE_SIZE_KB
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    include_content: bool = True
    max_depth: int = MAX_SCAN_DEPTH
    workdir: Path | None = None
    keep_clone: bool = False
    remote_metadata: bool = False
    github_token: str | None = None
    digest_commit_limit: int = DIGEST_COMMIT_LIMIT
    max_diff_chars: int = DEFAULT_MAX_DIFF_CHARS
