"""Commit history reader."""

from __future__ import annotations

from .git import GitError
from .log import get_logger
from .models import CommitRecord
from .workspace import LocalRepo

logger = get_logger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
LOG_FORMAT = _FIELD_SEP.join(["%H", "%an", "%ae", "%aI", "%B"]) + _RECORD_SEP


def parse_log(output: str) -> list[CommitRecord]:
    """Parse ``git log`` output produced with ``LOG_FORMAT``.

    Raises ValueError on a record that does not have all five fields.
    """
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record.strip():
            continue
        parts = record.split(_FIELD_SEP, 4)
        if len(parts) != 5:
            raise ValueError(f"Malformed log record: {record[:80]!r}")
        sha, name, email, timestamp, message = parts
        commits.append(CommitRecord(
            hash=sha.strip(),
            author_name=name,
            author_email=email,
            timestamp=timestamp,
            message=message.strip(),
        ))
    return commits


def read_commits(repo: LocalRepo, max_count: int, rev: str = "HEAD") -> list[CommitRecord]:
    """Return up to ``max_count`` commits reachable from ``rev``, newest first.

    History is best-effort: any failure yields an empty list.
    """
    if max_count <= 0:
        return []
    try:
        output = repo.git.log(max_count, LOG_FORMAT, rev=rev)
        return parse_log(output)[:max_count]
    except (GitError, ValueError) as e:
        logger.warning("History unavailable for %s: %s", repo.path, e)
        return []
