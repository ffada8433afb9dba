"""Change-set extraction between two commits."""

from __future__ import annotations

from .git import GitError
from .log import get_logger
from .models import ChangeStatus, CommitRecord, FileChange
from .workspace import LocalRepo, checked_out

logger = get_logger(__name__)

_STATUS_CODES: dict[str, ChangeStatus] = {
    "A": "added",
    "M": "modified",
    "D": "deleted",
}
_DIFF_HEADER = "diff --git "
_C_ESCAPES = {"a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13, '"': 34, "\\": 92}


def unquote_path(text: str) -> str:
    """Undo git's C-style quoting of a path; unquoted input is returned as-is.

    >>> unquote_path('"say \\\\"hi\\\\".txt"')
    'say "hi".txt'
    """
    if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
        return text
    body = text[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            octal = body[i + 1:i + 4]
            if nxt in _C_ESCAPES:
                out.append(_C_ESCAPES[nxt])
                i += 2
                continue
            if len(octal) == 3 and all(c in "01234567" for c in octal):
                # octal escapes are raw bytes of a UTF-8 sequence
                out.append(int(octal, 8))
                i += 4
                continue
        out += ch.encode("utf-8")
        i += 1
    return out.decode("utf-8", errors="replace")


def _closing_quote(text: str) -> int | None:
    i = 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == '"':
            return i
        i += 1
    return None


def _header_paths(header: str) -> tuple[str, str] | None:
    """Split ``a/<p> b/<p>`` (either half possibly quoted) into its two paths."""
    if header.startswith('"'):
        end = _closing_quote(header)
        if end is None or header[end + 1:end + 2] != " ":
            return None
        left, right = header[:end + 1], header[end + 2:]
    elif header.endswith('"'):
        start = header.rfind(' "')
        if start < 0:
            return None
        left, right = header[:start], header[start + 1:]
    else:
        # "a/<p> b/<p>": both halves have equal length
        if len(header) % 2 == 0:
            return None
        half = (len(header) - 1) // 2
        if header[half] != " ":
            return None
        left, right = header[:half], header[half + 1:]
    left, right = unquote_path(left), unquote_path(right)
    if not (left.startswith("a/") and right.startswith("b/")):
        return None
    return left[2:], right[2:]


def parse_name_status(output: str) -> list[tuple[ChangeStatus, str]]:
    """Parse ``git diff --name-status -z`` into (status, path) pairs.

    Renames, copies and type changes are skipped rather than guessed.
    """
    tokens = output.split("\0")
    pairs = []
    i = 0
    while i < len(tokens):
        code = tokens[i].strip()
        if not code:
            i += 1
            continue
        # Renames and copies are followed by two paths, everything else by one
        width = 2 if code[:1] in ("R", "C") else 1
        paths = tokens[i + 1:i + 1 + width]
        i += 1 + width
        status = _STATUS_CODES.get(code[:1])
        if status is None or width != 1 or not paths or not paths[0]:
            logger.debug("Skipping unclassified status %s for %s", code, " -> ".join(paths))
            continue
        pairs.append((status, paths[0]))
    return pairs


def parse_numstat(output: str) -> dict[str, tuple[int | None, int | None]]:
    """Parse ``git diff --numstat -z``. Binary files report ``-`` and map to None."""
    tokens = output.split("\0")
    stats = {}
    i = 0
    while i < len(tokens):
        parts = tokens[i].lstrip("\n").split("\t", 2)
        i += 1
        if len(parts) != 3:
            continue
        added, deleted, path = parts
        if not path:
            # rename: source and destination follow as separate fields
            i += 2
            continue
        stats[path] = (
            int(added) if added.isdigit() else None,
            int(deleted) if deleted.isdigit() else None,
        )
    return stats


def _is_binary_block(block: str) -> bool:
    for line in block.split("\n"):
        if line.startswith("@@"):
            return False
        if line.startswith("Binary files ") or line == "GIT binary patch":
            return True
    return False


def split_diff(full_diff: str) -> dict[str, str]:
    """Partition a multi-file unified diff into per-path blocks.

    Blocks are keyed by the path in a ``diff --git a/<p> b/<p>`` header,
    unquoted when git quoted it. Headers naming two different paths
    (renames) and binary blocks are left out. Lines are split on ``\\n``
    only, so carriage returns and other control characters survive.
    """
    blocks: dict[str, str] = {}
    current: list[str] = []

    def flush() -> None:
        if not current:
            return
        paths = _header_paths(current[0][len(_DIFF_HEADER):])
        block = "\n".join(current).rstrip("\n")
        if paths is not None and paths[0] == paths[1] and not _is_binary_block(block):
            blocks[paths[0]] = block

    for line in full_diff.split("\n"):
        if line.startswith(_DIFF_HEADER):
            flush()
            current = [line]
        elif current:
            current.append(line)
    flush()
    return blocks


def _read_text(repo: LocalRepo, path: str) -> str | None:
    file_path = repo.path / path
    if not file_path.is_file():
        return None
    try:
        # bytes first: no newline translation
        return file_path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Content unavailable for %s: %s", path, e)
        return None


def extract_changes(repo: LocalRepo, from_commit: str, to_commit: str) -> list[FileChange]:
    """Compute the files added, modified or deleted between two commits.

    Contents of surviving files are read from a transient checkout of
    ``to_commit``; the previous ref is restored before returning. Uncommitted
    edits to tracked files survive that checkout, so a warning is logged
    when the working copy has any.
    """
    try:
        entries = parse_name_status(repo.git.diff_name_status(from_commit, to_commit))
        stats = parse_numstat(repo.git.diff_numstat(from_commit, to_commit))
        diffs = split_diff(repo.git.diff_full(from_commit, to_commit))
    except GitError as e:
        logger.warning("Diff unavailable between %s and %s: %s", from_commit[:7], to_commit[:7], e)
        return []

    contents: dict[str, str | None] = {}
    wanted = [path for status, path in entries if status != "deleted"]
    if wanted:
        try:
            if repo.git.has_local_changes():
                logger.warning(
                    "%s has uncommitted changes; file contents may not match %s",
                    repo.path, to_commit[:7],
                )
            with checked_out(repo, to_commit):
                for path in wanted:
                    contents[path] = _read_text(repo, path)
        except GitError as e:
            logger.warning("Could not check out %s for file contents: %s", to_commit[:7], e)

    changes = []
    for status, path in entries:
        additions, deletions = stats.get(path, (None, None))
        changes.append(FileChange(
            path=path,
            status=status,
            additions=additions,
            deletions=deletions,
            diff_text=diffs.get(path),
            content=None if status == "deleted" else contents.get(path),
        ))
    return changes


def changes_for_commits(repo: LocalRepo, commits: list[CommitRecord]) -> list[FileChange]:
    """Change-set of the newest commit relative to the one before it."""
    if len(commits) < 2:
        return []
    return extract_changes(repo, commits[1].hash, commits[0].hash)
