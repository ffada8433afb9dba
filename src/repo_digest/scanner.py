"""Filtered file-tree scanner.

Walks the working copy as it is currently checked out and builds a tree of
``FileNode`` / ``DirectoryNode`` objects. Traversal uses an explicit stack
and stops descending at ``max_depth``.
"""

from __future__ import annotations

import datetime
import os
from pathlib import Path
from typing import Iterable, Iterator

from .config import MAX_SCAN_DEPTH
from .log import get_logger
from .models import DirectoryNode, FileNode, TreeNode

logger = get_logger(__name__)

# Listed in the tree but never read
BINARY_EXTENSIONS = {
    # images
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg", ".webp", ".bmp", ".tiff",
    # audio / video
    ".mp3", ".wav", ".flac", ".ogg", ".mp4", ".avi", ".webm", ".mov", ".mkv",
    # fonts
    ".woff", ".woff2", ".eot", ".ttf", ".otf",
    # archives and documents
    ".zip", ".tar", ".gz", ".bz2", ".xz", ".rar", ".7z", ".jar", ".pdf",
}

# Dropped from the tree entirely
GENERATED_NAMES = {"yarn.lock", "pnpm-lock.yaml", "poetry.lock", "cargo.lock"}
GENERATED_PREFIXES = (
    "package-lock", "yarn-lock", "npm-debug", "yarn-debug", "yarn-error",
    "tsconfig", "jest.config",
)


def is_ignored_path(relative_path: str, ignore_patterns: Iterable[str]) -> bool:
    return any(pattern and pattern in relative_path for pattern in ignore_patterns)


def is_binary_name(name: str) -> bool:
    return os.path.splitext(name)[1].lower() in BINARY_EXTENSIONS


def is_generated_name(name: str) -> bool:
    lower = name.lower()
    return lower in GENERATED_NAMES or lower.startswith(GENERATED_PREFIXES)


def _mtime(stat: os.stat_result) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(stat.st_mtime, tz=datetime.timezone.utc)


def _read_content(path: Path) -> str | None:
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Content omitted for %s: %s", path, e)
        return None


def _file_node(
    entry: os.DirEntry,
    rel: str,
    stat: os.stat_result,
    include_content: bool,
    max_file_size_kb: int | None,
) -> FileNode:
    content = None
    within_limit = max_file_size_kb is None or stat.st_size <= max_file_size_kb * 1024
    if include_content and within_limit and not is_binary_name(entry.name):
        content = _read_content(Path(entry.path))
    return FileNode(
        name=entry.name,
        relative_path=rel,
        size_bytes=stat.st_size,
        last_modified=_mtime(stat),
        extension=os.path.splitext(entry.name)[1][1:],
        content=content,
    )


def scan_tree(
    root: str | Path,
    ignore_patterns: Iterable[str] = (),
    include_content: bool = False,
    max_file_size_kb: int | None = None,
    max_depth: int = MAX_SCAN_DEPTH,
) -> list[TreeNode]:
    """Scan ``root`` and return its top-level nodes.

    Args:
        root: Directory to scan (the working-copy root).
        ignore_patterns: Substrings; any relative path containing one is skipped.
        include_content: Read UTF-8 content of eligible files.
        max_file_size_kb: Files larger than this keep their node but lose content.
        max_depth: Directories this deep are listed without children.

    Unreadable entries are left out; the scan itself never raises for them.
    """
    root = Path(root)
    patterns = [p for p in ignore_patterns if p]
    top: list[TreeNode] = []

    # (directory on disk, its relative path, depth of its children, list to fill)
    stack: list[tuple[Path, str, int, list[TreeNode]]] = [(root, "", 1, top)]
    while stack:
        directory, rel_dir, depth, children = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", directory, e)
            continue

        for entry in entries:
            rel = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            if is_ignored_path(rel, patterns):
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    stat = entry.stat(follow_symlinks=False)
                    node = DirectoryNode(name=entry.name, relative_path=rel, last_modified=_mtime(stat))
                    children.append(node)
                    if depth < max_depth:
                        stack.append((Path(entry.path), rel, depth + 1, node.children))
                    else:
                        logger.debug("Depth limit reached at %s", rel)
                    continue

                if is_generated_name(entry.name):
                    continue
                stat = entry.stat()  # follows file symlinks; broken links raise
                if not os.path.isfile(entry.path):
                    continue
                children.append(_file_node(entry, rel, stat, include_content, max_file_size_kb))
            except OSError as e:
                logger.debug("Skipping unreadable entry %s: %s", rel, e)
    return top


def iter_files(nodes: Iterable[TreeNode]) -> Iterator[FileNode]:
    """Yield every file node, depth first."""
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        if isinstance(node, DirectoryNode):
            stack.extend(reversed(node.children))
        else:
            yield node
