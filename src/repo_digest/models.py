"""Data model shared by every stage of the analysis pipeline."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Literal, Union

ChangeStatus = Literal["added", "modified", "deleted"]


@dataclass(frozen=True)
class RepositoryReference:
    """What to analyze: a URL or path, an optional pinned commit and local path hint."""

    url: str
    commit: str | None = None
    local_path: str | None = None


@dataclass(frozen=True)
class CommitRecord:
    """One commit from the history, newest first."""

    hash: str
    author_name: str
    author_email: str
    timestamp: str  # ISO-8601 author date
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "timestamp": self.timestamp,
            "message": self.message,
        }


@dataclass(frozen=True)
class FileChange:
    """A path touched between two commits."""

    path: str
    status: ChangeStatus
    additions: int | None = None
    deletions: int | None = None
    diff_text: str | None = None
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"path": self.path, "status": self.status}
        for key in ("additions", "deletions", "diff_text", "content"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        return d


@dataclass(frozen=True)
class FileNode:
    name: str
    relative_path: str
    size_bytes: int
    last_modified: datetime.datetime
    extension: str
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": "file",
            "name": self.name,
            "path": self.relative_path,
            "size": self.size_bytes,
            "last_modified": self.last_modified.isoformat(),
            "extension": self.extension,
        }
        if self.content is not None:
            d["content"] = self.content
        return d


@dataclass(frozen=True)
class DirectoryNode:
    name: str
    relative_path: str
    last_modified: datetime.datetime
    # filled by the scanner while it walks, never reassigned
    children: list[TreeNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "directory",
            "name": self.name,
            "path": self.relative_path,
            "last_modified": self.last_modified.isoformat(),
            "children": [child.to_dict() for child in self.children],
        }


TreeNode = Union[FileNode, DirectoryNode]


@dataclass(frozen=True)
class RepositoryContext:
    """Everything extracted from one repository, plus the rendered digest."""

    url: str
    name: str
    commits: list[CommitRecord]
    file_changes: list[FileChange]
    tree: list[TreeNode]
    digest_markdown: str
    description: str | None = None
    readme: str | None = None
    default_branch: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "name": self.name,
            "description": self.description,
            "readme": self.readme,
            "default_branch": self.default_branch,
            "commits": [c.to_dict() for c in self.commits],
            "file_changes": [c.to_dict() for c in self.file_changes],
            "tree": [node.to_dict() for node in self.tree],
            "digest_markdown": self.digest_markdown,
        }


@dataclass
class AnalysisResult:
    """A context together with non-fatal warnings raised after it was built."""

    context: RepositoryContext
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"context": self.context.to_dict(), "warnings": self.warnings}
