"""Context synthesis and Markdown digest rendering.

Everything here is pure: identical inputs give byte-identical Markdown.
The heading layout below is consumed by downstream prompt templates; bump
``DIGEST_FORMAT_VERSION`` when it changes shape.
"""

from __future__ import annotations

from .config import DEFAULT_MAX_DIFF_CHARS, DIGEST_COMMIT_LIMIT
from .models import (
    CommitRecord,
    DirectoryNode,
    FileChange,
    FileNode,
    RepositoryContext,
    TreeNode,
)
from .scanner import iter_files

DIGEST_FORMAT_VERSION = 1

KEY_FILE_NAMES = {
    "package.json", "tsconfig.json", ".env.example", "makefile",
    "pyproject.toml", "setup.py", "setup.cfg", "requirements.txt",
    "cargo.toml", "go.mod", "gemfile", "pom.xml", "build.gradle",
}
KEY_FILE_MARKERS = ("webpack", "babel", "docker")


def count_files(directory: DirectoryNode) -> int:
    """Number of files anywhere below ``directory``."""
    return sum(1 for _ in iter_files(directory.children))


def key_files(nodes: list[TreeNode]) -> list[FileNode]:
    """Top-level build and configuration files, detected by name."""
    found = []
    for node in nodes:
        if not isinstance(node, FileNode):
            continue
        name = node.name.lower()
        if name in KEY_FILE_NAMES or any(marker in name for marker in KEY_FILE_MARKERS):
            found.append(node)
    return found


def _truncate(text: str, limit: int) -> str:
    if limit <= 0 or len(text) <= limit:
        return text
    return text[:limit].rstrip("\n") + f"\n... (diff truncated, {len(text) - limit} more characters)"


def _structure_section(tree: list[TreeNode]) -> list[str]:
    out = ["\n## Project Structure\n\n"]
    directories = [n for n in tree if isinstance(n, DirectoryNode)]
    if directories:
        out.append("### Key Directories\n\n")
        for d in directories:
            out.append(f"- **{d.name}/** - {count_files(d)} files\n")

    keys = key_files(tree)
    if keys:
        out.append("\n### Key Files\n\n")
        for f in keys:
            out.append(f"- **{f.name}**\n")
    return out


def _commits_section(commits: list[CommitRecord], limit: int) -> list[str]:
    out = ["\n## Recent Commits\n\n"]
    for commit in commits[:limit]:
        out.append(f"### {commit.hash[:7]} - {commit.timestamp}\n")
        out.append(f"**Author:** {commit.author_name}\n\n")
        out.append(f"**Message:**\n{commit.message}\n\n")
    return out


def _changes_section(changes: list[FileChange], max_diff_chars: int) -> list[str]:
    if not changes:
        return []
    out = [
        "\n## Recent Changes\n\n",
        "The following files were changed in the most recent commit:\n\n",
    ]
    for change in changes:
        out.append(f"### {change.path} ({change.status})\n")
        counts = []
        if change.additions is not None:
            counts.append(f"+{change.additions}")
        if change.deletions is not None:
            counts.append(f"-{change.deletions}")
        if counts:
            out.append(f"**Changes:** {' '.join(counts)}\n\n")
        if change.diff_text:
            out.append(f"```diff\n{_truncate(change.diff_text, max_diff_chars)}\n```\n\n")
    return out


def render_markdown(
    url: str,
    name: str,
    commits: list[CommitRecord],
    changes: list[FileChange],
    tree: list[TreeNode],
    readme: str | None = None,
    description: str | None = None,
    default_branch: str | None = None,
    commit_limit: int = DIGEST_COMMIT_LIMIT,
    max_diff_chars: int = DEFAULT_MAX_DIFF_CHARS,
) -> str:
    parts = [
        f"# Repository Analysis: {name}\n\n",
        "## Repository Overview\n\n",
        f"- **Repository URL:** {url}\n",
        f"- **Default Branch:** {default_branch or 'main'}\n",
    ]
    if description:
        parts.append(f"- **Description:** {description}\n")

    parts += _structure_section(tree)
    parts += _commits_section(commits, commit_limit)
    parts += _changes_section(changes, max_diff_chars)

    if readme:
        parts.append(f"\n## README\n\n{readme}\n\n")
    return "".join(parts)


def synthesize(
    url: str,
    name: str,
    commits: list[CommitRecord],
    changes: list[FileChange],
    tree: list[TreeNode],
    readme: str | None = None,
    description: str | None = None,
    default_branch: str | None = None,
    commit_limit: int = DIGEST_COMMIT_LIMIT,
    max_diff_chars: int = DEFAULT_MAX_DIFF_CHARS,
) -> RepositoryContext:
    """Assemble the final ``RepositoryContext`` with its rendered digest."""
    markdown = render_markdown(
        url, name, commits, changes, tree,
        readme=readme,
        description=description,
        default_branch=default_branch,
        commit_limit=commit_limit,
        max_diff_chars=max_diff_chars,
    )
    return RepositoryContext(
        url=url,
        name=name,
        description=description,
        readme=readme,
        default_branch=default_branch,
        commits=list(commits),
        file_changes=list(changes),
        tree=list(tree),
        digest_markdown=markdown,
    )
