"""README, description and default-branch lookup for a working copy."""

from __future__ import annotations

import json
import re
from pathlib import Path

from .git import GitError
from .log import get_logger
from .workspace import LocalRepo

logger = get_logger(__name__)


def read_readme(root: Path) -> str | None:
    """Content of the top-level README (.md or .txt), if any."""
    try:
        names = sorted(p.name for p in root.iterdir() if p.is_file())
    except OSError as e:
        logger.warning("Could not list %s: %s", root, e)
        return None

    for name in names:
        lower = name.lower()
        if lower.startswith("readme") and lower.endswith((".md", ".txt")):
            try:
                return (root / name).read_bytes().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read %s: %s", name, e)
                return None
    return None


def _description_from_package_json(content: str) -> str | None:
    try:
        pkg = json.loads(content)
    except (json.JSONDecodeError, ValueError):
        return None
    desc = pkg.get("description") if isinstance(pkg, dict) else None
    return desc if isinstance(desc, str) and desc else None


def _description_from_toml(content: str, section: str) -> str | None:
    match = re.search(
        rf"^\[{re.escape(section)}\]\s*$(.*?)(?=^\[|\Z)", content, re.MULTILINE | re.DOTALL
    )
    if not match:
        return None
    desc = re.search(r'^description\s*=\s*"([^"]+)"', match.group(1), re.MULTILINE)
    return desc.group(1) if desc else None


MANIFESTS = (
    ("package.json", _description_from_package_json),
    ("pyproject.toml", lambda c: _description_from_toml(c, "project")),
    ("Cargo.toml", lambda c: _description_from_toml(c, "package")),
)


def read_description(root: Path) -> str | None:
    """Project description from the first manifest that declares one."""
    for filename, parse in MANIFESTS:
        path = root / filename
        if not path.is_file():
            continue
        try:
            desc = parse(path.read_text(encoding="utf-8", errors="replace")[:50000])
        except OSError as e:
            logger.warning("Could not read %s: %s", filename, e)
            continue
        if desc:
            return desc
    return None


def detect_default_branch(repo: LocalRepo) -> str | None:
    try:
        return repo.git.current_branch() or repo.git.remote_default_branch()
    except GitError as e:
        logger.warning("Could not determine default branch: %s", e)
        return None
