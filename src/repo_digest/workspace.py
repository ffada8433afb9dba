"""Working-copy management: reuse-or-clone, scoped checkout, cleanup."""

from __future__ import annotations

import hashlib
import re
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .git import GitClient, GitError
from .log import get_logger
from .models import RepositoryReference

logger = get_logger(__name__)


class AcquisitionError(Exception):
    """The repository could not be cloned or the target path is not a repository."""


@dataclass
class LocalRepo:
    """Handle on an inspectable local repository."""

    path: Path
    git: GitClient
    created: bool  # True when we cloned it and therefore own it


def repo_name_from_url(url: str) -> str:
    """Derive a directory-friendly repository name from a URL or path.

    >>> repo_name_from_url("https://github.com/pallets/click.git")
    'click'
    >>> repo_name_from_url("git@github.com:owner/tool.git")
    'tool'
    """
    tail = re.split(r"[/:\\]", url.strip().rstrip("/\\"))[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    return tail or "repo"


def default_workdir() -> Path:
    return Path(tempfile.gettempdir()) / "repo-digest"


def default_local_path(url: str, workdir: Path | None = None) -> Path:
    """Clone location for ``url``: its name plus a short hash of the URL.

    The hash keeps same-named repositories from different owners apart.
    """
    key = hashlib.sha1(url.strip().rstrip("/").encode("utf-8")).hexdigest()[:8]
    return (workdir or default_workdir()) / f"{repo_name_from_url(url)}-{key}"


def _is_repository_root(path: Path) -> bool:
    try:
        top = GitClient(path).toplevel()
    except GitError:
        return False
    return top.resolve() == path.resolve()


def restore(repo: LocalRepo, ref: str) -> None:
    """Check ``ref`` out again. Raises GitError if git refuses."""
    repo.git.checkout(ref)
    logger.debug("Restored %s to %s", repo.path, ref)


@contextmanager
def checked_out(repo: LocalRepo, ref: str) -> Iterator[LocalRepo]:
    """Temporarily check out ``ref``; the original ref is always restored."""
    original = repo.git.current_ref()
    repo.git.checkout(ref)
    try:
        yield repo
    finally:
        try:
            restore(repo, original)
        except GitError as e:
            logger.error("Could not restore %s to %s: %s", repo.path, original, e)


class WorkingCopy:
    """Owns the local copy of one repository for the length of an analysis.

    ``obtain`` reuses an existing repository when there is one, otherwise
    clones. ``release`` deletes the copy only if ``obtain`` created it.
    """

    def __init__(self, reference: RepositoryReference, workdir: Path | None = None):
        self.reference = reference
        self.name = repo_name_from_url(reference.url)
        if reference.local_path:
            self.path = Path(reference.local_path)
        elif Path(reference.url).is_dir():
            self.path = Path(reference.url)
            self.name = self.path.resolve().name or self.name
        else:
            self.path = default_local_path(reference.url, workdir)
        self.repo: LocalRepo | None = None
        self._owns_path = False

    def obtain(self) -> LocalRepo:
        if self.repo is not None:
            return self.repo

        if self.path.exists():
            if not self.path.is_dir() or not _is_repository_root(self.path):
                raise AcquisitionError(f"{self.path} exists but is not a git repository")
            logger.info("Reusing existing repository at %s", self.path)
            self.repo = LocalRepo(self.path, GitClient(self.path), created=False)
            return self.repo

        logger.info("Cloning %s into %s", self.reference.url, self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._owns_path = True
        try:
            client = GitClient.clone(self.reference.url, self.path)
        except GitError as e:
            self._remove_path()
            raise AcquisitionError(f"Failed to clone {self.reference.url}: {e}") from e

        self.repo = LocalRepo(self.path, client, created=True)
        return self.repo

    def restore(self, ref: str) -> None:
        if self.repo is not None:
            restore(self.repo, ref)

    def checked_out(self, ref: str):
        return checked_out(self.obtain(), ref)

    def release(self) -> str | None:
        """Delete the local copy if we created it.

        Safe to call repeatedly and after a failed ``obtain``. Returns a
        warning message instead of raising when removal fails.
        """
        if not self._owns_path:
            return None
        warning = self._remove_path()
        if warning is None:
            self._owns_path = False
            self.repo = None
        return warning

    def _remove_path(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            message = f"Could not remove working copy {self.path}: {e}"
            logger.warning(message)
            return message
        logger.info("Removed working copy at %s", self.path)
        return None

    def __enter__(self) -> WorkingCopy:
        return self

    def __exit__(self, *exc) -> None:
        self.release()
