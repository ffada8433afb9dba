"""Thin wrapper around the ``git`` binary.

Only the handful of operations the pipeline needs are exposed: clone, log,
the three diff flavours and checkout, plus a few ref queries. Every call
raises ``GitError`` on failure so callers can decide whether to recover.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

from .config import CLONE_TIMEOUT, GIT_TIMEOUT
from .log import get_logger

logger = get_logger(__name__)

# Non-ASCII stays raw; only quotes, backslashes and control characters get C-quoted
_BASE_ARGS = ["git", "-c", "core.quotePath=false"]


class GitError(Exception):
    """A git invocation failed, timed out, or git is not installed."""

    def __init__(self, args: list[str], message: str, returncode: int | None = None):
        self.command = args
        self.returncode = returncode
        super().__init__(f"git {' '.join(args)}: {message}")


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    # Never block on a credential prompt
    env["GIT_TERMINAL_PROMPT"] = "0"
    env.setdefault("LC_ALL", "C")
    return env


def run_git(args: list[str], cwd: Path | None = None, timeout: float = GIT_TIMEOUT) -> str:
    """Run ``git <args>`` and return stdout. Raises GitError on any failure."""
    logger.debug("git %s", " ".join(args))
    try:
        result = subprocess.run(
            _BASE_ARGS + args,
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
            env=_git_env(),
        )
    except FileNotFoundError:
        raise GitError(args, "git executable not found")
    except subprocess.TimeoutExpired:
        raise GitError(args, f"timed out after {timeout}s")

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(args, stderr[:500] or "failed", result.returncode)
    return result.stdout.decode("utf-8", errors="replace")


class GitClient:
    """Git operations bound to one working copy."""

    def __init__(self, root: Path, timeout: float = GIT_TIMEOUT):
        self.root = Path(root)
        self.timeout = timeout

    @classmethod
    def clone(cls, url: str, dest: Path, timeout: float = CLONE_TIMEOUT) -> GitClient:
        """Full clone of ``url`` into ``dest``."""
        run_git(["clone", "--quiet", url, str(dest)], timeout=timeout)
        return cls(dest)

    def _run(self, *args: str) -> str:
        return run_git(list(args), cwd=self.root, timeout=self.timeout)

    def toplevel(self) -> Path:
        return Path(self._run("rev-parse", "--show-toplevel").strip())

    def log(self, max_count: int, fmt: str, rev: str = "HEAD") -> str:
        return self._run("log", f"-n{max_count}", f"--format={fmt}", rev, "--")

    def diff_name_status(self, from_ref: str, to_ref: str) -> str:
        """NUL-separated ``--name-status`` output; paths are never quoted."""
        return self._run("diff", "--name-status", "-z", from_ref, to_ref)

    def diff_numstat(self, from_ref: str, to_ref: str) -> str:
        """NUL-separated ``--numstat`` output; paths are never quoted."""
        return self._run("diff", "--numstat", "-z", from_ref, to_ref)

    def diff_full(self, from_ref: str, to_ref: str) -> str:
        return self._run(
            "diff", "--no-color", "--no-ext-diff", "--src-prefix=a/", "--dst-prefix=b/",
            from_ref, to_ref,
        )

    def has_local_changes(self) -> bool:
        """True when tracked files differ from HEAD (untracked files ignored)."""
        return bool(self._run("status", "--porcelain", "--untracked-files=no").strip())

    def checkout(self, ref: str) -> None:
        self._run("checkout", "--quiet", ref)

    def head_sha(self) -> str:
        return self._run("rev-parse", "HEAD").strip()

    def current_branch(self) -> str | None:
        """Branch name, or None when HEAD is detached."""
        name = self._run("branch", "--show-current").strip()
        return name or None

    def current_ref(self) -> str:
        """The ref to return to later: branch name, else the detached sha."""
        return self.current_branch() or self.head_sha()

    def remote_default_branch(self, remote: str = "origin") -> str | None:
        try:
            ref = self._run("symbolic-ref", "--short", f"refs/remotes/{remote}/HEAD").strip()
        except GitError:
            return None
        prefix = f"{remote}/"
        return ref[len(prefix):] if ref.startswith(prefix) else ref or None
