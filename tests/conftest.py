"""Shared fixtures: throwaway git repositories built in tmp_path."""

import os
import shutil
import subprocess

import pytest

from repo_digest.git import GitClient
from repo_digest.workspace import LocalRepo

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Ada Lovelace",
    "GIT_AUTHOR_EMAIL": "ada@example.com",
    "GIT_COMMITTER_NAME": "Ada Lovelace",
    "GIT_COMMITTER_EMAIL": "ada@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(repo, *args):
    """Run git inside ``repo`` with a fixed identity; return stdout."""
    env = {**os.environ, **GIT_ENV, "HOME": str(repo)}
    result = subprocess.run(
        ["git", *args], cwd=repo, env=env, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def commit_all(repo, message, date=None):
    git(repo, "add", "-A")
    args = ["commit", "-q", "-m", message]
    if date:
        args += ["--date", date]
    git(repo, *args)
    return git(repo, "rev-parse", "HEAD")


def init_repo(path):
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "checkout", "-q", "-b", "main")
    git(path, "config", "commit.gpgsign", "false")
    return path


@pytest.fixture
def three_commit_repo(tmp_path):
    """Repository with three commits; the newest touches exactly three files."""
    repo = init_repo(tmp_path / "sample")

    (repo / "README.md").write_text("# Sample\nA sample project\n")
    (repo / "package.json").write_text('{"name": "sample", "description": "Sample package"}')
    src = repo / "src"
    src.mkdir()
    (src / "app.py").write_text("print('v1')\n")
    (src / "old.py").write_text("legacy = True\n")
    commit_all(repo, "Initial commit", date="2026-01-01T10:00:00+00:00")

    (repo / "docs").mkdir()
    (repo / "docs" / "guide.md").write_text("# Guide\n")
    commit_all(repo, "Add guide", date="2026-01-02T10:00:00+00:00")

    (src / "app.py").write_text("print('v2')\nprint('more')\n")
    (src / "old.py").unlink()
    (src / "new.py").write_text("fresh = True\n")
    commit_all(repo, "Rework app\n\nLonger body text.", date="2026-01-03T10:00:00+00:00")
    return repo


@pytest.fixture
def local_repo(three_commit_repo):
    return LocalRepo(three_commit_repo, GitClient(three_commit_repo), created=False)
