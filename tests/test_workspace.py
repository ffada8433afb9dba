"""Tests for working-copy acquisition, checkout scoping and cleanup."""

from unittest.mock import patch

import pytest
from conftest import commit_all, init_repo, requires_git

from repo_digest.models import RepositoryReference
from repo_digest.workspace import (
    AcquisitionError,
    WorkingCopy,
    checked_out,
    default_local_path,
    repo_name_from_url,
)


class TestRepoName:
    @pytest.mark.parametrize(
        "url,name",
        [
            ("https://github.com/pallets/click.git", "click"),
            ("https://github.com/pallets/click", "click"),
            ("https://github.com/pallets/click/", "click"),
            ("git@github.com:owner/tool.git", "tool"),
            ("/srv/git/project.git", "project"),
            ("", "repo"),
        ],
    )
    def test_names(self, url, name):
        assert repo_name_from_url(url) == name

    def test_default_local_path(self, tmp_path):
        path = default_local_path("https://x.org/a/b.git", tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("b-")
        assert default_local_path("https://x.org/a/b.git", tmp_path) == path

    def test_same_name_different_owner(self, tmp_path):
        first = default_local_path("https://github.com/alice/utils", tmp_path)
        second = default_local_path("https://github.com/bob/utils", tmp_path)
        assert first != second
        assert first.name.startswith("utils-") and second.name.startswith("utils-")


@requires_git
class TestObtain:
    def test_reuses_local_directory(self, three_commit_repo):
        copy = WorkingCopy(RepositoryReference(url=str(three_commit_repo)))
        repo = copy.obtain()
        assert repo.path == three_commit_repo
        assert repo.created is False
        assert copy.name == "sample"
        assert copy.release() is None
        assert three_commit_repo.exists()

    def test_clones_and_releases(self, three_commit_repo, tmp_path):
        url = three_commit_repo.as_uri()
        copy = WorkingCopy(RepositoryReference(url=url), workdir=tmp_path / "work")
        repo = copy.obtain()
        assert repo.created is True
        assert repo.path == default_local_path(url, tmp_path / "work")
        assert repo.path.name.startswith("sample-")
        assert (repo.path / "README.md").is_file()
        assert copy.obtain() is repo

        assert copy.release() is None
        assert not repo.path.exists()
        assert copy.release() is None

    def test_reuses_existing_clone_at_derived_path(self, three_commit_repo, tmp_path):
        url = three_commit_repo.as_uri()
        workdir = tmp_path / "work"
        first = WorkingCopy(RepositoryReference(url=url), workdir=workdir)
        first.obtain()

        second = WorkingCopy(RepositoryReference(url=url), workdir=workdir)
        assert second.obtain().created is False
        assert second.release() is None
        assert default_local_path(url, workdir).exists()
        first.release()

    def test_same_name_repositories_get_separate_clones(self, tmp_path):
        copies = []
        for owner in ("alice", "bob"):
            repo = init_repo(tmp_path / owner / "utils")
            (repo / "README.md").write_text(f"# {owner}\n")
            commit_all(repo, "Initial commit")
            copies.append(WorkingCopy(RepositoryReference(url=repo.as_uri()), workdir=tmp_path / "work"))

        first, second = (copy.obtain() for copy in copies)
        assert first.path != second.path
        assert second.created is True
        assert (first.path / "README.md").read_text() == "# alice\n"
        assert (second.path / "README.md").read_text() == "# bob\n"
        for copy in copies:
            copy.release()

    def test_invalid_existing_directory(self, tmp_path):
        url = "https://example.invalid/thing.git"
        target = default_local_path(url, tmp_path / "work")
        target.mkdir(parents=True)
        (target / "file.txt").write_text("not a repo")
        copy = WorkingCopy(RepositoryReference(url=url), workdir=tmp_path / "work")
        with pytest.raises(AcquisitionError, match="not a git repository"):
            copy.obtain()
        assert copy.release() is None
        assert target.exists()

    def test_unreachable_url_leaves_nothing(self, tmp_path):
        url = (tmp_path / "missing.git").as_uri()
        copy = WorkingCopy(RepositoryReference(url=url), workdir=tmp_path / "work")
        with pytest.raises(AcquisitionError, match="Failed to clone"):
            copy.obtain()
        assert copy.release() is None
        assert not default_local_path(url, tmp_path / "work").exists()

    def test_release_before_obtain(self, tmp_path):
        copy = WorkingCopy(RepositoryReference(url="https://example.invalid/x.git"), workdir=tmp_path)
        assert copy.release() is None

    def test_release_failure_is_reported(self, three_commit_repo, tmp_path):
        copy = WorkingCopy(RepositoryReference(url=three_commit_repo.as_uri()), workdir=tmp_path / "work")
        copy.obtain()
        with patch("shutil.rmtree", side_effect=PermissionError("busy")):
            warning = copy.release()
        assert "Could not remove" in warning
        assert copy.release() is None
        assert not copy.path.exists()

    def test_local_path_hint(self, three_commit_repo, tmp_path):
        hint = tmp_path / "elsewhere"
        copy = WorkingCopy(RepositoryReference(url=three_commit_repo.as_uri(), local_path=str(hint)))
        assert copy.obtain().path == hint
        copy.release()
        assert not hint.exists()


@requires_git
class TestCheckedOut:
    def test_restores_after_error(self, local_repo):
        first = local_repo.git.log(3, "%H").split()[-1]
        with pytest.raises(RuntimeError):
            with checked_out(local_repo, first):
                assert local_repo.git.head_sha() == first
                raise RuntimeError("boom")
        assert local_repo.git.current_ref() == "main"

    def test_working_copy_scope(self, three_commit_repo):
        copy = WorkingCopy(RepositoryReference(url=str(three_commit_repo)))
        with copy.checked_out("HEAD~2") as repo:
            assert not (repo.path / "docs").exists()
        assert (three_commit_repo / "docs" / "guide.md").exists()
        assert copy.obtain().git.current_branch() == "main"
