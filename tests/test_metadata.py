"""Tests for README, description and default-branch lookup."""

from conftest import requires_git

from repo_digest.metadata import detect_default_branch, read_description, read_readme


class TestReadme:
    def test_case_insensitive(self, tmp_path):
        (tmp_path / "readme.MD").write_text("hello")
        assert read_readme(tmp_path) == "hello"

    def test_txt_and_order(self, tmp_path):
        (tmp_path / "README.txt").write_text("text")
        (tmp_path / "README.md").write_text("markdown")
        assert read_readme(tmp_path) == "markdown"

    def test_other_extensions_ignored(self, tmp_path):
        (tmp_path / "README.rst").write_text("rst")
        assert read_readme(tmp_path) is None

    def test_non_utf8(self, tmp_path):
        (tmp_path / "README.md").write_bytes(b"\xff\xfe\x00bad")
        assert read_readme(tmp_path) is None

    def test_missing_root(self, tmp_path):
        assert read_readme(tmp_path / "nope") is None


class TestDescription:
    def test_package_json(self, tmp_path):
        (tmp_path / "package.json").write_text('{"description": "From npm"}')
        (tmp_path / "pyproject.toml").write_text('[project]\ndescription = "From py"\n')
        assert read_description(tmp_path) == "From npm"

    def test_pyproject(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            '[tool.other]\ndescription = "wrong"\n\n[project]\nname = "x"\ndescription = "From py"\n'
        )
        assert read_description(tmp_path) == "From py"

    def test_cargo(self, tmp_path):
        (tmp_path / "Cargo.toml").write_text('[package]\nname = "kv"\ndescription = "A fast store"\n\n[dependencies]\n')
        assert read_description(tmp_path) == "A fast store"

    def test_invalid_package_json_falls_through(self, tmp_path):
        (tmp_path / "package.json").write_text("{not json")
        (tmp_path / "Cargo.toml").write_text('[package]\ndescription = "cargo"\n')
        assert read_description(tmp_path) == "cargo"

    def test_none(self, tmp_path):
        assert read_description(tmp_path) is None


@requires_git
class TestDefaultBranch:
    def test_current_branch(self, local_repo):
        assert detect_default_branch(local_repo) == "main"

    def test_detached_without_remote(self, local_repo):
        local_repo.git.checkout(local_repo.git.head_sha())
        assert detect_default_branch(local_repo) is None
        local_repo.git.checkout("main")
