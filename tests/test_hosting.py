"""Tests for the GitHub metadata client."""

from unittest.mock import MagicMock, patch

import pytest

from repo_digest.hosting import GitHubClient, HostingError, parse_github_url


class TestParseGithubUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/pallets/click",
            "https://github.com/pallets/click.git",
            "https://github.com/pallets/click/",
            "git@github.com:pallets/click.git",
            "github.com/pallets/click",
        ],
    )
    def test_github(self, url):
        assert parse_github_url(url) == ("pallets", "click")

    def test_other_hosts(self):
        assert parse_github_url("https://gitlab.com/a/b.git") is None
        assert parse_github_url("/srv/git/repo") is None


class TestGitHubClient:
    def test_auth_header(self):
        client = GitHubClient(token="secret")
        assert client._client.headers["Authorization"] == "Bearer secret"
        client.close()

    @patch("httpx.Client.get")
    def test_fetch_repository(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.return_value = {"description": "CLI toolkit", "default_branch": "stable"}
        mock_get.return_value = mock_resp
        with GitHubClient() as client:
            meta = client.fetch_repository("pallets", "click")
        assert meta.description == "CLI toolkit"
        assert meta.default_branch == "stable"
        assert mock_get.call_args[0][0] == "https://api.github.com/repos/pallets/click"

    @patch("httpx.Client.get")
    def test_null_description(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.return_value = {"description": None, "default_branch": "main"}
        mock_get.return_value = mock_resp
        with GitHubClient() as client:
            assert client.fetch_repository("a", "b").description is None

    @patch("httpx.Client.get")
    def test_error_status(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.status_code = 404
        mock_resp.text = "Not Found"
        mock_get.return_value = mock_resp
        with GitHubClient() as client:
            with pytest.raises(HostingError, match="404"):
                client.fetch_repository("a", "b")

    @patch("httpx.Client.get")
    def test_connection_error(self, mock_get):
        from httpx import ConnectError

        mock_get.side_effect = ConnectError("connection refused")
        with GitHubClient() as client:
            with pytest.raises(HostingError, match="failed"):
                client.fetch_repository("a", "b")

    @patch("httpx.Client.get")
    def test_timeout(self, mock_get):
        from httpx import TimeoutException

        mock_get.side_effect = TimeoutException("timed out")
        with GitHubClient() as client:
            with pytest.raises(HostingError, match="timed out"):
                client.fetch_repository("a", "b")
