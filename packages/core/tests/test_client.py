"""Tests for the authenticated GitHub client factory and repository listing."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, PropertyMock

import pytest
from github import GithubException

from prscribe_core.errors import RateLimitedError, TokenExpiredError, UpstreamError
from prscribe_core.gh.client import authenticate, get_client, github_error_message, iso, list_user_repos


def _token_cache(token="tok"):
    cache = MagicMock()
    cache.retrieve.return_value = token
    return cache


def _patch_github(mocker, login="octocat", login_error=None):
    gh = MagicMock()
    if login_error is not None:
        type(gh.get_user.return_value).login = PropertyMock(side_effect=login_error)
    else:
        gh.get_user.return_value.login = login
    github_cls = mocker.patch("prscribe_core.gh.client.Github", return_value=gh)
    return github_cls, gh


class TestGetClient:
    def test_returns_client_built_from_cached_token(self, mocker):
        github_cls, gh = _patch_github(mocker)
        auth_token = mocker.patch("prscribe_core.gh.client.Auth.Token")
        assert get_client(_token_cache("tok")) is gh
        auth_token.assert_called_once_with("tok")
        kwargs = github_cls.call_args.kwargs
        assert kwargs["timeout"] == 15
        assert kwargs["retry"] == 2

    def test_config_overrides_timeout_and_retries(self, mocker):
        github_cls, _ = _patch_github(mocker)
        get_client(_token_cache(), {"github_timeout": 3, "github_retries": 0})
        assert github_cls.call_args.kwargs["timeout"] == 3
        assert github_cls.call_args.kwargs["retry"] == 0

    def test_401_invalidates_and_raises_expired(self, mocker):
        _patch_github(mocker, login_error=GithubException(401, {"message": "Bad credentials"}))
        cache = _token_cache()
        with pytest.raises(TokenExpiredError) as exc:
            get_client(cache)
        cache.invalidate.assert_called_once()
        assert "expired" in str(exc.value)

    def test_403_raises_rate_limited_without_invalidating(self, mocker):
        _patch_github(mocker, login_error=GithubException(403, {"message": "rate limit"}))
        cache = _token_cache()
        with pytest.raises(RateLimitedError):
            get_client(cache)
        cache.invalidate.assert_not_called()

    def test_other_status_raises_upstream_with_status(self, mocker):
        _patch_github(mocker, login_error=GithubException(502, {"message": "Bad gateway"}))
        with pytest.raises(UpstreamError) as exc:
            get_client(_token_cache())
        assert exc.value.status == 502
        assert "Bad gateway" in str(exc.value)

    def test_transport_error_raises_upstream(self, mocker):
        _patch_github(mocker, login_error=ConnectionError("boom"))
        with pytest.raises(UpstreamError):
            get_client(_token_cache())

    def test_token_errors_propagate_unchanged(self, mocker):
        github_cls = mocker.patch("prscribe_core.gh.client.Github")
        cache = MagicMock()
        cache.retrieve.side_effect = TokenExpiredError()
        with pytest.raises(TokenExpiredError):
            get_client(cache)
        github_cls.assert_not_called()

    def test_authenticate_returns_login_from_single_user_call(self, mocker):
        _, gh = _patch_github(mocker, login="OctoCat")
        client, login = authenticate(_token_cache())
        assert client is gh
        assert login == "OctoCat"
        gh.get_user.assert_called_once_with()


def _repo(full_name="acme/widgets"):
    repo = MagicMock()
    repo.full_name = full_name
    repo.name = full_name.split("/")[1]
    repo.private = False
    repo.html_url = f"https://github.com/{full_name}"
    repo.description = "Widgets"
    repo.language = "Python"
    repo.stargazers_count = 5
    repo.forks_count = 1
    repo.default_branch = "main"
    repo.owner.login = full_name.split("/")[0]
    repo.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    repo.updated_at = datetime(2024, 2, 1, tzinfo=timezone.utc)
    repo.pushed_at = None
    return repo


class TestListUserRepos:
    def test_maps_repositories(self, mocker):
        _, gh = _patch_github(mocker)
        gh.get_user.return_value.get_repos.return_value = [_repo("acme/widgets"), _repo("acme/gadgets")]

        repos = list_user_repos(_token_cache())

        assert [r.full_name for r in repos] == ["acme/widgets", "acme/gadgets"]
        assert repos[0].owner_login == "acme"
        assert repos[0].created_at == "2024-01-01T00:00:00+00:00"
        assert repos[0].pushed_at is None
        gh.get_user.return_value.get_repos.assert_called_once_with(
            affiliation="owner,collaborator", sort="updated", direction="desc"
        )

    def test_caps_at_one_hundred(self, mocker):
        _, gh = _patch_github(mocker)
        gh.get_user.return_value.get_repos.return_value = [_repo(f"acme/r{i}") for i in range(120)]
        assert len(list_user_repos(_token_cache())) == 100

    def test_401_invalidates_and_raises_expired(self, mocker):
        _, gh = _patch_github(mocker)
        gh.get_user.return_value.get_repos.side_effect = GithubException(401, {"message": "Bad credentials"})
        cache = _token_cache()
        with pytest.raises(TokenExpiredError):
            list_user_repos(cache)
        cache.invalidate.assert_called_once()

    def test_other_failure_raises_upstream(self, mocker):
        _, gh = _patch_github(mocker)
        gh.get_user.return_value.get_repos.side_effect = GithubException(500, {"message": "oops"})
        with pytest.raises(UpstreamError) as exc:
            list_user_repos(_token_cache())
        assert str(exc.value) == "Failed to fetch repositories: oops"


def test_github_error_message_prefers_api_message():
    assert github_error_message(GithubException(404, {"message": "Not Found"})) == "Not Found"


def test_iso_handles_none():
    assert iso(None) is None
    assert iso(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)) == "2024-03-01T12:00:00+00:00"
