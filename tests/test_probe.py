"""Tests for the git and GitHub source probes."""

from unittest.mock import AsyncMock

import httpx
import pytest

from sideloader.core.records import ProbeFailure, ProbeSuccess
from sideloader.exceptions import ProbeError
from sideloader.plugins.probe import GitHubSourceProbe, GitSourceProbe, create_probe, parse_github_repo


LOCAL = "a" * 40
REMOTE = "b" * 40


@pytest.fixture
def checkout(tmp_path):
    folder = tmp_path / "foo-x"
    (folder / ".git").mkdir(parents=True)
    return folder


def fake_git(responses):
    """AsyncMock standing in for GitSourceProbe._git, keyed by git subcommand."""

    async def run(folder, *args):
        response = responses[args[0]]
        if isinstance(response, Exception):
            raise response
        return response

    return AsyncMock(side_effect=run)


class TestGitSourceProbe:

    @pytest.mark.asyncio
    async def test_detects_drift(self, tmp_path, checkout):
        probe = GitSourceProbe(plugins_dir=tmp_path)
        probe._git = AsyncMock(side_effect=[LOCAL, "", REMOTE])

        result = await probe.probe("foo-x")

        assert result == ProbeSuccess(needs_update=True, revision=LOCAL)
        calls = [c.args[1:] for c in probe._git.await_args_list]
        assert calls == [("rev-parse", "HEAD"), ("fetch", "--quiet"), ("rev-parse", "@{u}")]

    @pytest.mark.asyncio
    async def test_up_to_date(self, tmp_path, checkout):
        probe = GitSourceProbe(plugins_dir=tmp_path)
        probe._git = AsyncMock(side_effect=[LOCAL, "", LOCAL])

        result = await probe.probe("foo-x")

        assert result == ProbeSuccess(needs_update=False, revision=LOCAL)

    @pytest.mark.asyncio
    async def test_git_error_becomes_failure(self, tmp_path, checkout):
        probe = GitSourceProbe(plugins_dir=tmp_path)
        probe._git = fake_git({"rev-parse": LOCAL, "fetch": ProbeError("foo-x", "could not resolve host")})

        result = await probe.probe("foo-x")

        assert result == ProbeFailure(reason="could not resolve host")

    @pytest.mark.asyncio
    async def test_missing_checkout_is_failure(self, tmp_path):
        probe = GitSourceProbe(plugins_dir=tmp_path)

        result = await probe.probe("nowhere")

        assert isinstance(result, ProbeFailure)
        assert "not a git checkout" in result.reason

    @pytest.mark.asyncio
    async def test_missing_git_binary(self, tmp_path, checkout):
        probe = GitSourceProbe(plugins_dir=tmp_path, git=str(tmp_path / "no-such-git"))

        result = await probe.probe("foo-x")

        assert isinstance(result, ProbeFailure)
        assert "could not run git" in result.reason


class TestGitHubSourceProbe:

    def make_probe(self, tmp_path, handler, remote_url="https://github.com/example/foo.git"):
        probe = GitHubSourceProbe(
            plugins_dir=tmp_path,
            token="secret",
            transport=httpx.MockTransport(handler),
        )
        probe._git = fake_git({"rev-parse": LOCAL, "config": remote_url})
        return probe

    @pytest.mark.asyncio
    async def test_compares_with_latest_commit(self, tmp_path, checkout):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"sha": REMOTE})

        probe = self.make_probe(tmp_path, handler)

        result = await probe.probe("foo-x")

        assert result == ProbeSuccess(needs_update=True, revision=LOCAL)
        (request,) = seen
        assert request.url.path == "/repos/example/foo/commits/HEAD"
        assert request.headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_http_error_becomes_failure(self, tmp_path, checkout):
        probe = self.make_probe(tmp_path, lambda request: httpx.Response(403, json={"message": "rate limited"}))

        result = await probe.probe("foo-x")

        assert isinstance(result, ProbeFailure)
        assert "GitHub request failed" in result.reason

    @pytest.mark.asyncio
    async def test_non_github_remote_is_failure(self, tmp_path, checkout):
        probe = self.make_probe(tmp_path, lambda request: httpx.Response(200), remote_url="https://gitlab.com/a/b.git")

        result = await probe.probe("foo-x")

        assert isinstance(result, ProbeFailure)
        assert "not a GitHub remote" in result.reason

    @pytest.mark.asyncio
    async def test_response_without_sha_is_failure(self, tmp_path, checkout):
        probe = self.make_probe(tmp_path, lambda request: httpx.Response(200, json={}))

        result = await probe.probe("foo-x")

        assert result == ProbeFailure(reason="GitHub response has no commit sha")


@pytest.mark.parametrize("url, expected", [
    ("https://github.com/example/foo", ("example", "foo")),
    ("https://github.com/example/foo.git", ("example", "foo")),
    ("git@github.com:example/foo.git", ("example", "foo")),
    ("https://github.com/example/foo/", ("example", "foo")),
    ("https://gitlab.com/example/foo", None),
])
def test_parse_github_repo(url, expected):
    assert parse_github_repo(url) == expected


def test_create_probe(tmp_path):
    assert type(create_probe("git", tmp_path)) is GitSourceProbe
    github = create_probe("github", tmp_path, token="t")
    assert isinstance(github, GitHubSourceProbe)
    assert github.token == "t"
