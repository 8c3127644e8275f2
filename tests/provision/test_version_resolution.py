"""
Tests for version discovery — strategies, fallbacks, cancellation.

GitHub and HTTP lookups are replaced via monkeypatch on the
``version_resolution`` module.
"""

import pytest

from sth.core.context import OperationContext
from sth.core.errors import ConfigError, FormatError, NetworkError, OperationCancelled
from sth.core.models.recipe import VersionSource
from sth.core.services.provision.resolver import version_resolution
from sth.core.services.provision.resolver.version_resolution import (
    compile_pattern,
    match_version,
    resolve_version,
)


@pytest.fixture
def github(monkeypatch: pytest.MonkeyPatch):
    """Canned GitHub API: ``github.responses[path] = payload``."""

    class FakeGitHub:
        def __init__(self) -> None:
            self.responses: dict = {}
            self.calls: list[str] = []

        def __call__(self, path, ctx):
            self.calls.append(path)
            payload = self.responses[path]
            if isinstance(payload, Exception):
                raise payload
            return payload

    fake = FakeGitHub()
    monkeypatch.setattr(version_resolution, "github_api", fake)
    return fake


def _fetch_returning(monkeypatch: pytest.MonkeyPatch, name: str, value):
    calls = []

    def fake(url, ctx, **kwargs):
        calls.append(url)
        if isinstance(value, Exception):
            raise value
        return value

    monkeypatch.setattr(version_resolution, name, fake)
    return calls


class TestStatic:
    """Tests for the static strategy."""

    def test_value(self, ctx):
        assert resolve_version(VersionSource(type="static", value="2.3.1"), ctx) == "2.3.1"

    def test_fallback(self, ctx):
        assert resolve_version(VersionSource(type="static", fallback="1.0.0"), ctx) == "1.0.0"

    def test_empty(self, ctx):
        with pytest.raises(ConfigError):
            resolve_version(VersionSource(type="static"), ctx)


class TestGitHubTag:
    """Tests for the githubTag strategy."""

    def test_numeric_semver_selection(self, ctx, github):
        github.responses["/repos/o/n/tags?per_page=100"] = [
            {"name": "v1.2.0"}, {"name": "v1.10.0"}, {"name": "v1.3.0"},
        ]
        vs = VersionSource(type="githubTag", repo="o/n")
        assert resolve_version(vs, ctx) == "1.10.0"

    def test_first_tag_when_no_semver(self, ctx, github):
        github.responses["/repos/o/n/tags?per_page=100"] = [{"name": "vnext"}, {"name": "edge"}]
        vs = VersionSource(type="githubTag", repo="o/n")
        assert resolve_version(vs, ctx) == "next"

    def test_no_tags_uses_fallback(self, ctx, github):
        github.responses["/repos/o/n/tags?per_page=100"] = []
        vs = VersionSource(type="githubTag", repo="o/n", fallback="0.1.0")
        assert resolve_version(vs, ctx) == "0.1.0"

    def test_no_tags_without_fallback(self, ctx, github):
        github.responses["/repos/o/n/tags?per_page=100"] = []
        with pytest.raises(FormatError):
            resolve_version(VersionSource(type="githubTag", repo="o/n"), ctx)


class TestGitHubRelease:
    """Tests for the githubRelease strategy."""

    def test_latest_endpoint(self, ctx, github):
        github.responses["/repos/o/n/releases/latest"] = {"tag_name": "v0.9.1"}
        vs = VersionSource(type="githubRelease", repo="o/n")
        assert resolve_version(vs, ctx) == "0.9.1"
        assert github.calls == ["/repos/o/n/releases/latest"]

    def test_listing_skips_prereleases(self, ctx, github):
        github.responses["/repos/o/n/releases?per_page=100"] = [
            {"tag_name": "v2.0.0-rc1", "prerelease": True},
            {"tag_name": "v1.9.0", "prerelease": False},
            {"tag_name": "v1.8.0", "prerelease": False},
        ]
        vs = VersionSource(type="githubRelease", repo="o/n", constraint=">=1.0")
        assert resolve_version(vs, ctx) == "1.9.0"

    def test_listing_accepts_prereleases_when_asked(self, ctx, github):
        github.responses["/repos/o/n/releases?per_page=100"] = [
            {"tag_name": "v2.0.0-rc1", "prerelease": True},
            {"tag_name": "v1.9.0", "prerelease": False},
        ]
        vs = VersionSource(type="githubRelease", repo="o/n", prerelease=True)
        assert resolve_version(vs, ctx) == "2.0.0-rc1"

    def test_network_error_falls_back(self, ctx, github):
        github.responses["/repos/o/n/releases/latest"] = NetworkError("boom")
        vs = VersionSource(type="githubRelease", repo="o/n", fallback="1.0.0")
        assert resolve_version(vs, ctx) == "1.0.0"

    def test_network_error_without_fallback(self, ctx, github):
        github.responses["/repos/o/n/releases/latest"] = NetworkError("boom")
        with pytest.raises(NetworkError):
            resolve_version(VersionSource(type="githubRelease", repo="o/n"), ctx)

    def test_missing_repo(self, ctx, github):
        assert resolve_version(VersionSource(type="githubRelease", fallback="3.0.0"), ctx) == "3.0.0"
        with pytest.raises(ConfigError):
            resolve_version(VersionSource(type="githubRelease"), ctx)
        assert github.calls == []


class TestRegex:
    """Tests for the regex strategy."""

    def test_named_group(self, ctx, monkeypatch):
        calls = _fetch_returning(monkeypatch, "fetch_text", "release notes: version-4.5.0 is out")
        vs = VersionSource(type="regex", url="https://x/notes", pattern=r"version-(?P<version>[0-9.]+)")
        assert resolve_version(vs, ctx) == "4.5.0"
        assert calls == ["https://x/notes"]

    def test_angle_bracket_named_group(self, ctx, monkeypatch):
        _fetch_returning(monkeypatch, "fetch_text", "v=7.1.2;")
        vs = VersionSource(type="regex", url="https://x", pattern=r"v=(?<version>[\d.]+);")
        assert resolve_version(vs, ctx) == "7.1.2"

    def test_first_group_and_whole_match(self):
        assert match_version(compile_pattern(r"tool (\d+\.\d+)"), "tool 1.4 ok") == "1.4"
        assert match_version(compile_pattern(r"\d+\.\d+\.\d+"), "x 9.8.7 y") == "9.8.7"

    def test_bad_pattern_falls_back_without_fetching(self, ctx, monkeypatch):
        calls = _fetch_returning(monkeypatch, "fetch_text", "")
        vs = VersionSource(type="regex", url="https://x", pattern="(unclosed", fallback="1.1.1")
        assert resolve_version(vs, ctx) == "1.1.1"
        assert calls == []

    def test_no_match(self, ctx, monkeypatch):
        _fetch_returning(monkeypatch, "fetch_text", "nothing here")
        vs = VersionSource(type="regex", url="https://x", pattern=r"v(\d+)")
        with pytest.raises(FormatError):
            resolve_version(vs, ctx)


class TestHttpJson:
    """Tests for the httpJson strategy."""

    def test_selector(self, ctx, monkeypatch):
        _fetch_returning(monkeypatch, "fetch_json", {"info": {"version": "v3.2.1"}})
        vs = VersionSource(type="httpJson", url="https://x/pypi.json", selector="$.info.version")
        assert resolve_version(vs, ctx) == "3.2.1"

    def test_number_result(self, ctx, monkeypatch):
        _fetch_returning(monkeypatch, "fetch_json", [{"v": 12}])
        vs = VersionSource(type="httpJson", url="https://x", selector="$[0].v")
        assert resolve_version(vs, ctx) == "12"

    def test_non_scalar(self, ctx, monkeypatch):
        _fetch_returning(monkeypatch, "fetch_json", {"info": {"version": {"major": 1}}})
        vs = VersionSource(type="httpJson", url="https://x", selector="$.info.version")
        with pytest.raises(FormatError):
            resolve_version(vs, ctx)

    def test_missing_selector_uses_fallback(self, ctx):
        vs = VersionSource(type="httpJson", url="https://x", fallback="2.0.0")
        assert resolve_version(vs, ctx) == "2.0.0"


class TestDispatch:
    """Tests for unknown types and cancellation."""

    def test_unknown_type(self, ctx):
        with pytest.raises(ConfigError, match="unsupported version source"):
            resolve_version(VersionSource(type="svn"), ctx)

    def test_unknown_type_fallback(self, ctx):
        assert resolve_version(VersionSource(type="svn", fallback="1.0.0"), ctx) == "1.0.0"

    def test_cancellation_is_never_masked(self, github):
        github.responses["/repos/o/n/tags?per_page=100"] = OperationCancelled("operation cancelled")
        vs = VersionSource(type="githubTag", repo="o/n", fallback="1.0.0")
        with pytest.raises(OperationCancelled):
            resolve_version(vs, OperationContext.background())

    def test_cancelled_context_aborts_real_request(self):
        ctx = OperationContext.background()
        ctx.cancel()
        vs = VersionSource(type="githubRelease", repo="o/n", fallback="1.0.0")
        with pytest.raises(OperationCancelled):
            resolve_version(vs, ctx)

    def test_deadline_during_request_skips_fallback(self, http_server):
        http_server.routes["/release"] = (200, b"version-4.5.0")
        http_server.delay = 1.5
        vs = VersionSource(
            type="regex",
            url=http_server.url("/release"),
            pattern=r"version-(?P<version>[0-9.]+)",
            fallback="1.0.0",
        )
        with pytest.raises(OperationCancelled):
            resolve_version(vs, OperationContext.background().with_timeout(0.3))
