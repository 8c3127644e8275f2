"""
Tests for the HTTP layer — status mapping, headers, cancellation.
"""

import pytest

from sth.core.context import OperationContext
from sth.core.errors import FormatError, NetworkError, OperationCancelled
from sth.core.services.provision.resolver.http_fetch import fetch_json, fetch_text, github_headers


class TestFetch:
    """Tests against a local HTTP server."""

    def test_text(self, ctx, http_server):
        http_server.routes["/page"] = (200, b"hello")
        assert fetch_text(http_server.url("/page"), ctx) == "hello"

    def test_user_agent(self, ctx, http_server):
        http_server.routes["/page"] = (200, b"")
        fetch_text(http_server.url("/page"), ctx)
        _path, headers = http_server.requests[0]
        assert headers["user-agent"] == "sth/1.0"

    def test_status_error(self, ctx, http_server):
        with pytest.raises(NetworkError) as exc:
            fetch_text(http_server.url("/nope"), ctx)
        assert exc.value.status == 404

    def test_json(self, ctx, http_server):
        http_server.routes["/api"] = (200, b'{"tag_name": "v1.0.0"}')
        assert fetch_json(http_server.url("/api"), ctx) == {"tag_name": "v1.0.0"}

    def test_invalid_json(self, ctx, http_server):
        http_server.routes["/api"] = (200, b"<html>")
        with pytest.raises(FormatError):
            fetch_json(http_server.url("/api"), ctx)

    def test_connection_refused(self, ctx):
        with pytest.raises(NetworkError):
            fetch_text("http://127.0.0.1:9/", ctx)

    def test_cancelled_before_request(self, http_server):
        http_server.routes["/page"] = (200, b"hello")
        ctx = OperationContext.background()
        ctx.cancel()
        with pytest.raises(OperationCancelled):
            fetch_text(http_server.url("/page"), ctx)
        assert http_server.requests == []

    def test_expired_deadline(self, http_server):
        ctx = OperationContext.background().with_timeout(-1)
        with pytest.raises(OperationCancelled, match="deadline"):
            fetch_text(http_server.url("/page"), ctx)

    def test_deadline_expiring_mid_request(self, http_server):
        """A socket timeout caused by the caller's deadline is cancellation, not a network error."""
        http_server.routes["/slow"] = (200, b"late")
        http_server.delay = 1.5
        ctx = OperationContext.background().with_timeout(0.3)
        with pytest.raises(OperationCancelled, match="deadline"):
            fetch_text(http_server.url("/slow"), ctx, timeout=10)

    def test_request_budget_is_network_error(self, ctx, http_server):
        http_server.routes["/slow"] = (200, b"late")
        http_server.delay = 1.5
        with pytest.raises(NetworkError):
            fetch_text(http_server.url("/slow"), ctx, timeout=0.3)


class TestGitHubHeaders:
    """Tests for optional bearer auth."""

    def test_token(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "abc")
        assert github_headers()["Authorization"] == "Bearer abc"

    def test_no_token(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        assert "Authorization" not in github_headers()
