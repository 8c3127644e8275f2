"""
Tests for artifact download — atomic rename and partial-file cleanup.
"""

from pathlib import Path

import pytest

from sth.core.context import OperationContext
from sth.core.errors import NetworkError, OperationCancelled
from sth.core.services.provision.execution.download import PART_SUFFIX, download_file

PAYLOAD = b"\x7fELF" + b"x" * 200_000


class TestDownload:
    """Tests against a local HTTP server."""

    def test_writes_destination(self, tmp_path: Path, ctx, http_server):
        http_server.routes["/tool"] = (200, PAYLOAD)
        dest = tmp_path / "cache" / "tool-1.0.0"
        written = download_file(http_server.url("/tool"), dest, ctx)
        assert written == len(PAYLOAD)
        assert dest.read_bytes() == PAYLOAD
        assert not (tmp_path / "cache" / ("tool-1.0.0" + PART_SUFFIX)).exists()

    def test_user_agent(self, tmp_path: Path, ctx, http_server):
        http_server.routes["/tool"] = (200, b"x")
        download_file(http_server.url("/tool"), tmp_path / "t", ctx)
        _path, headers = http_server.requests[0]
        assert headers["user-agent"] == "sth-installer/1.0"

    def test_replaces_existing(self, tmp_path: Path, ctx, http_server):
        http_server.routes["/tool"] = (200, b"new")
        dest = tmp_path / "t"
        dest.write_bytes(b"old")
        download_file(http_server.url("/tool"), dest, ctx)
        assert dest.read_bytes() == b"new"

    def test_http_error_leaves_nothing(self, tmp_path: Path, ctx, http_server):
        dest = tmp_path / "t"
        with pytest.raises(NetworkError):
            download_file(http_server.url("/missing"), dest, ctx)
        assert list(tmp_path.iterdir()) == []

    def test_cancellation_leaves_nothing(self, tmp_path: Path, http_server):
        http_server.routes["/tool"] = (200, PAYLOAD)
        ctx = OperationContext.background()
        ctx.cancel()
        dest = tmp_path / "t"
        with pytest.raises(OperationCancelled):
            download_file(http_server.url("/tool"), dest, ctx)
        assert list(tmp_path.iterdir()) == []
