"""
L2 Resolver — HTTP fetching with cancellation.

The SINGLE PLACE where ``urllib.request.urlopen`` is called.  Every
request:
    - sets an identifying User-Agent
    - is bounded by a per-request timeout clipped to the caller's deadline
    - reads the body in chunks, polling the ``OperationContext`` between
      chunks so cancellation aborts an in-flight transfer
    - maps transport and HTTP-status failures to ``NetworkError``

Cancellation by the caller (or its deadline expiring mid-request, seen
as a socket timeout) surfaces as ``OperationCancelled``; running out of
the per-request budget surfaces as ``NetworkError``.
"""

from __future__ import annotations

import http.client
import io
import json
import logging
import time
import urllib.error
import urllib.request
from contextlib import contextmanager
from typing import Any, BinaryIO, Callable, Iterator

from sth.core.config.settings import (
    GITHUB_API,
    GITHUB_TIMEOUT,
    HTTP_TIMEOUT,
    USER_AGENT,
    github_token,
)
from sth.core.context import OperationContext
from sth.core.errors import FormatError, NetworkError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@contextmanager
def open_url(
    url: str,
    ctx: OperationContext,
    *,
    timeout: float = HTTP_TIMEOUT,
    user_agent: str = USER_AGENT,
    headers: dict[str, str] | None = None,
) -> Iterator[tuple[http.client.HTTPResponse, Callable[[], None]]]:
    """Open ``url`` and yield ``(response, check)``.

    ``check()`` must be called between reads: it raises
    ``OperationCancelled`` when the caller cancels and ``NetworkError``
    when the request's own time budget runs out.
    """
    if not url:
        raise NetworkError("empty url")

    ctx.check()
    request_deadline = time.monotonic() + timeout

    def check() -> None:
        ctx.check()
        if time.monotonic() >= request_deadline:
            raise NetworkError(f"GET {url}: timed out after {timeout}s", url=url)

    req = urllib.request.Request(url, headers={"User-Agent": user_agent, **(headers or {})})
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(req, timeout=ctx.timeout_for(timeout)) as resp:
            status = resp.getcode()
            if status is not None and not 200 <= status < 300:
                raise NetworkError(f"GET {url}: status {status}", url=url, status=status)
            yield resp, check
    except urllib.error.HTTPError as e:
        raise NetworkError(f"GET {url}: status {e.code} {e.reason}", url=url, status=e.code) from e
    except urllib.error.URLError as e:
        ctx.check()
        raise NetworkError(f"GET {url}: {e.reason}", url=url) from e
    except (http.client.HTTPException, OSError) as e:
        ctx.check()
        raise NetworkError(f"GET {url}: {e}", url=url) from e


def copy_body(resp: BinaryIO, out: BinaryIO, check: Callable[[], None],
              on_chunk: Callable[[int], None] | None = None) -> int:
    """Stream ``resp`` into ``out``; returns the byte count."""
    total = 0
    while True:
        check()
        chunk = resp.read(CHUNK_SIZE)
        if not chunk:
            return total
        out.write(chunk)
        total += len(chunk)
        if on_chunk is not None:
            on_chunk(total)


def fetch_bytes(
    url: str,
    ctx: OperationContext,
    *,
    timeout: float = HTTP_TIMEOUT,
    headers: dict[str, str] | None = None,
) -> bytes:
    """GET ``url`` and return the full body."""
    buf = io.BytesIO()
    with open_url(url, ctx, timeout=timeout, headers=headers) as (resp, check):
        copy_body(resp, buf, check)
    return buf.getvalue()


def fetch_text(url: str, ctx: OperationContext, *, timeout: float = HTTP_TIMEOUT) -> str:
    return fetch_bytes(url, ctx, timeout=timeout).decode("utf-8", errors="replace")


def fetch_json(
    url: str,
    ctx: OperationContext,
    *,
    timeout: float = HTTP_TIMEOUT,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and decode the body as JSON.

    Raises:
        FormatError: If the body is not valid JSON.
    """
    body = fetch_bytes(url, ctx, timeout=timeout, headers=headers)
    try:
        return json.loads(body)
    except ValueError as e:
        raise FormatError(f"GET {url}: invalid JSON: {e}") from e


def github_headers() -> dict[str, str]:
    headers = {"Accept": "application/vnd.github+json"}
    token = github_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def github_api(path: str, ctx: OperationContext) -> Any:
    """GET a GitHub REST API path (e.g. ``/repos/o/n/tags?per_page=100``)."""
    return fetch_json(GITHUB_API + path, ctx, timeout=GITHUB_TIMEOUT, headers=github_headers())
