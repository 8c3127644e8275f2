"""
L2 Resolver — SHA-256 checksum resolution.

A recipe's ``sha256Template`` renders either to the digest itself or
to a URL serving the digest (e.g. a ``.sha256`` sidecar file).
"""

from __future__ import annotations

import logging
import re
from typing import Mapping

from sth.core.context import OperationContext
from sth.core.errors import ConfigError, FormatError
from sth.core.services.provision.domain.template import render
from sth.core.services.provision.resolver.http_fetch import fetch_text

logger = logging.getLogger(__name__)

_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def is_sha256(value: str) -> bool:
    return bool(_SHA256_RE.match(value))


def resolve_checksum(template: str, context: Mapping[str, str], ctx: OperationContext) -> str:
    """Render ``template`` and return a lowercase hex digest.

    Raises:
        ConfigError: The template renders to nothing.
        TemplateError: The template is malformed.
        NetworkError: The checksum URL cannot be fetched.
        FormatError: The fetched body is not a bare 64-char hex digest.
    """
    rendered = render(template, context)
    if not rendered:
        raise ConfigError("sha256 template rendered empty")
    if is_sha256(rendered):
        return rendered.lower()

    body = fetch_text(rendered, ctx).strip()
    if not is_sha256(body):
        raise FormatError(f"checksum at {rendered} is not a sha256 hex digest")
    logger.debug("Fetched checksum from %s", rendered)
    return body.lower()
