"""
Error taxonomy — every failure the engine reports.

All errors derive from ``ProvisionError`` so entrypoints can catch
one type.  Resolution strategies recover locally (``fallback``)
before raising; every other stage raises immediately and the
remaining actions are abandoned.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for all provisioning failures."""


class ConfigError(ProvisionError):
    """Raised when a recipe is malformed or missing required fields."""


class UnsupportedTargetError(ProvisionError):
    """Raised when the detected platform is outside a recipe's allow-list."""

    def __init__(self, kind: str, detected: str, allowed: list[str]) -> None:
        self.kind = kind
        self.detected = detected
        self.allowed = list(allowed)
        super().__init__(f"unsupported {kind} {detected!r} (allowed: {self.allowed})")


class TemplateError(ProvisionError):
    """Raised when a template cannot be parsed or evaluated."""


class NetworkError(ProvisionError):
    """Raised on transport failures and non-2xx HTTP responses."""

    def __init__(self, message: str, *, url: str = "", status: int | None = None) -> None:
        self.url = url
        self.status = status
        super().__init__(message)


class FormatError(ProvisionError):
    """Raised when remote metadata does not have the expected shape."""


class ChecksumMismatchError(ProvisionError):
    """Raised when a file's SHA-256 differs from the expected digest."""

    def __init__(self, file: str, expected: str, actual: str) -> None:
        self.file = file
        self.expected = expected
        self.actual = actual
        super().__init__(f"sha256 mismatch for {file}: got {actual} want {expected}")


class ArchiveError(ProvisionError):
    """Raised for unsupported or corrupt archives."""


class FilesystemError(ProvisionError):
    """Raised when mkdir / move / chmod / symlink fail."""


class ProcessError(ProvisionError):
    """Raised when a shell action exits non-zero."""

    def __init__(self, command: str, returncode: int) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(f"command exited with status {returncode}: {command}")


class OperationCancelled(ProvisionError):
    """Raised when the caller's cancellation signal or deadline fires."""


class ActionError(ProvisionError):
    """Wraps the failure of one install action with its type tag."""

    def __init__(self, action_type: str, cause: BaseException) -> None:
        self.action_type = action_type
        self.cause = cause
        super().__init__(f"{action_type}: {cause}")
