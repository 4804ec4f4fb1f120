"""
Custom exception hierarchy for apt-downgrade.

Every exception inherits from :class:`AptDowngradeError`, carries a closed
:class:`ErrorKind` and optional structured metadata via ``details``. The
kind decides recoverability: only remote-source failures may be absorbed
(per dependency) by the candidate aggregator, everything else aborts the
resolution run.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, MutableMapping, Optional, Sequence


class ErrorKind(Enum):
    """Closed set of failure categories."""

    TOOL_FAILURE = "tool-failure"
    PARSE_FAILURE = "parse-failure"
    REMOTE_FAILURE = "remote-failure"
    UNRESOLVABLE = "unresolvable"
    ARTIFACT_FAILURE = "artifact-failure"
    CONFIG = "config"


class AptDowngradeError(Exception):
    """Base exception for all apt-downgrade errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    kind: ErrorKind = ErrorKind.TOOL_FAILURE

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    @property
    def recoverable(self) -> bool:
        """Whether resolution may continue past this error."""
        return self.kind is ErrorKind.REMOTE_FAILURE

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ToolError(AptDowngradeError):
    """Raised when a host tool exits non-zero or is killed by a signal.

    Args:
        message: Error description.
        command: Argument vector that was executed.
        returncode: Exit status, if the process exited normally.
        signal: Signal number, if the process was killed.
    """

    __slots__ = ("command", "returncode", "signal")

    kind = ErrorKind.TOOL_FAILURE

    def __init__(
        self,
        message: str,
        *,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        signal: Optional[int] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "command", " ".join(command) if command else None)
        _add_if(details, "returncode", returncode)
        _add_if(details, "signal", signal)

        super().__init__(message, details)

        self.command = list(command) if command else None
        self.returncode = returncode
        self.signal = signal


class MetadataParseError(AptDowngradeError):
    """Raised when tool output or package metadata has an unexpected shape.

    Args:
        message: Error description.
        package: Package whose metadata was being parsed.
        content: Offending text, truncated in ``details``.
    """

    __slots__ = ("package", "content")

    kind = ErrorKind.PARSE_FAILURE

    def __init__(
        self,
        message: str,
        *,
        package: Optional[str] = None,
        content: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "package", package)
        if content is not None:
            details["content"] = _truncate(content)

        super().__init__(message, details)

        self.package = package
        self.content = content


class RemoteSourceError(AptDowngradeError):
    """Raised when a remote index cannot be fetched.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        package: Package the lookup was made for.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "package", "response_body")

    kind = ErrorKind.REMOTE_FAILURE

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        package: Optional[str] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)
        _add_if(details, "package", package)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.package = package
        self.response_body = response_body


class IndexFormatError(RemoteSourceError):
    """Raised when a remote index page does not have the expected structure."""

    __slots__ = ()


class UnresolvableDependencyError(AptDowngradeError):
    """Raised when no candidate satisfies every constraint of a dependency.

    Args:
        message: Error description.
        dependency: The dependency that could not be satisfied.
        candidates: Versions that were considered.
    """

    __slots__ = ("dependency", "candidates")

    kind = ErrorKind.UNRESOLVABLE

    def __init__(
        self,
        message: str,
        *,
        dependency: Any = None,
        candidates: Optional[Sequence[str]] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "dependency", str(dependency) if dependency else None)
        if candidates is not None:
            details["candidates"] = ", ".join(candidates) or "<none>"

        super().__init__(message, details)

        self.dependency = dependency
        self.candidates = list(candidates) if candidates is not None else None


class ArtifactDownloadError(AptDowngradeError):
    """Raised when a selected package cannot be materialized on disk.

    Args:
        message: Error description.
        url: Source URL of the artifact.
        package: Package being materialized.
        original_error: Underlying exception, if any.
    """

    __slots__ = ("url", "package", "original_error")

    kind = ErrorKind.ARTIFACT_FAILURE

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        package: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "package", package)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.url = url
        self.package = package
        self.original_error = original_error


class FileOperationError(AptDowngradeError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed.
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    kind = ErrorKind.ARTIFACT_FAILURE

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ConfigError(AptDowngradeError):
    """Raised when the configuration file is missing, unreadable or invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file.
        option: Offending option name, if any.
    """

    __slots__ = ("config_path", "option")

    kind = ErrorKind.CONFIG

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option
