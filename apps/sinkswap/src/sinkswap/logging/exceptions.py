"""
Sink registry exception hierarchy.

Every failure carries a stable ``code`` for programmatic handling and a
``details`` dict with the offending path. The underlying ``OSError`` is
chained as ``__cause__``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LogSinkError(Exception):
    """Base class for all sink registry failures.

    None of these are fatal to the process: logging carries on with stdout or
    with the previously active file.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}

    @property
    def path(self) -> Optional[str]:
        return self.details.get("path")


class PathResolutionError(LogSinkError):
    """The configured log file path could not be made absolute.

    The active sink is left untouched.
    """

    def __init__(self, *, path: str, reason: str) -> None:
        super().__init__(
            f"Cannot resolve log file path '{path}': {reason}",
            code="PATH_RESOLUTION_FAILED",
            details={"path": path, "reason": reason},
        )


class FileOpenError(LogSinkError):
    """The new log file could not be opened or its banner written.

    The active sink is left untouched.
    """

    def __init__(self, *, path: str, reason: str) -> None:
        super().__init__(
            f"Cannot open log file '{path}': {reason}",
            code="FILE_OPEN_FAILED",
            details={"path": path, "reason": reason},
        )


class SinkTeardownError(LogSinkError):
    """Closing a previously active log file failed.

    Output has already been repointed, so this is reported but logging
    continues. The stale sink stays queued for another close attempt.
    """

    def __init__(self, *, path: Optional[str], reason: str) -> None:
        super().__init__(
            f"Failed to close log file '{path}': {reason}",
            code="SINK_TEARDOWN_FAILED",
            details={"path": path, "reason": reason},
        )
