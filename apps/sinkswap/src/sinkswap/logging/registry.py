"""
Sink registry: owns the active log destination and swaps it live.

The registry is the only writer of :class:`ActiveSink`. A reload converges the
active sink to the log file path currently in configuration. Log writes never
take the reload lock. They read the current ``ActiveSink`` reference, which is
replaced as a whole and never mutated in place.

Swap order for a new file, which must not be reordered:
    1. open the new file (and write the separator banner)
    2. repoint the active sink to stdout + new file
    3. close the previous file
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any, Optional, Protocol

import structlog
from structlog.typing import EventDict, FilteringBoundLogger

from .exceptions import FileOpenError, PathResolutionError, SinkTeardownError
from .formatters import LogFormat
from .sinks import SEPARATOR_BANNER, BaseSink, StdioSink, TeeSink


class LogFileConfig(Protocol):
    """Configuration collaborator: a mutable log file path, empty means disabled."""

    file: str


class SinkState(str, Enum):
    STDOUT_ONLY = "stdout_only"
    STDOUT_PLUS_FILE = "stdout_plus_file"
    CLOSED = "closed"


@dataclass(frozen=True)
class ActiveSink:
    """Current log output. ``file`` is set if and only if output fans out to a file."""

    destination: BaseSink
    file: Optional[IO[str]] = None
    path: Optional[Path] = None

    def __post_init__(self) -> None:
        if (self.file is None) != (not isinstance(self.destination, TeeSink)):
            raise ValueError("file handle must be present exactly when output fans out to a file")

    @property
    def state(self) -> SinkState:
        return SinkState.STDOUT_ONLY if self.file is None else SinkState.STDOUT_PLUS_FILE


class SinkRegistry:
    """Holds the process's single :class:`ActiveSink` and serializes reloads.

    Args:
        config: Object exposing the desired log file path as ``file``, read
            fresh at the start of every reload.
        fmt: Rendering format used for both stdout and the log file.
        stream: Standard output stream (default: ``sys.stdout``).
    """

    def __init__(self, config: LogFileConfig, *, fmt: LogFormat = "console", stream: Any = None):
        self._config = config
        self._fmt = fmt
        self._stdout = StdioSink(fmt=fmt, stream=stream)
        self._active = ActiveSink(destination=self._stdout)
        self._lock = threading.Lock()
        self._pending_close: list[ActiveSink] = []
        self._closed = False
        self._log: FilteringBoundLogger = structlog.get_logger("sinkswap.registry")

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def active(self) -> ActiveSink:
        return self._active

    @property
    def state(self) -> SinkState:
        if self._closed:
            return SinkState.CLOSED
        return self._active.state

    @property
    def pending_close(self) -> tuple[ActiveSink, ...]:
        """Sinks whose file close failed and will be retried."""
        return tuple(self._pending_close)

    def attach_logger(self, logger: FilteringBoundLogger) -> None:
        """Route the registry's own diagnostics through the given handle."""
        self._log = logger

    def emit(self, event_dict: EventDict) -> None:
        """Write one event to whatever destination is active right now.

        A destination closed between the read and the write refuses the
        record; by then the repoint has happened, so the retry lands on the
        new destination.
        """
        active = self._active
        while not active.destination.emit(event_dict):
            current = self._active
            if current is active:
                self._stdout.emit(event_dict)
                return
            active = current

    # -------------------------------------------------------------------------
    # Write side
    # -------------------------------------------------------------------------

    def reload(self) -> ActiveSink:
        """Converge the active sink to the log file path in configuration.

        Raises:
            PathResolutionError: The path cannot be made absolute. Sink untouched.
            FileOpenError: The file cannot be opened. Sink untouched.
            SinkTeardownError: The previous file failed to close. The new
                sink is already active.
        """
        with self._lock:
            if self._closed:
                self._log.warning("Ignoring log file reload after shutdown")
                return self._active

            self._log.debug("About to (re)load log file")
            self._retry_pending_close()

            path = self._config.file
            if not path:
                return self._use_stdout()
            return self._use_file(path)

    def close(self) -> None:
        """Shutdown cleanup: release the open log file exactly once.

        Output falls back to stdout before the file is closed. Does nothing
        when no file is open or when already closed.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._retry_pending_close()

            previous = self._active
            if previous.file is None:
                return
            self._active = ActiveSink(destination=self._stdout)
            self._teardown(previous, "Failed to close log file")

    def _use_stdout(self) -> ActiveSink:
        self._log.info("Not using log file, only stdout")

        previous = self._swap(ActiveSink(destination=self._stdout))
        if previous.file is not None:
            self._log.debug("Closing previous log file", path=str(previous.path))
            self._teardown(previous, "Failed to close previous log file")

        return self._active

    def _use_file(self, path: str) -> ActiveSink:
        target = self._resolve(path)
        self._log.debug("Log file", path=str(target))

        fp = self._open(target)
        previous = self._swap(
            ActiveSink(destination=TeeSink(self._stdout, fp, fmt=self._fmt), file=fp, path=target)
        )
        self._log.info("Log file (re)loaded", path=str(target))

        if previous.file is not None:
            self._teardown(previous, "Failed to close previous log file")

        return self._active

    def _resolve(self, path: str) -> Path:
        try:
            return Path(os.path.abspath(os.path.expanduser(path)))
        except OSError as exc:
            self._log.error("Failed to calculate absolute log file path", path=path, error=str(exc))
            raise PathResolutionError(path=path, reason=str(exc)) from exc

    def _open(self, target: Path) -> IO[str]:
        """Open ``target`` for appending and mark where this output begins.

        A failed banner write is logged and the file is kept; only a failed
        open aborts the swap.
        """
        try:
            fp = open(target, "a+", encoding="utf-8", errors="backslashreplace")
        except (OSError, ValueError) as exc:
            self._log.error("Error opening log file", path=str(target), error=str(exc))
            raise FileOpenError(path=str(target), reason=str(exc)) from exc

        try:
            fp.write(SEPARATOR_BANNER)
            fp.flush()
        except OSError as exc:
            self._log.error("Error writing log file banner", path=str(target), error=str(exc))

        return fp

    def _swap(self, new: ActiveSink) -> ActiveSink:
        previous = self._active
        self._active = new
        return previous

    def _teardown(self, previous: ActiveSink, message: str) -> None:
        try:
            previous.destination.close()
        except OSError as exc:
            self._pending_close.append(previous)
            path = str(previous.path) if previous.path else None
            self._log.error(message, path=path, error=str(exc))
            raise SinkTeardownError(path=path, reason=str(exc)) from exc

    def _retry_pending_close(self) -> None:
        still_pending = []
        for stale in self._pending_close:
            try:
                stale.destination.close()
            except OSError as exc:
                self._log.error("Retrying close of stale log file failed", path=str(stale.path), error=str(exc))
                still_pending.append(stale)
            else:
                self._log.debug("Closed stale log file", path=str(stale.path))
        self._pending_close = still_pending
