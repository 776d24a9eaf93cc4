"""
Log sink abstractions and concrete implementations.

A sink is the destination half of an :class:`~sinkswap.logging.registry.ActiveSink`.
Two shapes exist: stdout only, and stdout fanned out to a log file.
"""

from __future__ import annotations

import sys
import threading
from abc import ABC, abstractmethod
from typing import IO, Any

from structlog.typing import EventDict

from .formatters import LogFormat, render

# Written at every file (re)open so a shared or reused log file shows where a
# new process's output begins.
SEPARATOR_BANNER = "\n\n================\n\n\n"


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    @abstractmethod
    def emit(self, event_dict: EventDict) -> bool:
        """Emit a log event to the sink.

        Returns False, without writing anything, when the sink has already
        been closed. The caller then re-reads the active sink and retries.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...

    @property
    def closed(self) -> bool:
        return False


class StdioSink(BaseSink):
    """Standard output sink with configurable format.

    Args:
        fmt: Output format - "console" (colored when the stream is a TTY) or "json"
        stream: Output stream (default: stdout)
    """

    def __init__(self, fmt: LogFormat = "console", stream: Any = None):
        self._fmt = fmt
        self._stream = stream or sys.stdout

    @property
    def stream(self) -> Any:
        return self._stream

    def render(self, event_dict: EventDict) -> str:
        use_color = bool(getattr(self._stream, "isatty", lambda: False)())
        return render(event_dict, self._fmt, use_color=use_color)

    def write_line(self, line: str) -> None:
        self._stream.write(line + "\n")
        self._stream.flush()

    def emit(self, event_dict: EventDict) -> bool:
        self.write_line(self.render(event_dict))
        return True

    def close(self) -> None:
        # stdout belongs to the process, never closed here
        pass


class TeeSink(BaseSink):
    """Stdout fanned out to an open log file.

    The sink owns the file handle. Emission and close share one lock, so a
    record is either written to both targets before the close or to neither.
    Both lines are rendered before either target is written.
    """

    def __init__(self, stdout: StdioSink, file: IO[str], fmt: LogFormat = "console"):
        self._stdout = stdout
        self._file = file
        self._fmt = fmt
        self._lock = threading.Lock()
        self._closed = False

    @property
    def file(self) -> IO[str]:
        return self._file

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event_dict: EventDict) -> bool:
        stdout_line = self._stdout.render(event_dict)
        file_line = render(event_dict, self._fmt)
        with self._lock:
            if self._closed:
                return False
            self._stdout.write_line(stdout_line)
            self._file.write(file_line + "\n")
            self._file.flush()
            return True

    def close(self) -> None:
        """Stop accepting records and close the file.

        Safe to call again after a failed close; the file close is retried.
        """
        with self._lock:
            self._closed = True
            self._file.close()
