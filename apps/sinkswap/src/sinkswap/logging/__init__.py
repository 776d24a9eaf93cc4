"""
Live-swappable logging for Sinkswap.

Log output always goes to stdout and, when ``SINKSWAP_LOG_FILE`` is set, is
fanned out to that file as well. The file can be switched or dropped while
the process runs (reload signal or :meth:`LoggingRuntime.reload`) without
losing or duplicating records.

Library: structlog + orjson, configuration through pydantic-settings.
"""

from .core import LoggingRuntime, build_runtime, configure_logging, current_runtime, get_logger
from .exceptions import FileOpenError, LogSinkError, PathResolutionError, SinkTeardownError
from .facade import LoggerFacade
from .lifecycle import SignalTrap
from .registry import ActiveSink, SinkRegistry, SinkState

__all__ = [
    "ActiveSink",
    "FileOpenError",
    "LogSinkError",
    "LoggerFacade",
    "LoggingRuntime",
    "PathResolutionError",
    "SignalTrap",
    "SinkRegistry",
    "SinkState",
    "SinkTeardownError",
    "build_runtime",
    "configure_logging",
    "current_runtime",
    "get_logger",
]
