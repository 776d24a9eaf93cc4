"""
Logger facade: the entry point every part of the host uses to get a logger.

Handles are structlog filtering bound loggers wrapped around a
:class:`RegistryLogger`. The facade holds no destination of its own; each
call reads through to the registry's active sink.
"""

from __future__ import annotations

import logging
import os
import socket
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

import structlog
from structlog.typing import EventDict, FilteringBoundLogger, WrappedLogger

from .registry import SinkRegistry


# =============================================================================
# Structlog Processors
# =============================================================================


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO 8601 timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def pass_event_dict(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> tuple:
    """Hand the finished event dict to the wrapped logger as one positional argument."""
    return (event_dict,), {}


def build_processors() -> list:
    return [
        structlog.processors.add_log_level,
        add_timestamp,
        rename_event_key,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        pass_event_dict,
    ]


class RegistryLogger:
    """Wrapped logger that writes every event into the registry's active sink."""

    def __init__(self, registry: SinkRegistry):
        self._registry = registry

    def msg(self, event_dict: EventDict) -> None:
        try:
            self._registry.emit(event_dict)
        except Exception:
            pass  # A failing sink must not break the caller

    debug = info = warning = warn = error = err = critical = fatal = exception = log = msg


# =============================================================================
# Facade
# =============================================================================


def command_name() -> Optional[str]:
    if not sys.argv or not sys.argv[0]:
        return None
    return Path(sys.argv[0]).name


class LoggerFacade:
    """Builds the root handle and hands out scoped children.

    Args:
        registry: Sink registry supplying the live destination.
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        cmd: Value of the ``cmd`` field; defaults to the running program's name.
        resolve_hostname: Called once; an ``OSError`` is logged and the
            ``hostname`` field is omitted.
    """

    def __init__(
        self,
        registry: SinkRegistry,
        *,
        level: str = "INFO",
        cmd: Optional[str] = None,
        resolve_hostname: Callable[[], str] = socket.gethostname,
    ):
        self._registry = registry
        self._level = getattr(logging, level.upper(), logging.INFO)

        root: FilteringBoundLogger = structlog.wrap_logger(
            RegistryLogger(registry),
            processors=build_processors(),
            wrapper_class=structlog.make_filtering_bound_logger(self._level),
            context_class=dict,
        )

        cmd = cmd if cmd is not None else command_name()
        if cmd:
            root = root.bind(cmd=cmd)

        root.debug("Initializing logger", pid=os.getpid())

        try:
            hostname = resolve_hostname()
        except OSError as exc:
            root.error("Could not determine hostname", error=str(exc))
            self._hostname: Optional[str] = None
        else:
            self._hostname = hostname
            root = root.bind(hostname=hostname)

        self._root = root
        registry.attach_logger(root)

    @property
    def root(self) -> FilteringBoundLogger:
        return self._root

    @property
    def hostname(self) -> Optional[str]:
        return self._hostname

    @property
    def registry(self) -> SinkRegistry:
        return self._registry

    def new(self, component: str = "") -> FilteringBoundLogger:
        """Return a handle scoped to ``component``, or the root handle when empty."""
        if component:
            return self._root.bind(component=component)
        return self._root
