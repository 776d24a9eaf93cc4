"""
Core logging composition and initialization logic.
"""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Any, Optional

from structlog.typing import FilteringBoundLogger

from sinkswap.config import LoggingSettings, settings as default_settings

from .exceptions import LogSinkError
from .facade import LoggerFacade
from .formatters import ConsoleFormatter
from .interceptors import install_stdlib_bridge, intercept_third_party_loggers
from .lifecycle import SignalTrap
from .registry import ActiveSink, SinkRegistry

# =============================================================================
# Runtime
# =============================================================================


@dataclass
class LoggingRuntime:
    """Everything the host owns for logging, built once by :func:`configure_logging`."""

    settings: LoggingSettings
    registry: SinkRegistry
    facade: LoggerFacade
    trap: SignalTrap

    def get_logger(self, component: str = "") -> FilteringBoundLogger:
        return self.facade.new(component)

    def reload(self) -> ActiveSink:
        """Re-read configuration and converge the active sink to it."""
        self.settings.refresh()
        return self.registry.reload()

    def shutdown(self) -> None:
        self.registry.close()

    def _reload_from_signal(self) -> None:
        try:
            self.reload()
        except LogSinkError as exc:
            self.facade.root.error("Failed to reload log file", error=str(exc), code=exc.code)


_runtime: Optional[LoggingRuntime] = None
_runtime_lock = threading.Lock()


def get_logger(component: str = "") -> FilteringBoundLogger:
    """Get a structured logger from the process default runtime.

    A stdout-only runtime without signal handlers is created on first use if
    :func:`configure_logging` has not been called yet.
    """
    global _runtime
    runtime = _runtime
    if runtime is None:
        with _runtime_lock:
            if _runtime is None:
                _runtime = build_runtime(default_settings.logging, trap=SignalTrap(at_exit=False))
            runtime = _runtime
    return runtime.get_logger(component)


def current_runtime() -> Optional[LoggingRuntime]:
    return _runtime


# =============================================================================
# Configuration Logic
# =============================================================================


def build_runtime(
    config: LoggingSettings,
    *,
    stream: Any = None,
    trap: Optional[SignalTrap] = None,
    cmd: Optional[str] = None,
) -> LoggingRuntime:
    """Wire registry, facade and trap together. Output starts on stdout only."""
    ConsoleFormatter.configure(
        timestamp_format=config.console_timestamp_format,
        level_width=config.console_level_width,
        logger_width=config.console_logger_width,
        separator=config.console_separator,
    )

    registry = SinkRegistry(config, fmt=config.format.value, stream=stream or sys.stdout)
    facade = LoggerFacade(registry, level=config.level.value, cmd=cmd)
    trap = trap or SignalTrap()
    trap.set_logger(facade.new("lifecycle"))

    return LoggingRuntime(settings=config, registry=registry, facade=facade, trap=trap)


def configure_logging(
    config: Optional[LoggingSettings] = None,
    *,
    stream: Any = None,
    trap: Optional[SignalTrap] = None,
    cmd: Optional[str] = None,
    intercept_stdlib: bool = True,
    third_party_loggers: tuple[str, ...] = (),
) -> LoggingRuntime:
    """
    Configure the process logging runtime and make it the default.

    Args:
        config: Logging settings; defaults to ``sinkswap.config.settings.logging``.
        stream: Standard output stream (default: sys.stdout).
        trap: Signal trap for kill and reload hooks; a new one is created if omitted.
        cmd: Value of the ``cmd`` field (default: program name).
        intercept_stdlib: Route stdlib ``logging`` records through the facade.
        third_party_loggers: Logger names whose own handlers are stripped.
    """
    global _runtime

    # 1. Build runtime, stdout only
    runtime = build_runtime(config or default_settings.logging, stream=stream, trap=trap, cmd=cmd)
    log = runtime.facade.root

    # 2. Open the log file if configured; failure leaves logging on stdout
    try:
        runtime.registry.reload()
    except LogSinkError as exc:
        log.error("Error opening log file", error=str(exc), code=exc.code)

    # 3. Close the file on shutdown, reload it on the reload signal
    runtime.trap.on_kill(runtime.shutdown)
    runtime.trap.on_reload(runtime._reload_from_signal)

    # 4. Bridge stdlib logging
    if intercept_stdlib:
        install_stdlib_bridge(runtime.facade, level=getattr(logging, runtime.settings.level.value))
        if third_party_loggers:
            intercept_third_party_loggers(third_party_loggers)

    with _runtime_lock:
        _runtime = runtime
    log.debug("Log initialized", sink=runtime.registry.state.value)
    return runtime
