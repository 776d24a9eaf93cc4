"""
Interceptors for capturing standard library and third-party logs.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .facade import LoggerFacade


class RedirectStdLibHandler(logging.Handler):
    """
    Redirect standard library logging events into the facade.

    Third-party libraries logging through ``logging`` then reach the same
    active sink as everything else, and follow it across reloads.
    """

    def __init__(self, facade: LoggerFacade, level: int = logging.NOTSET):
        super().__init__(level)
        self._facade = facade

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # Skip if coming from structlog to avoid infinite loops
            if "structlog" in record.name:
                return

            msg = record.getMessage()
            # structlog only knows the five standard levels
            level = min(max(record.levelno // 10 * 10, logging.DEBUG), logging.CRITICAL)
            logger = self._facade.new(self._simplify_logger_name(record.name))
            if record.exc_info:
                logger.log(level, msg, exc_info=record.exc_info)
            else:
                logger.log(level, msg)
        except Exception:
            self.handleError(record)

    @staticmethod
    def _simplify_logger_name(name: str) -> str:
        """
        Simplify a logger name for display.

        Rules:
        - "" / "root" -> "stdlib"
        - Other -> keep last 2 parts
        """
        if not name or name == "root":
            return "stdlib"

        parts = name.split(".")
        if len(parts) <= 2:
            return name

        return ".".join(parts[-2:])


def install_stdlib_bridge(facade: LoggerFacade, level: int = logging.INFO) -> RedirectStdLibHandler:
    """Replace the root logger's handlers with a bridge into ``facade``."""
    handler = RedirectStdLibHandler(facade)
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    return handler


def intercept_third_party_loggers(roots: Iterable[str]) -> None:
    """Strip handlers from the named loggers (and their children) so they propagate to the root bridge."""
    roots = tuple(roots)
    for logger_name in roots:
        lg = logging.getLogger(logger_name)
        lg.handlers = []
        lg.propagate = True

    # Catch child loggers created with their own handlers before we got here
    for name, logger in logging.Logger.manager.loggerDict.items():
        if isinstance(logger, logging.PlaceHolder):
            continue
        if any(name.startswith(root) for root in roots):
            logger.handlers = []
            logger.propagate = True
