import logging

import pytest

from sinkswap.logging import core as logging_core
from sinkswap.logging.formatters import ConsoleFormatter


@pytest.fixture(autouse=True)
def isolate_logging_globals(monkeypatch):
    """
    Keeps process-wide state out of reach of individual tests:
    the default runtime, the console layout and the stdlib root handlers.
    """
    monkeypatch.setattr(logging_core, "_runtime", None)
    for attr in ("TIMESTAMP_FORMAT", "TIMESTAMP_WIDTH", "LEVEL_WIDTH", "LOGGER_WIDTH", "SEPARATOR"):
        monkeypatch.setattr(ConsoleFormatter, attr, getattr(ConsoleFormatter, attr))

    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    yield
    root_logger.handlers = handlers
    root_logger.setLevel(level)
