import io
import json
from dataclasses import dataclass
from pathlib import Path

import pytest

from sinkswap.logging.facade import LoggerFacade
from sinkswap.logging.registry import SinkRegistry
from sinkswap.logging.sinks import SEPARATOR_BANNER


@dataclass
class FileConfig:
    file: str = ""


def _parse_lines(text: str) -> list[dict]:
    """Parse JSON log lines, skipping blank lines and separator banners."""
    return [json.loads(line) for line in text.splitlines() if line.strip() and not line.startswith("=")]


@pytest.fixture
def config() -> FileConfig:
    return FileConfig()


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def registry(config, stream):
    reg = SinkRegistry(config, fmt="json", stream=stream)
    yield reg
    reg.close()


@pytest.fixture
def facade(registry) -> LoggerFacade:
    return LoggerFacade(registry, level="DEBUG", cmd="sinkswap-test", resolve_hostname=lambda: "test-host")


@pytest.fixture
def read_file():
    def _read(path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def banner() -> str:
    return SEPARATOR_BANNER


@pytest.fixture
def parse_lines():
    return _parse_lines


@pytest.fixture
def messages():
    """Messages of the JSON records in a chunk of log output."""

    def _messages(text: str) -> list[str]:
        return [r["message"] for r in _parse_lines(text)]

    return _messages
