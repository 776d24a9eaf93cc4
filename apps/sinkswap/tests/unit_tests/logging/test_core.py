"""
Runtime composition tests: configure_logging, get_logger, stdlib bridge.
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
import signal
import threading
import time

from sinkswap.config import LoggingSettings
from sinkswap.logging import core as logging_core
from sinkswap.logging import configure_logging, get_logger
from sinkswap.logging.lifecycle import SignalTrap
from sinkswap.logging.registry import SinkState


def _records(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def _settings(monkeypatch, tmp_path, **env: str) -> LoggingSettings:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SINKSWAP_LOG_FORMAT", "json")
    monkeypatch.setenv("SINKSWAP_LOG_LEVEL", "DEBUG")
    for key, value in env.items():
        monkeypatch.setenv(f"SINKSWAP_LOG_{key.upper()}", value)
    return LoggingSettings()


def _trap() -> SignalTrap:
    return SignalTrap(reload_signals=(signal.SIGUSR1,), kill_signals=(signal.SIGUSR2,), at_exit=False)


class TestConfigureLogging:
    def test_initial_load_opens_configured_file(self, monkeypatch, tmp_path) -> None:
        config = _settings(monkeypatch, tmp_path, file="app.log")
        stream = io.StringIO()

        runtime = configure_logging(config, stream=stream, trap=_trap(), cmd="svc", intercept_stdlib=False)
        runtime.get_logger("api").info("started")

        assert runtime.registry.state is SinkState.STDOUT_PLUS_FILE
        assert runtime.registry.active.path == tmp_path / "app.log"
        assert '"started"' in (tmp_path / "app.log").read_text()
        assert any(r["message"] == "Log initialized" for r in _records(stream))
        runtime.shutdown()

    def test_initial_failure_does_not_block_startup(self, monkeypatch, tmp_path) -> None:
        config = _settings(monkeypatch, tmp_path, file="missing/app.log")
        stream = io.StringIO()

        runtime = configure_logging(config, stream=stream, trap=_trap(), cmd="svc", intercept_stdlib=False)

        assert runtime.registry.state is SinkState.STDOUT_ONLY
        failures = [r for r in _records(stream) if r["message"] == "Error opening log file"]
        assert failures and failures[0]["code"] == "FILE_OPEN_FAILED"

    def test_reload_picks_up_changed_environment(self, monkeypatch, tmp_path) -> None:
        config = _settings(monkeypatch, tmp_path)
        runtime = configure_logging(config, stream=io.StringIO(), trap=_trap(), cmd="svc", intercept_stdlib=False)
        assert runtime.registry.state is SinkState.STDOUT_ONLY

        monkeypatch.setenv("SINKSWAP_LOG_FILE", str(tmp_path / "later.log"))
        runtime.reload()

        assert config.file == str(tmp_path / "later.log")
        assert runtime.registry.state is SinkState.STDOUT_PLUS_FILE
        runtime.shutdown()

    def test_kill_hook_closes_file(self, monkeypatch, tmp_path) -> None:
        config = _settings(monkeypatch, tmp_path, file="app.log")
        trap = _trap()
        runtime = configure_logging(config, stream=io.StringIO(), trap=trap, cmd="svc", intercept_stdlib=False)
        fp = runtime.registry.active.file

        trap.run_kill_callbacks()

        assert fp.closed
        assert runtime.registry.state is SinkState.CLOSED

    async def test_reload_signal_failure_is_logged(self, monkeypatch, tmp_path) -> None:
        config = _settings(monkeypatch, tmp_path)
        stream = io.StringIO()
        trap = _trap()
        runtime = configure_logging(config, stream=stream, trap=trap, cmd="svc", intercept_stdlib=False)

        monkeypatch.setenv("SINKSWAP_LOG_FILE", str(tmp_path / "missing" / "app.log"))
        await trap.start()
        try:
            trap.request_reload()
            for _ in range(200):
                if any(r["message"] == "Failed to reload log file" for r in _records(stream)):
                    break
                await asyncio.sleep(0.01)
        finally:
            await trap.stop()

        failure = next(r for r in _records(stream) if r["message"] == "Failed to reload log file")
        assert failure["code"] == "FILE_OPEN_FAILED"
        assert runtime.registry.state is SinkState.STDOUT_ONLY

    def test_reload_outcome_is_visible_at_default_level(self, monkeypatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SINKSWAP_LOG_LEVEL", raising=False)
        monkeypatch.setenv("SINKSWAP_LOG_FORMAT", "json")
        config = LoggingSettings()
        stream = io.StringIO()
        runtime = configure_logging(config, stream=stream, trap=_trap(), cmd="svc", intercept_stdlib=False)

        monkeypatch.setenv("SINKSWAP_LOG_FILE", str(tmp_path / "app.log"))
        runtime.reload()
        monkeypatch.setenv("SINKSWAP_LOG_FILE", "")
        runtime.reload()

        logged = [r["message"] for r in _records(stream)]
        assert config.level.value == "INFO"
        assert "Log file (re)loaded" in logged
        assert "Not using log file, only stdout" in logged
        assert "About to (re)load log file" not in logged
        runtime.shutdown()


class TestStdlibBridge:
    def test_stdlib_records_reach_active_sink(self, monkeypatch, tmp_path) -> None:
        config = _settings(monkeypatch, tmp_path, file="app.log")
        runtime = configure_logging(config, stream=io.StringIO(), trap=_trap(), cmd="svc")

        logging.getLogger("thirdparty.client.http").warning("retrying %s", "GET /")

        lines = (tmp_path / "app.log").read_text().splitlines()
        record = json.loads(lines[-1])
        assert record["message"] == "retrying GET /"
        assert record["component"] == "client.http"
        assert record["level"] == "warning"
        runtime.shutdown()

    def test_third_party_handlers_are_stripped(self, monkeypatch, tmp_path) -> None:
        noisy = logging.getLogger("noisy.lib")
        noisy.addHandler(logging.StreamHandler(io.StringIO()))
        noisy.propagate = False
        config = _settings(monkeypatch, tmp_path)

        configure_logging(config, stream=io.StringIO(), trap=_trap(), cmd="svc", third_party_loggers=("noisy",))

        assert noisy.handlers == []
        assert noisy.propagate is True


class TestDefaultRuntime:
    def test_get_logger_builds_stdout_runtime_on_first_use(self, monkeypatch, tmp_path, capsys) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(logging_core, "default_settings", _FakeSettings(LoggingSettings()))

        log = get_logger("lazy")
        log.warning("lazy hello")

        runtime = logging_core.current_runtime()
        assert runtime is not None
        assert runtime.registry.state is SinkState.STDOUT_ONLY
        assert "lazy hello" in capsys.readouterr().out

    def test_concurrent_first_use_builds_one_runtime(self, monkeypatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(logging_core, "default_settings", _FakeSettings(LoggingSettings()))
        real_build = logging_core.build_runtime
        built = []

        def slow_build(*args, **kwargs):
            time.sleep(0.05)
            runtime = real_build(*args, stream=io.StringIO(), **kwargs)
            built.append(runtime)
            return runtime

        monkeypatch.setattr(logging_core, "build_runtime", slow_build)
        barrier = threading.Barrier(8)

        def first_use() -> None:
            barrier.wait()
            get_logger("race").info("hello")

        threads = [threading.Thread(target=first_use) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(built) == 1
        assert logging_core.current_runtime() is built[0]

    def test_configure_logging_sets_default(self, monkeypatch, tmp_path) -> None:
        config = _settings(monkeypatch, tmp_path)
        stream = io.StringIO()
        runtime = configure_logging(config, stream=stream, trap=_trap(), cmd="svc", intercept_stdlib=False)

        get_logger("default").info("via default")

        assert logging_core.current_runtime() is runtime
        assert any(r["message"] == "via default" for r in _records(stream))


class _FakeSettings:
    def __init__(self, logging_settings: LoggingSettings) -> None:
        self.logging = logging_settings

