"""
Signal and lifecycle hooks.

Two hooks are offered to the rest of the package: run a callback on process
termination, and run a callback on a reload signal. Reload requests, whether
from a signal or from :meth:`SignalTrap.request_reload`, go through one queue
consumed by a cancellable listener task. Callbacks run in a worker thread,
never inside signal context.
"""

from __future__ import annotations

import asyncio
import atexit
import signal
import threading
from typing import Callable, Optional

import structlog
from structlog.typing import FilteringBoundLogger

Callback = Callable[[], None]

DEFAULT_RELOAD_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGHUP", None), getattr(signal, "SIGUSR1", None)) if sig is not None
)
DEFAULT_KILL_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class SignalTrap:
    """Delivers kill and reload events to registered callbacks.

    Kill callbacks also run at interpreter exit unless ``at_exit`` is False.
    """

    def __init__(
        self,
        *,
        reload_signals: tuple[signal.Signals, ...] = DEFAULT_RELOAD_SIGNALS,
        kill_signals: tuple[signal.Signals, ...] = DEFAULT_KILL_SIGNALS,
        logger: Optional[FilteringBoundLogger] = None,
        at_exit: bool = True,
    ):
        self._reload_signals = reload_signals
        self._kill_signals = kill_signals
        self._log = logger or structlog.get_logger("sinkswap.lifecycle")

        self._kill_callbacks: list[Callback] = []
        self._reload_callbacks: list[Callback] = []
        self._kill_lock = threading.Lock()
        self._killed = False

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue[None]] = None
        self._listener: Optional[asyncio.Task[None]] = None
        self._kill_event: Optional[asyncio.Event] = None
        self._installed: list[signal.Signals] = []

        if at_exit:
            atexit.register(self.run_kill_callbacks)

    def set_logger(self, logger: FilteringBoundLogger) -> None:
        self._log = logger

    def on_kill(self, callback: Callback) -> None:
        self._kill_callbacks.append(callback)

    def on_reload(self, callback: Callback) -> None:
        self._reload_callbacks.append(callback)

    @property
    def running(self) -> bool:
        return self._listener is not None and not self._listener.done()

    @property
    def killed(self) -> bool:
        return self._killed

    # -------------------------------------------------------------------------
    # Listener
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Install loop signal handlers and start the reload listener."""
        if self.running:
            return

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._kill_event = asyncio.Event()

        for sig in self._reload_signals:
            self._loop.add_signal_handler(sig, self._queue.put_nowait, None)
            self._installed.append(sig)
        for sig in self._kill_signals:
            self._loop.add_signal_handler(sig, self._handle_kill, sig)
            self._installed.append(sig)

        self._listener = self._loop.create_task(self._listen(), name="sinkswap-reload-listener")
        self._log.debug("Signal trap started", signals=[sig.name for sig in self._installed])

    async def stop(self) -> None:
        """Cancel the listener and remove the installed signal handlers."""
        if self._loop is not None:
            for sig in self._installed:
                self._loop.remove_signal_handler(sig)
        self._installed = []

        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None

    def request_reload(self) -> None:
        """Queue a reload. Safe to call from any thread."""
        if self._loop is None or self._queue is None:
            raise RuntimeError("SignalTrap is not started")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, None)

    async def wait_for_kill(self) -> None:
        if self._kill_event is None:
            raise RuntimeError("SignalTrap is not started")
        await self._kill_event.wait()

    async def _listen(self) -> None:
        queue = self._queue
        if queue is None:
            raise RuntimeError("SignalTrap is not started")
        while True:
            await queue.get()
            self._log.debug("Reload requested")
            for callback in list(self._reload_callbacks):
                try:
                    await asyncio.to_thread(callback)
                except Exception as exc:
                    self._log.error("Reload callback failed", callback=_name(callback), error=str(exc))
            queue.task_done()

    # -------------------------------------------------------------------------
    # Kill
    # -------------------------------------------------------------------------

    def _handle_kill(self, sig: signal.Signals) -> None:
        self._log.debug("Kill signal received", signal=sig.name)
        self.run_kill_callbacks()
        if self._kill_event is not None:
            self._kill_event.set()

    def run_kill_callbacks(self) -> None:
        """Run every kill callback, at most once per trap."""
        with self._kill_lock:
            if self._killed:
                return
            self._killed = True

        for callback in list(self._kill_callbacks):
            try:
                callback()
            except Exception as exc:
                self._log.error("Kill callback failed", callback=_name(callback), error=str(exc))


def _name(callback: Callback) -> str:
    return getattr(callback, "__qualname__", repr(callback))
