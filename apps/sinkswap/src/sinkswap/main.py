"""
Demo host process.

Logs a heartbeat until terminated. Point ``SINKSWAP_LOG_FILE`` at a file (in
the environment or a .env file), send SIGHUP or SIGUSR1, and output follows
the new setting without a restart.

    python -m sinkswap.main
"""

from __future__ import annotations

import asyncio
from typing import Optional

from sinkswap.logging import LoggingRuntime, configure_logging


async def serve(runtime: LoggingRuntime, *, interval: float = 5.0, stop: Optional[asyncio.Event] = None) -> int:
    """Heartbeat until a kill signal arrives or ``stop`` is set. Returns the beat count."""
    log = runtime.get_logger("heartbeat")
    await runtime.trap.start()

    kill = asyncio.ensure_future(runtime.trap.wait_for_kill())
    waiters = [kill]
    if stop is not None:
        waiters.append(asyncio.ensure_future(stop.wait()))

    beats = 0
    try:
        while True:
            done, _ = await asyncio.wait(waiters, timeout=interval, return_when=asyncio.FIRST_COMPLETED)
            if done:
                break
            beats += 1
            log.info("Heartbeat", beat=beats, sink=runtime.registry.state.value)
    finally:
        for waiter in waiters:
            waiter.cancel()
        await runtime.trap.stop()
        runtime.trap.run_kill_callbacks()

    log.info("Stopped", beats=beats)
    return beats


def main() -> None:
    runtime = configure_logging()
    asyncio.run(serve(runtime))


if __name__ == "__main__":
    main()
