"""
Restart loop for producer coroutines that are expected to end (journal tail).
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


async def supervise(
    factory: Callable[[], Awaitable[Any]],
    name: str,
    restart_delay: float = 5.0,
    max_restarts: Optional[int] = None,
) -> None:
    """
    Await factory() over and over, sleeping restart_delay between runs.

    A run that returns or raises is restarted; cancellation propagates.
    max_restarts bounds the number of restarts (None = forever).
    """
    restarts = 0

    while True:
        try:
            await factory()
            log.warn(f"{name} exited, restarting in {restart_delay}s")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error(f"{name} failed, restarting in {restart_delay}s", error=f"{type(e).__name__}: {e}")

        if max_restarts is not None and restarts >= max_restarts:
            log.error(f"{name} restart limit reached ({max_restarts})")
            return

        restarts += 1
        await asyncio.sleep(restart_delay)
