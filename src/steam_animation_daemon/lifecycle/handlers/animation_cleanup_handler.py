from __future__ import annotations

from typing import TYPE_CHECKING

from steam_animation_daemon.lifecycle.shutdown_protocol import IShutdownHandler
from steam_animation_daemon.utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from steam_animation_daemon.services.animation_service import AnimationService

log = get_logger().for_category(LogCategory.SHUTDOWN)


class AnimationCleanupHandler(IShutdownHandler):
    """
    Unmounts every override slot.

    Runs cleanup at most once; repeated shutdown() calls are no-ops.

    Priority: 20 (after background tasks are cancelled, so the dispatch
    loop can no longer mount anything)
    """

    def __init__(self, animation_service: "AnimationService"):
        self.animation_service = animation_service
        self._done = False

    @property
    def shutdown_priority(self) -> int:
        return 20

    async def shutdown(self) -> None:
        if self._done:
            return
        self._done = True

        log.info("Removing animation mounts...")
        await self.animation_service.cleanup()
