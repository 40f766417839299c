"""
Shutdown handler protocol for component-based graceful shutdown.
"""

from typing import Protocol


class IShutdownHandler(Protocol):
    """
    Component that needs cleanup when the daemon stops.

    The ShutdownCoordinator calls shutdown() on every registered handler,
    highest shutdown_priority first.

    Example:
        class MountShutdownHandler:
            @property
            def shutdown_priority(self) -> int:
                return 100

            async def shutdown(self) -> None:
                await animation_service.cleanup()
    """

    @property
    def shutdown_priority(self) -> int:
        """Higher priority shuts down earlier."""
        ...

    async def shutdown(self) -> None:
        ...
