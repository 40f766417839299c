"""
Shutdown coordinator that orchestrates graceful shutdown of the daemon.

Installs signal handlers, waits for a stop signal or the failure of a
critical task, then runs the registered shutdown handlers in priority order.
"""

import asyncio
import signal
from typing import Callable, List, Optional, Set

from steam_animation_daemon.lifecycle.shutdown_protocol import IShutdownHandler
from steam_animation_daemon.lifecycle.task_registry import TaskCategory, TaskRegistry
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)

CRITICAL_CATEGORIES: Set[TaskCategory] = {TaskCategory.MONITOR, TaskCategory.DISPATCH}


class ShutdownCoordinator:
    """
    Coordinates graceful shutdown of multiple components.

    Example:
        coordinator = ShutdownCoordinator()
        coordinator.register(AnimationCleanupHandler(animation_service))
        coordinator.register(TaskCancellationHandler(tasks))

        coordinator.setup_signal_handlers(loop, on_reload=daemon.request_reload)
        await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
    """

    def __init__(
        self,
        timeout_per_handler: float = 5.0,
        total_timeout: float = 15.0,
        registry: Optional[TaskRegistry] = None,
    ):
        self._handlers: List[IShutdownHandler] = []
        self._shutdown_event = asyncio.Event()
        self._timeout_per_handler = timeout_per_handler
        self._total_timeout = total_timeout
        self._registry = registry or TaskRegistry.instance()
        self.reason: Optional[str] = None

    def register(self, handler: IShutdownHandler) -> None:
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    def setup_signal_handlers(
        self,
        loop: asyncio.AbstractEventLoop,
        on_reload: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        SIGINT / SIGTERM trigger shutdown; SIGHUP calls on_reload when given.
        """
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: self.request_shutdown(s.name))

        if on_reload is not None:
            loop.add_signal_handler(signal.SIGHUP, on_reload)
            log.info("Signal handlers installed (SIGINT, SIGTERM, SIGHUP)")
        else:
            log.info("Signal handlers installed (SIGINT, SIGTERM)")

    def request_shutdown(self, reason: str) -> None:
        if not self._shutdown_event.is_set():
            self.reason = reason
            log.info(f"Shutdown requested: {reason}")
        self._shutdown_event.set()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_event.is_set()

    # ------------------------------------------------------
    # WAITING
    # ------------------------------------------------------

    def _failed_critical_task(self) -> Optional[str]:
        for record in self._registry.failed():
            if record.info.category in CRITICAL_CATEGORIES:
                return record.info.description
        return None

    async def wait_for_shutdown(self) -> None:
        """
        Return once a stop signal arrives or a critical task fails.

        A critical task that finishes cleanly does not stop the daemon.
        """
        while not self._shutdown_event.is_set():
            failed = self._failed_critical_task()
            if failed is not None:
                self.request_shutdown(f"Task failure: {failed}")
                return

            critical = [
                r.task for r in self._registry.active()
                if r.info.category in CRITICAL_CATEGORIES
            ]
            waiter = asyncio.ensure_future(self._shutdown_event.wait())

            try:
                if critical:
                    await asyncio.wait(critical + [waiter], return_when=asyncio.FIRST_COMPLETED)
                else:
                    await asyncio.wait([waiter], timeout=0.2)
            finally:
                if not waiter.done():
                    waiter.cancel()

        log.debug("Shutdown wait finished", reason=self.reason)

    # ------------------------------------------------------
    # SHUTDOWN
    # ------------------------------------------------------

    async def shutdown_all(self) -> None:
        """
        Run handlers by descending priority.

        Each handler gets timeout_per_handler seconds; the whole sequence
        stops starting new handlers after total_timeout. Handler errors are
        logged and the sequence continues.
        """
        log.info("Initiating graceful shutdown sequence", reason=self.reason or "UNKNOWN")

        loop = asyncio.get_running_loop()
        start_time = loop.time()

        for handler in sorted(self._handlers, key=lambda h: h.shutdown_priority, reverse=True):
            handler_name = handler.__class__.__name__

            elapsed = loop.time() - start_time
            if elapsed > self._total_timeout:
                log.error(f"Total shutdown timeout exceeded ({elapsed:.1f}s > {self._total_timeout}s)")
                break

            try:
                log.debug(f"Shutting down {handler_name} (priority={handler.shutdown_priority})")
                await asyncio.wait_for(handler.shutdown(), timeout=self._timeout_per_handler)
            except asyncio.TimeoutError:
                log.error(f"{handler_name} shutdown timeout ({self._timeout_per_handler}s)")
            except Exception as e:
                log.error(f"Error shutting down {handler_name}: {e}", exc_info=True)

        log.info("Shutdown sequence complete")

    def get_handler(self, handler_type: type) -> Optional[IShutdownHandler]:
        for handler in self._handlers:
            if isinstance(handler, handler_type):
                return handler
        return None
