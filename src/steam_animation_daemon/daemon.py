"""
Animation Daemon - the dispatch loop

The only consumer of the event bus. Lifecycle events are handed to the
AnimationService one at a time; cache maintenance runs between events when
its deadline passes; a SIGHUP-requested reload is applied between events too.
Nothing else mutates mounts or the active-animation table.
"""

import asyncio
from typing import Optional, Set

from steam_animation_daemon.errors import (
    AnimationApplyError,
    BusClosed,
    ConfigError,
    SubscriberLagged,
)
from steam_animation_daemon.models.enums import AnimationType
from steam_animation_daemon.models.events import Event
from steam_animation_daemon.monitors.lifecycle_detector import DetectorState
from steam_animation_daemon.services.service_container import ServiceContainer
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


class AnimationDaemon:
    """
    Example:
        daemon = AnimationDaemon(services)
        await daemon.run()        # until the bus closes or the task is cancelled
    """

    def __init__(self, services: ServiceContainer):
        self.services = services
        self.subscription = services.event_bus.subscribe(name="dispatch")
        self._reload_event = asyncio.Event()
        self.handled_events = 0
        self.failed_events = 0

    @property
    def animation_service(self):
        return self.services.animation_service

    # ------------------------------------------------------
    # MAIN LOOP
    # ------------------------------------------------------

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self.services.config.maintenance_interval
        next_maintenance = loop.time() + interval

        recv_task: Optional[asyncio.Task] = None
        reload_task: Optional[asyncio.Task] = None

        log.info("Dispatch loop started", maintenance_interval=f"{interval}s")

        try:
            while True:
                if recv_task is None:
                    recv_task = asyncio.ensure_future(self.subscription.recv())
                if reload_task is None:
                    reload_task = asyncio.ensure_future(self._reload_event.wait())

                timeout = max(0.0, next_maintenance - loop.time())
                done, _ = await asyncio.wait(
                    {recv_task, reload_task},
                    timeout=timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if reload_task in done:
                    reload_task = None
                    self._reload_event.clear()
                    self.reload()
                    interval = self.services.config.maintenance_interval

                if recv_task in done:
                    finished, recv_task = recv_task, None
                    try:
                        event = finished.result()
                    except SubscriberLagged as e:
                        await self.recover_from_lag(e.missed)
                    except BusClosed:
                        log.info("Event bus closed, dispatch loop exiting")
                        return
                    else:
                        await self.dispatch(event)

                if loop.time() >= next_maintenance:
                    self.run_maintenance()
                    next_maintenance = loop.time() + interval
        finally:
            pending: Set[asyncio.Task] = {t for t in (recv_task, reload_task) if t is not None and not t.done()}
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def dispatch(self, event: Event) -> bool:
        """
        Handle one event; an apply failure is logged and the event dropped

        Returns:
            True when the event was fully handled
        """
        try:
            await self.animation_service.handle_event(event)
        except AnimationApplyError as e:
            self.failed_events += 1
            log.error(
                f"Failed to handle {event.type.name} event",
                animation=e.details.get("animation_id"),
                slot=e.details.get("animation_type"),
                reason=e.message,
            )
            return False

        self.handled_events += 1
        return True

    # ------------------------------------------------------
    # LAG RECOVERY
    # ------------------------------------------------------

    async def recover_from_lag(self, missed: int) -> None:
        """Re-derive the wanted mounts from the detector instead of the lost events"""
        state = self.services.detector.snapshot()
        log.warn(
            f"Dispatch loop lagged, {missed} events missed - resyncing",
            running=state.running,
            suspend_pending=state.suspend_pending,
        )
        await self.resync(state)

    async def resync(self, state: DetectorState) -> None:
        service = self.animation_service
        try:
            if not state.running:
                if any(service.active.values()):
                    await service.cleanup()
                return

            if service.active[AnimationType.BOOT] is None:
                await service.prepare_boot_animation()
            if state.suspend_pending:
                await service.prepare_suspend_animation()
        except AnimationApplyError as e:
            self.failed_events += 1
            log.error("Resync failed", reason=e.message)

    # ------------------------------------------------------
    # MAINTENANCE / RELOAD
    # ------------------------------------------------------

    def run_maintenance(self) -> None:
        result = self.animation_service.maintenance()
        log.debug(
            "Maintenance complete",
            removed=result.removed_files,
            remaining_mb=result.remaining_bytes // (1024 * 1024),
        )

    def request_reload(self) -> None:
        """Signal-safe: the reload itself runs inside the dispatch loop"""
        log.info("Reload requested")
        self._reload_event.set()

    def reload(self) -> bool:
        """
        Re-read the config file and rescan the catalog

        A broken config file keeps the running configuration.
        """
        services = self.services
        try:
            config = services.config_manager.load()
        except ConfigError as e:
            log.error("Config reload failed, keeping current configuration", error=e.message)
            return False

        services.catalog.animations_path = config.animations_path
        services.catalog.downloads_path = config.downloads_path
        services.catalog.load()

        services.transcoder.timeout = config.transcode_timeout
        services.animation_service.update_config(config)

        log.info("Configuration reloaded", animations=len(services.catalog))
        return True
