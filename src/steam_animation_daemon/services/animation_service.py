"""
Animation Service - applies animations in response to lifecycle events

Event -> slots:
    STARTING    BOOT (re-rolled in random modes)
    SUSPENDING  SUSPEND, THROBBER (re-rolled in random modes)
    RESUMING    BOOT (keeps the active boot animation in random modes)
    SHUTDOWN    cleanup of every slot

The active-animation table is only written here, right after a successful
bind, and only the dispatch loop calls into this service.
"""

from pathlib import Path
from typing import Dict, List, Optional

from steam_animation_daemon.errors import (
    AnimationApplyError,
    AnimationNotFoundError,
    MountError,
    ProbeError,
    TranscodeError,
)
from steam_animation_daemon.managers.catalog_manager import CatalogManager
from steam_animation_daemon.models.animation import Animation
from steam_animation_daemon.models.config import DaemonConfig
from steam_animation_daemon.models.enums import AnimationType, RandomizeMode
from steam_animation_daemon.models.events import EventType, LifecycleEvent
from steam_animation_daemon.services.animation_selector import AnimationSelector
from steam_animation_daemon.services.cache_store import CacheStore, SweepResult
from steam_animation_daemon.services.mount_controller import MountController
from steam_animation_daemon.services.transcoder import TranscoderGateway
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.ANIMATION)


class AnimationService:
    """Selects, prepares and mounts animations per slot"""

    def __init__(
        self,
        config: DaemonConfig,
        catalog: CatalogManager,
        selector: AnimationSelector,
        cache_store: CacheStore,
        mount_controller: MountController,
        transcoder: Optional[TranscoderGateway] = None,
    ):
        self.config = config
        self.catalog = catalog
        self.selector = selector
        self.cache_store = cache_store
        self.mounts = mount_controller
        self.transcoder = transcoder
        self.active: Dict[AnimationType, Optional[str]] = {t: None for t in AnimationType}

        log.info(f"AnimationService: {len(catalog)} animations available")

    # ------------------------------------------------------
    # EVENT DISPATCH
    # ------------------------------------------------------

    async def handle_event(self, event: LifecycleEvent) -> None:
        """
        Raises:
            AnimationApplyError: at least one slot could not be applied
        """
        if event.type == EventType.STARTING:
            log.info("Steam starting - preparing boot animation")
            await self.prepare_boot_animation()
        elif event.type == EventType.SUSPENDING:
            log.info("Steam suspending - preparing suspend animation")
            await self.prepare_suspend_animation()
        elif event.type == EventType.RESUMING:
            log.info("Steam resuming - preparing resume animation")
            await self.prepare_resume_animation()
        elif event.type == EventType.SHUTDOWN:
            log.info("Steam shutdown detected")
            await self.cleanup()

    async def prepare_boot_animation(self) -> None:
        await self._prepare_slots([AnimationType.BOOT])

    async def prepare_suspend_animation(self) -> None:
        await self._prepare_slots([AnimationType.SUSPEND, AnimationType.THROBBER])

    async def prepare_resume_animation(self) -> None:
        keep = self.active[AnimationType.BOOT]
        if (
            self.config.randomize_mode != RandomizeMode.DISABLED
            and keep is not None
            and keep in self.catalog
        ):
            await self.apply_animation(AnimationType.BOOT, keep)
            return
        await self.prepare_boot_animation()

    async def _prepare_slots(self, slots: List[AnimationType]) -> None:
        """Apply every slot, then raise the first failure (if any)"""
        errors: List[AnimationApplyError] = []

        for anim_type in slots:
            animation_id = self.selector.select(anim_type)
            if animation_id is None:
                log.debug(f"No {anim_type.name} animation selected, leaving slot as-is")
                continue
            try:
                await self.apply_animation(anim_type, animation_id)
            except AnimationApplyError as e:
                errors.append(e)

        if len(errors) > 1:
            for e in errors[1:]:
                log.error(e.message)
        if errors:
            raise errors[0]

    # ------------------------------------------------------
    # APPLY
    # ------------------------------------------------------

    async def apply_animation(self, anim_type: AnimationType, animation_id: str) -> Path:
        """
        Transcode (or reuse) and mount one animation into its slot.

        Returns:
            The mounted target path

        Raises:
            AnimationApplyError: unknown id, transcoding failed or bind
                failed. The active table is not touched.
        """
        animation = self.catalog.get(animation_id)
        if animation is None:
            missing = AnimationNotFoundError(animation_id)
            raise AnimationApplyError(animation_id, anim_type.name, missing.message) from missing

        log.debug(f"Applying {anim_type.name} animation: {animation.name}")

        try:
            cached_path = await self.cache_store.get_or_create(animation)
        except TranscodeError as e:
            raise AnimationApplyError(animation_id, anim_type.name, e.message) from e

        animation.cached_path = cached_path

        try:
            target = await self.mounts.swap(cached_path, anim_type)
        except MountError as e:
            raise AnimationApplyError(animation_id, anim_type.name, e.message) from e

        self.active[anim_type] = animation_id
        log.info(f"Applied {anim_type.name} animation: {animation.name}", target=str(target))

        await self._discover_duration(animation)
        return target

    async def _discover_duration(self, animation: Animation) -> None:
        if animation.duration is not None or self.transcoder is None or animation.cached_path is None:
            return
        try:
            info = await self.transcoder.probe(animation.cached_path)
        except ProbeError as e:
            log.debug("Could not probe animation duration", animation=animation.id, error=e.message)
            return
        animation.duration = info.duration

    # ------------------------------------------------------
    # CLEANUP / MAINTENANCE
    # ------------------------------------------------------

    async def cleanup(self) -> None:
        """Unmount every slot (best-effort per slot)"""
        log.info("Cleaning up animation mounts")

        for anim_type in AnimationType:
            try:
                if await self.mounts.release_slot(anim_type):
                    self.active[anim_type] = None
                    log.debug(f"Released {anim_type.name} slot")
            except MountError as e:
                log.warn(f"Failed to cleanup animation {anim_type.name}", error=e.message)

    def active_animations(self) -> Dict[AnimationType, Optional[str]]:
        return dict(self.active)

    def maintenance(self) -> SweepResult:
        """Periodic cache eviction; never touches mounts"""
        log.debug("Running maintenance tasks")
        return self.cache_store.sweep()

    # ------------------------------------------------------
    # CONFIG RELOAD
    # ------------------------------------------------------

    def update_config(self, config: DaemonConfig) -> None:
        self.config = config
        self.selector.config = config
        self.cache_store.update_settings(config.transcode_settings)
        self.cache_store.max_size_bytes = config.max_cache_size_bytes
        self.cache_store.max_age_seconds = config.cache_max_age_seconds
