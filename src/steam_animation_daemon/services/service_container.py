"""Service Container - wiring for every long-lived daemon component"""

from dataclasses import dataclass

from steam_animation_daemon.managers.catalog_manager import CatalogManager
from steam_animation_daemon.managers.config_manager import ConfigManager
from steam_animation_daemon.models.config import DaemonConfig
from steam_animation_daemon.monitors.lifecycle_detector import LifecycleDetector
from steam_animation_daemon.services.animation_selector import AnimationSelector
from steam_animation_daemon.services.animation_service import AnimationService
from steam_animation_daemon.services.cache_store import CacheStore
from steam_animation_daemon.services.event_bus import EventBus
from steam_animation_daemon.services.mount_controller import CommandMountBackend, MountController
from steam_animation_daemon.services.transcoder import TranscoderGateway


@dataclass
class ServiceContainer:
    """
    Everything the daemon builds once at startup.

    Usage:
        services = ServiceContainer.build(config_manager, config)
        daemon = AnimationDaemon(services)
    """

    config_manager: ConfigManager
    catalog: CatalogManager
    event_bus: EventBus
    detector: LifecycleDetector
    transcoder: TranscoderGateway
    cache_store: CacheStore
    mount_controller: MountController
    selector: AnimationSelector
    animation_service: AnimationService

    @property
    def config(self) -> DaemonConfig:
        return self.config_manager.config

    @classmethod
    def build(cls, config_manager: ConfigManager, config: DaemonConfig) -> "ServiceContainer":
        """Construct the production graph (real ffmpeg, real mount)"""
        catalog = CatalogManager(config.animations_path, config.downloads_path)
        catalog.load()

        event_bus = EventBus(capacity=config.bus_capacity)
        detector = LifecycleDetector(event_bus)

        transcoder = TranscoderGateway(timeout=config.transcode_timeout)
        cache_store = CacheStore(
            config.animation_cache_path,
            config.transcode_settings,
            transcoder,
            max_size_bytes=config.max_cache_size_bytes,
            max_age_seconds=config.cache_max_age_seconds,
        )
        mount_controller = MountController(config.steam_override_path, CommandMountBackend())
        selector = AnimationSelector(config, catalog)

        animation_service = AnimationService(
            config, catalog, selector, cache_store, mount_controller, transcoder
        )

        return cls(
            config_manager=config_manager,
            catalog=catalog,
            event_bus=event_bus,
            detector=detector,
            transcoder=transcoder,
            cache_store=cache_store,
            mount_controller=mount_controller,
            selector=selector,
            animation_service=animation_service,
        )
