"""
Dispatch loop: event handling, lag recovery, maintenance and reload.
"""

import asyncio

import pytest
import yaml

from steam_animation_daemon.daemon import AnimationDaemon
from steam_animation_daemon.managers.catalog_manager import CatalogManager
from steam_animation_daemon.managers.config_manager import ConfigManager
from steam_animation_daemon.models.enums import AnimationType
from steam_animation_daemon.models.events import LifecycleEvent
from steam_animation_daemon.monitors.lifecycle_detector import LifecycleDetector
from steam_animation_daemon.services import (
    AnimationSelector,
    AnimationService,
    CacheStore,
    EventBus,
    MountController,
    ServiceContainer,
)

from conftest import FakeMountBackend, FakeTranscoder, write_animation_set

ALL_FILES = ("deck_startup.webm", "steam_os_suspend.webm", "steam_os_suspend_from_throbber.webm")


def build_services(tmp_path, bus_capacity=32, **overrides):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({
        "animations_path": str(tmp_path / "animations"),
        "downloads_path": str(tmp_path / "downloads"),
        "steam_override_path": str(tmp_path / "overrides"),
        "animation_cache_path": str(tmp_path / "cache"),
        "current_boot_animation": "retro/deck_startup.webm",
        "current_suspend_animation": "retro/steam_os_suspend.webm",
        "bus_capacity": bus_capacity,
        **overrides,
    }))
    write_animation_set(tmp_path / "animations", "retro", ALL_FILES)

    config_manager = ConfigManager(config_path)
    config = config_manager.load()

    catalog = CatalogManager(config.animations_path, config.downloads_path)
    catalog.load()
    bus = EventBus(capacity=config.bus_capacity)
    transcoder = FakeTranscoder()
    backend = FakeMountBackend()
    cache = CacheStore(
        config.animation_cache_path,
        config.transcode_settings,
        transcoder,
        max_size_bytes=config.max_cache_size_bytes,
        max_age_seconds=config.cache_max_age_seconds,
    )
    mounts = MountController(config.steam_override_path, backend)
    selector = AnimationSelector(config, catalog)

    services = ServiceContainer(
        config_manager=config_manager,
        catalog=catalog,
        event_bus=bus,
        detector=LifecycleDetector(bus),
        transcoder=transcoder,
        cache_store=cache,
        mount_controller=mounts,
        selector=selector,
        animation_service=AnimationService(config, catalog, selector, cache, mounts, transcoder),
    )
    return services, backend


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


async def stop(services, task):
    services.event_bus.close()
    await asyncio.wait_for(task, timeout=2.0)


@pytest.mark.asyncio
async def test_events_are_dispatched_in_order(tmp_path):
    services, backend = build_services(tmp_path)
    daemon = AnimationDaemon(services)
    task = asyncio.create_task(daemon.run())

    services.detector.on_process_snapshot({100})
    await wait_until(lambda: daemon.handled_events == 1)
    services.detector.on_process_snapshot(set())
    await wait_until(lambda: daemon.handled_events == 2)
    await stop(services, task)

    service = services.animation_service
    assert [target.name for _, target in backend.binds] == ["deck_startup.webm"]
    assert backend.unbinds == [tmp_path / "overrides" / "deck_startup.webm"]
    assert service.active[AnimationType.BOOT] is None


@pytest.mark.asyncio
async def test_failed_event_does_not_stop_loop(tmp_path):
    services, backend = build_services(tmp_path, current_boot_animation="gone/deck_startup.webm")
    daemon = AnimationDaemon(services)
    task = asyncio.create_task(daemon.run())

    services.event_bus.publish(LifecycleEvent.starting(pid_count=1))
    services.event_bus.publish(LifecycleEvent.suspending("Suspending system"))
    await wait_until(lambda: daemon.handled_events + daemon.failed_events == 2)
    await stop(services, task)

    assert daemon.failed_events == 1
    assert services.animation_service.active[AnimationType.SUSPEND] == "retro/steam_os_suspend.webm"


@pytest.mark.asyncio
async def test_lag_resyncs_from_detector(tmp_path):
    services, backend = build_services(tmp_path, bus_capacity=1)
    daemon = AnimationDaemon(services)

    # STARTING is pushed out of the one-slot buffer by SUSPENDING
    services.detector.on_process_snapshot({100})
    services.detector.on_log_line("Suspending system")

    task = asyncio.create_task(daemon.run())
    await wait_until(lambda: daemon.handled_events == 1)
    await stop(services, task)

    service = services.animation_service
    assert daemon.subscription.lagged_total == 1
    assert service.active[AnimationType.BOOT] == "retro/deck_startup.webm"
    assert service.active[AnimationType.SUSPEND] == "retro/steam_os_suspend.webm"


@pytest.mark.asyncio
async def test_resync_when_idle_cleans_up(tmp_path):
    services, backend = build_services(tmp_path)
    daemon = AnimationDaemon(services)
    await services.animation_service.prepare_boot_animation()

    await daemon.resync(services.detector.snapshot())

    assert services.animation_service.active[AnimationType.BOOT] is None
    assert not (tmp_path / "overrides" / "deck_startup.webm").exists()


@pytest.mark.asyncio
async def test_maintenance_runs_between_events(tmp_path):
    services, _ = build_services(tmp_path, maintenance_interval=0.05)
    stale = tmp_path / "cache" / "0000000000000000.webm"
    stale.write_bytes(b"x" * 10)
    services.cache_store.max_size_bytes = 0

    daemon = AnimationDaemon(services)
    task = asyncio.create_task(daemon.run())
    await wait_until(lambda: not stale.exists())
    await stop(services, task)


@pytest.mark.asyncio
async def test_reload_rereads_config_and_catalog(tmp_path):
    services, _ = build_services(tmp_path)
    daemon = AnimationDaemon(services)

    raw = yaml.safe_load(services.config_manager.config_path.read_text())
    raw["video_quality"] = 40
    services.config_manager.config_path.write_text(yaml.safe_dump(raw))
    write_animation_set(tmp_path / "animations", "neon")

    task = asyncio.create_task(daemon.run())
    daemon.request_reload()
    await wait_until(lambda: "neon/deck_startup.webm" in services.catalog)
    await stop(services, task)

    assert services.cache_store.settings.quality == 40
    assert services.animation_service.config.video_quality == 40


@pytest.mark.asyncio
async def test_broken_config_on_reload_keeps_running_config(tmp_path):
    services, _ = build_services(tmp_path)
    daemon = AnimationDaemon(services)
    services.config_manager.config_path.write_text("video_quality: [broken\n")

    assert daemon.reload() is False
    assert services.cache_store.settings.quality == 23
