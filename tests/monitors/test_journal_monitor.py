import asyncio

import pytest

from steam_animation_daemon.models.events import EventType
from steam_animation_daemon.monitors.journal_monitor import JournalMonitor
from steam_animation_daemon.monitors.lifecycle_detector import LifecycleDetector
from steam_animation_daemon.services.event_bus import EventBus


@pytest.mark.asyncio
async def test_lines_are_fed_to_detector():
    bus = EventBus()
    sub = bus.subscribe()
    script = "echo 'systemd-sleep[1]: Suspending system...'; echo 'systemd-sleep[1]: System resumed.'"
    monitor = JournalMonitor(LifecycleDetector(bus), command=("sh", "-c", script))

    await asyncio.wait_for(monitor.run(), timeout=5.0)

    assert sub.try_recv().type == EventType.SUSPENDING
    assert sub.try_recv().type == EventType.RESUMING
    assert sub.try_recv() is None


@pytest.mark.asyncio
async def test_missing_journalctl_raises():
    monitor = JournalMonitor(LifecycleDetector(EventBus()), command=("/nonexistent/journalctl", "-f"))

    with pytest.raises(OSError):
        await monitor.run()


@pytest.mark.asyncio
async def test_cancel_kills_tail():
    monitor = JournalMonitor(LifecycleDetector(EventBus()), command=("sleep", "30"))

    task = asyncio.create_task(monitor.run())
    await asyncio.sleep(0.2)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=5.0)
