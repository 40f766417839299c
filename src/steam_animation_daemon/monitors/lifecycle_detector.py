"""
Lifecycle Detector - turns raw observations into lifecycle events

Two inputs feed the same state machine:
- process snapshots (set of matching pids) from ProcessMonitor
- log lines from JournalMonitor

State: phase (IDLE / RUNNING) crossed with a suspend_pending flag.

    IDLE    + non-empty snapshot  -> RUNNING, publish STARTING
    RUNNING + empty snapshot      -> IDLE,    publish SHUTDOWN
    any     + suspend line        -> suspend_pending, publish SUSPENDING
    any     + resume line         -> publish RESUMING only if suspend_pending
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Set, Tuple

from steam_animation_daemon.models.enums import DetectorPhase
from steam_animation_daemon.models.events import LifecycleEvent
from steam_animation_daemon.utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from steam_animation_daemon.services.event_bus import EventBus

log = get_logger().for_category(LogCategory.MONITOR)

SUSPEND_MARKERS: Tuple[str, ...] = ("suspend", "Suspending system")
RESUME_MARKERS: Tuple[str, ...] = ("resume", "System resumed")


@dataclass(frozen=True)
class DetectorState:
    """Read-only view of the detector, used to recover after bus lag"""
    running: bool
    suspend_pending: bool
    pid_count: int


class LifecycleDetector:
    """Single owner of lifecycle state; only ever publishes to the bus"""

    def __init__(self, bus: "EventBus"):
        self.bus = bus
        self._phase = DetectorPhase.IDLE
        self._suspend_pending = False
        self._pids: Set[int] = set()

    @property
    def phase(self) -> DetectorPhase:
        return self._phase

    @property
    def suspend_pending(self) -> bool:
        return self._suspend_pending

    def snapshot(self) -> DetectorState:
        return DetectorState(
            running=self._phase == DetectorPhase.RUNNING,
            suspend_pending=self._suspend_pending,
            pid_count=len(self._pids),
        )

    def on_process_snapshot(self, pids: Set[int]) -> Optional[LifecycleEvent]:
        """
        Feed one process-table snapshot

        Returns:
            The published event, or None when nothing changed
        """
        self._pids = set(pids)
        event = None

        if self._phase == DetectorPhase.IDLE and pids:
            self._phase = DetectorPhase.RUNNING
            event = LifecycleEvent.starting(pid_count=len(pids))
            log.info("Steam process detected", pids=len(pids))
        elif self._phase == DetectorPhase.RUNNING and not pids:
            self._phase = DetectorPhase.IDLE
            event = LifecycleEvent.shutdown()
            log.info("Steam processes gone")

        if event is not None:
            self.bus.publish(event)
        return event

    def on_log_line(self, line: str) -> Optional[LifecycleEvent]:
        """
        Feed one system log line

        Suspend markers are checked before resume markers, so a line holding
        both counts as a suspend.
        """
        event = None

        if any(marker in line for marker in SUSPEND_MARKERS):
            self._suspend_pending = True
            event = LifecycleEvent.suspending(line=line)
            log.info("System suspend detected")
        elif any(marker in line for marker in RESUME_MARKERS):
            if not self._suspend_pending:
                log.debug("Resume line without pending suspend ignored", line=line)
                return None
            self._suspend_pending = False
            event = LifecycleEvent.resuming(line=line)
            log.info("System resume detected")

        if event is not None:
            self.bus.publish(event)
        return event
