from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from steam_animation_daemon.models.events.base import Event
from steam_animation_daemon.models.events.types import EventType
from steam_animation_daemon.models.events.sources import EventSource


@dataclass(frozen=True)
class LifecycleEvent(Event):
    """
    Lifecycle transition of the monitored application or system.

    Poller events carry the number of matching processes, journal events
    carry the log line that triggered them.
    """

    pid_count: int = 0
    line: Optional[str] = None

    @classmethod
    def starting(cls, pid_count: int) -> "LifecycleEvent":
        return cls(type=EventType.STARTING, source=EventSource.PROCESS_POLLER, pid_count=pid_count)

    @classmethod
    def shutdown(cls) -> "LifecycleEvent":
        return cls(type=EventType.SHUTDOWN, source=EventSource.PROCESS_POLLER)

    @classmethod
    def suspending(cls, line: Optional[str] = None) -> "LifecycleEvent":
        return cls(type=EventType.SUSPENDING, source=EventSource.JOURNAL, line=line)

    @classmethod
    def resuming(cls, line: Optional[str] = None) -> "LifecycleEvent":
        return cls(type=EventType.RESUMING, source=EventSource.JOURNAL, line=line)
