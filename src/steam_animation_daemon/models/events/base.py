from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from steam_animation_daemon.models.events.types import EventType
from steam_animation_daemon.models.events.sources import EventSource


@dataclass(frozen=True)
class Event:
    """
    Base event class.

    - type: EventType
    - source: EventSource
    - timestamp: auto

    Frozen: events are copied by value across the bus and never mutated.
    """

    type: EventType
    source: Optional[EventSource] = None
    timestamp: float = field(default_factory=time.time)

    def to_data(self) -> Dict[str, Any]:
        """
        Structured payload for EventBus / serializers.
        """
        data = {}
        for k, v in self.__dict__.items():
            if k in ("type", "source", "timestamp"):
                continue
            data[k] = v
        return data
