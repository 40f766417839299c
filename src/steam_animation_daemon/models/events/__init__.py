"""
Event system for the animation daemon

Lifecycle events flow from the monitors to the dispatch loop over the EventBus.
"""

# Event type, base class, and sources
from steam_animation_daemon.models.events.types import EventType
from steam_animation_daemon.models.events.base import Event
from steam_animation_daemon.models.events.sources import EventSource

# Lifecycle events
from steam_animation_daemon.models.events.lifecycle import LifecycleEvent

__all__ = [
    # Type, base, and sources
    "EventType",
    "Event",
    "EventSource",

    # Lifecycle
    "LifecycleEvent",
]
