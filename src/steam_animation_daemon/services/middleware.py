"""
Middleware for EventBus

Middleware = pipeline functions that process events before delivery.
Can modify events, block events, or log/validate events.
"""

from steam_animation_daemon.models.events import Event
from steam_animation_daemon.utils.logger import get_logger, LogCategory
from steam_animation_daemon.utils.serialization import Serializer

log = get_logger().for_category(LogCategory.EVENT)


def log_middleware(event: Event) -> Event:
    """
    Log all events for debugging

    Usage:
        event_bus.add_middleware(log_middleware)
    """
    source_str = Serializer.enum_to_str(event.source)
    data = {k: v for k, v in event.to_data().items() if v is not None}

    log.info(
        f"Event: {event.type.name} from {source_str}",
        **data
    )
    return event
