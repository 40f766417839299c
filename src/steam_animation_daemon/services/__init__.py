"""Services layer"""

from .event_bus import EventBus, Subscription
from .transcoder import TranscoderGateway
from .cache_store import CacheStore, CacheEntry, SweepResult
from .mount_controller import MountController, CommandMountBackend, IMountBackend
from .animation_selector import AnimationSelector
from .animation_service import AnimationService
from .service_container import ServiceContainer

__all__ = [
    "EventBus",
    "Subscription",
    "TranscoderGateway",
    "CacheStore",
    "CacheEntry",
    "SweepResult",
    "MountController",
    "CommandMountBackend",
    "IMountBackend",
    "AnimationSelector",
    "AnimationService",
    "ServiceContainer",
]
