from enum import Enum, auto


class EventType(Enum):
    # Lifecycle of the monitored application / system
    STARTING = auto()
    SUSPENDING = auto()
    RESUMING = auto()
    SHUTDOWN = auto()
