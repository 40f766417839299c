from enum import Enum, auto


class EventSource(Enum):
    """Event source identifiers for lifecycle events"""
    PROCESS_POLLER = auto()   # Process-table snapshots
    JOURNAL = auto()          # journalctl tail (suspend / resume)
    DAEMON = auto()           # Synthesized by the daemon itself
