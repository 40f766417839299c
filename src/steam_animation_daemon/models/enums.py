"""
Enums for the animation daemon
"""

from enum import Enum, auto


class AnimationType(Enum):
    """
    Animation slots Steam reads from its override directory.

    Each slot maps to exactly one fixed filename (see TARGET_FILENAMES).
    """
    BOOT = auto()       # deck_startup.webm
    SUSPEND = auto()    # steam_os_suspend.webm
    THROBBER = auto()   # steam_os_suspend_from_throbber.webm


TARGET_FILENAMES = {
    AnimationType.BOOT: "deck_startup.webm",
    AnimationType.SUSPEND: "steam_os_suspend.webm",
    AnimationType.THROBBER: "steam_os_suspend_from_throbber.webm",
}


class RandomizeMode(Enum):
    """Animation selection policy (config values in lowercase)"""
    DISABLED = "disabled"   # Use the configured animation per slot
    PER_BOOT = "per_boot"   # Random pick on every Starting/Suspending
    PER_SET = "per_set"     # Falls back to PER_BOOT (no set grouping yet)


class DetectorPhase(Enum):
    """Run state of the monitored application"""
    IDLE = auto()       # No target process observed
    RUNNING = auto()    # At least one target process observed


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    CATALOG = auto()     # Animation discovery
    MONITOR = auto()     # Process polling, journal tail
    EVENT = auto()       # Event bus events and handling
    CACHE = auto()       # Cache hits, misses, sweeps
    TRANSCODE = auto()   # ffmpeg / ffprobe
    MOUNT = auto()       # Bind mounts
    ANIMATION = auto()   # Selection and apply
    SYSTEM = auto()      # Startup, shutdown, errors

    SHUTDOWN = auto()
    TASK = auto()

    GENERAL = auto()    # Default general category
