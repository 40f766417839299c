"""
Daemon error hierarchy

Every error carries a stable code, a message and optional details so the
dispatch loop can log failures uniformly:

- ConfigError: fatal, aborts startup
- TranscodeError / MountError / AnimationApplyError: operation failures,
  the triggering event is dropped but the daemon keeps running
- SubscriberLagged: an event bus subscriber missed events
"""

from typing import Optional


class AnimationDaemonError(Exception):
    """Base class for daemon errors"""
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(AnimationDaemonError):
    """Configuration unreadable or required directories unavailable"""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            code="CONFIG_ERROR",
            message=message,
            details={"path": path} if path else {},
        )


class CatalogError(AnimationDaemonError):
    """Animation set or download could not be loaded"""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            code="CATALOG_ERROR",
            message=message,
            details={"path": path} if path else {},
        )


class AnimationNotFoundError(AnimationDaemonError):
    """Animation ID doesn't exist in the catalog"""
    def __init__(self, animation_id: str):
        super().__init__(
            code="ANIMATION_NOT_FOUND",
            message=f"Animation '{animation_id}' not found",
            details={"animation_id": animation_id},
        )


class TranscodeError(AnimationDaemonError):
    """ffmpeg failed or produced no usable output"""
    def __init__(self, message: str, source: Optional[str] = None, stderr: Optional[str] = None):
        details = {}
        if source:
            details["source"] = source
        if stderr:
            details["stderr"] = stderr
        super().__init__(code="TRANSCODE_FAILED", message=message, details=details)


class TranscodeTimeoutError(TranscodeError):
    """ffmpeg exceeded the wall-clock limit"""
    def __init__(self, source: str, timeout: float):
        super().__init__(
            message=f"Transcoding timed out after {timeout:.0f}s",
            source=source,
        )
        self.code = "TRANSCODE_TIMEOUT"
        self.details["timeout"] = timeout


class ProbeError(AnimationDaemonError):
    """ffprobe failed or returned unusable metadata"""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            code="PROBE_FAILED",
            message=message,
            details={"path": path} if path else {},
        )


class MountError(AnimationDaemonError):
    """Bind mount could not be established"""
    def __init__(self, message: str, source: Optional[str] = None, target: Optional[str] = None):
        super().__init__(
            code="MOUNT_FAILED",
            message=message,
            details={"source": source, "target": target},
        )


class AnimationApplyError(AnimationDaemonError):
    """Applying an animation to its slot failed; active table unchanged"""
    def __init__(self, animation_id: str, animation_type: str, reason: str):
        super().__init__(
            code="APPLY_FAILED",
            message=f"Failed to apply {animation_type} animation '{animation_id}': {reason}",
            details={"animation_id": animation_id, "animation_type": animation_type},
        )


class SubscriberLagged(AnimationDaemonError):
    """Subscriber fell behind; `missed` oldest events were dropped"""
    def __init__(self, missed: int):
        super().__init__(
            code="SUBSCRIBER_LAGGED",
            message=f"Subscriber lagged, {missed} event(s) dropped",
            details={"missed": missed},
        )
        self.missed = missed


class BusClosed(AnimationDaemonError):
    """Subscription was closed"""
    def __init__(self):
        super().__init__(code="BUS_CLOSED", message="Event bus subscription closed")
