"""
Models package - Data models for the animation daemon
"""

from .enums import AnimationType, RandomizeMode, DetectorPhase, LogLevel, LogCategory, TARGET_FILENAMES
from .animation import Animation, AnimationSetConfig
from .config import DaemonConfig
from .video import TranscodeSettings, VideoInfo

__all__ = [
    'AnimationType',
    'RandomizeMode',
    'DetectorPhase',
    'LogLevel',
    'LogCategory',
    'TARGET_FILENAMES',
    'Animation',
    'AnimationSetConfig',
    'DaemonConfig',
    'TranscodeSettings',
    'VideoInfo',
]
