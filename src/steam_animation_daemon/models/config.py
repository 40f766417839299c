"""
Daemon configuration model

Plain dataclass filled by ConfigManager from config.yaml. Defaults match a
stock Steam Deck running the SDH-AnimationChanger plugin layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from steam_animation_daemon.models.enums import AnimationType, RandomizeMode
from steam_animation_daemon.models.video import TranscodeSettings

PLUGIN_DATA_DIR = Path.home() / "homebrew" / "data" / "SDH-AnimationChanger"

DEFAULT_MAX_DURATION = 5
MAX_ALLOWED_DURATION = 30
DEFAULT_QUALITY = 23
DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
DEFAULT_CACHE_SIZE_MB = 500


@dataclass
class DaemonConfig:
    # Paths
    animations_path: Path = field(default_factory=lambda: PLUGIN_DATA_DIR / "animations")
    downloads_path: Path = field(default_factory=lambda: PLUGIN_DATA_DIR / "downloads")
    steam_override_path: Path = field(
        default_factory=lambda: Path.home() / ".steam" / "root" / "config" / "uioverrides" / "movies"
    )
    animation_cache_path: Path = field(default_factory=lambda: Path("/tmp/steam-animation-cache"))

    # Current animations (catalog ids)
    current_boot_animation: Optional[str] = None
    current_suspend_animation: Optional[str] = None
    current_throbber_animation: Optional[str] = None

    # Randomization
    randomize_mode: RandomizeMode = RandomizeMode.DISABLED
    shuffle_exclusions: List[str] = field(default_factory=list)

    # Video processing
    max_animation_duration: int = DEFAULT_MAX_DURATION    # seconds
    target_width: int = DEFAULT_WIDTH
    target_height: int = DEFAULT_HEIGHT
    video_quality: int = DEFAULT_QUALITY                  # CRF
    transcode_timeout: float = 300.0                      # seconds

    # Cache
    max_cache_size_mb: int = DEFAULT_CACHE_SIZE_MB
    cache_max_age_days: int = 30

    # Monitoring
    process_match: str = "steam"
    process_check_interval: float = 1.0
    maintenance_interval: float = 300.0
    log_tail_restart_delay: float = 5.0
    bus_capacity: int = 32

    # Logging
    log_level: str = "info"
    enable_debug: bool = False

    @property
    def transcode_settings(self) -> TranscodeSettings:
        return TranscodeSettings(
            max_duration=self.max_animation_duration,
            width=self.target_width,
            height=self.target_height,
            quality=self.video_quality,
        )

    @property
    def max_cache_size_bytes(self) -> int:
        return self.max_cache_size_mb * 1024 * 1024

    @property
    def cache_max_age_seconds(self) -> float:
        return self.cache_max_age_days * 24 * 3600

    def configured_animation(self, animation_type: AnimationType) -> Optional[str]:
        """Statically configured animation id for a slot (DISABLED mode)"""
        return {
            AnimationType.BOOT: self.current_boot_animation,
            AnimationType.SUSPEND: self.current_suspend_animation,
            AnimationType.THROBBER: self.current_throbber_animation,
        }[animation_type]

    def required_directories(self) -> List[Path]:
        return [
            self.animations_path,
            self.downloads_path,
            self.animation_cache_path,
            self.steam_override_path,
        ]
