"""
Config Manager

Loads config.yaml into a typed DaemonConfig, fixes invalid values, creates
the directories the daemon needs and persists changes back to disk.
"""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from steam_animation_daemon.errors import ConfigError
from steam_animation_daemon.models.config import (
    DaemonConfig,
    DEFAULT_CACHE_SIZE_MB,
    DEFAULT_HEIGHT,
    DEFAULT_MAX_DURATION,
    DEFAULT_QUALITY,
    DEFAULT_WIDTH,
    MAX_ALLOWED_DURATION,
)
from steam_animation_daemon.models.enums import RandomizeMode
from steam_animation_daemon.utils.logger import get_logger, LogCategory
from steam_animation_daemon.utils.serialization import Serializer

log = get_logger().for_category(LogCategory.CONFIG)

DEFAULT_CONFIG_PATH = Path("/etc/steam-animation-manager/config.yaml")

PATH_KEYS = {"animations_path", "downloads_path", "steam_override_path", "animation_cache_path"}
OPTIONAL_STR_KEYS = {"current_boot_animation", "current_suspend_animation", "current_throbber_animation"}
INT_KEYS = {
    "max_animation_duration", "target_width", "target_height", "video_quality",
    "max_cache_size_mb", "cache_max_age_days", "bus_capacity",
}
FLOAT_KEYS = {"process_check_interval", "maintenance_interval", "transcode_timeout", "log_tail_restart_delay"}
POSITIVE_KEYS = FLOAT_KEYS | {"cache_max_age_days", "bus_capacity"}


class ConfigManager:
    """
    Main configuration manager

    Example:
        manager = ConfigManager(Path("/etc/steam-animation-manager/config.yaml"))
        config = manager.load()

        manager.update_animations(boot="my-set/deck_startup.webm")
        manager.update_randomization(RandomizeMode.PER_BOOT, ["downloaded/loud"])
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)
        self.config = DaemonConfig()

    # ------------------------------------------------------
    # LOAD / SAVE
    # ------------------------------------------------------

    def load(self, create_directories: bool = True) -> DaemonConfig:
        """
        Load YAML configuration

        Process:
        1. Missing file -> write defaults there
        2. Parse YAML into DaemonConfig
        3. Validate and fix numeric settings
        4. Create required directories

        Raises:
            ConfigError: file unreadable / malformed, or directories unavailable
        """
        if not self.config_path.exists():
            log.info("Config file not found, creating default config", path=str(self.config_path))
            self.config = DaemonConfig()
            self.save()
        else:
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    raw = yaml.safe_load(f)
            except OSError as e:
                raise ConfigError(f"Failed to read config file: {e}", path=str(self.config_path))
            except yaml.YAMLError as e:
                raise ConfigError(f"Failed to parse config file: {e}", path=str(self.config_path))

            if raw is None:
                raw = {}
            if not isinstance(raw, dict):
                raise ConfigError("Config file must contain a mapping", path=str(self.config_path))

            self.config = self.from_dict(raw)

        self.validate_and_fix(self.config)

        if create_directories:
            self.ensure_directories(self.config)

        log.info(
            f"Configuration loaded from {self.config_path}",
            randomize=self.config.randomize_mode.value,
            max_duration=f"{self.config.max_animation_duration}s",
        )
        return self.config

    def save(self) -> None:
        """
        Write the current config back as YAML

        Raises:
            ConfigError: file or its directory cannot be written
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(Serializer.config_to_dict(self.config), f, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Failed to write config file: {e}", path=str(self.config_path))

        log.info(f"Configuration saved to {self.config_path}")

    # ------------------------------------------------------
    # PARSING
    # ------------------------------------------------------

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> DaemonConfig:
        """Build DaemonConfig from parsed YAML, falling back to defaults per key"""
        config = DaemonConfig()
        known = {f.name for f in fields(DaemonConfig)}

        for key, value in raw.items():
            if key not in known:
                log.warn(f"Unknown config key ignored: {key}")
                continue
            try:
                setattr(config, key, ConfigManager._coerce(key, value))
            except (TypeError, ValueError) as e:
                log.warn(f"Invalid value for {key}, using default", value=value, error=str(e))

        return config

    @staticmethod
    def _coerce(key: str, value: Any) -> Any:
        if key in PATH_KEYS:
            if not value:
                raise ValueError("path must not be empty")
            return Path(str(value)).expanduser()
        if key in OPTIONAL_STR_KEYS:
            return str(value) if value else None
        if key == "randomize_mode":
            return Serializer.value_to_enum(str(value), RandomizeMode)
        if key == "shuffle_exclusions":
            if value is None:
                return []
            if isinstance(value, str):
                return value.split()
            return [str(v) for v in value]
        if key in INT_KEYS:
            return int(value)
        if key in FLOAT_KEYS:
            return float(value)
        if key == "enable_debug":
            return bool(value)
        return str(value)

    # ------------------------------------------------------
    # VALIDATION
    # ------------------------------------------------------

    @staticmethod
    def validate_and_fix(config: DaemonConfig) -> DaemonConfig:
        """Reset out-of-range values to defaults (with a warning each)"""
        defaults = DaemonConfig()

        if config.max_animation_duration <= 0:
            log.warn("Invalid max_animation_duration, using default")
            config.max_animation_duration = DEFAULT_MAX_DURATION

        if config.max_animation_duration > MAX_ALLOWED_DURATION:
            log.warn(
                f"Max animation duration too long ({config.max_animation_duration}s), "
                f"limiting to {MAX_ALLOWED_DURATION}s"
            )
            config.max_animation_duration = MAX_ALLOWED_DURATION

        if config.video_quality < 10 or config.video_quality > 50:
            log.warn(f"Invalid video quality {config.video_quality}, using default")
            config.video_quality = DEFAULT_QUALITY

        if config.target_width <= 0 or config.target_height <= 0:
            log.warn(
                f"Invalid target resolution {config.target_width}x{config.target_height}, "
                "using Steam Deck default"
            )
            config.target_width = DEFAULT_WIDTH
            config.target_height = DEFAULT_HEIGHT

        if config.max_cache_size_mb <= 0:
            log.warn("Invalid max cache size, using default")
            config.max_cache_size_mb = DEFAULT_CACHE_SIZE_MB

        for key in POSITIVE_KEYS:
            if getattr(config, key) <= 0:
                log.warn(f"Invalid {key}, using default")
                setattr(config, key, getattr(defaults, key))

        return config

    @staticmethod
    def ensure_directories(config: DaemonConfig) -> None:
        """
        Raises:
            ConfigError: a required directory cannot be created
        """
        for directory in config.required_directories():
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigError(f"Failed to create directory: {e}", path=str(directory))

    # ------------------------------------------------------
    # UPDATES
    # ------------------------------------------------------

    def update_animations(
        self,
        boot: Optional[str] = None,
        suspend: Optional[str] = None,
        throbber: Optional[str] = None,
    ) -> None:
        """
        Change configured animations and save

        None leaves a slot unchanged, an empty string clears it.
        """
        if boot is not None:
            self.config.current_boot_animation = boot or None
        if suspend is not None:
            self.config.current_suspend_animation = suspend or None
        if throbber is not None:
            self.config.current_throbber_animation = throbber or None
        self.save()

    def update_randomization(self, mode: RandomizeMode, exclusions: List[str]) -> None:
        """Change randomization settings and save"""
        self.config.randomize_mode = mode
        self.config.shuffle_exclusions = list(exclusions)
        self.save()

    # ------------------------------------------------------
    # PRESETS
    # ------------------------------------------------------

    @staticmethod
    def for_environment(env: str) -> DaemonConfig:
        """Config for a specific environment ("development", "testing", else production)"""
        config = DaemonConfig()

        if env == "development":
            config.animations_path = Path("./test_animations")
            config.downloads_path = Path("./test_downloads")
            config.steam_override_path = Path("./test_overrides")
            config.animation_cache_path = Path("./test_cache")
            config.enable_debug = True
            config.log_level = "debug"
        elif env == "testing":
            config.animations_path = Path("/tmp/test_animations")
            config.downloads_path = Path("/tmp/test_downloads")
            config.steam_override_path = Path("/tmp/test_overrides")
            config.animation_cache_path = Path("/tmp/test_cache")
            config.max_animation_duration = 2

        return config
