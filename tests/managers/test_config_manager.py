import pytest
import yaml

from steam_animation_daemon.errors import ConfigError
from steam_animation_daemon.managers.config_manager import ConfigManager
from steam_animation_daemon.models.config import DaemonConfig
from steam_animation_daemon.models.enums import RandomizeMode


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


def tmp_paths(tmp_path):
    return {
        "animations_path": str(tmp_path / "animations"),
        "downloads_path": str(tmp_path / "downloads"),
        "steam_override_path": str(tmp_path / "overrides"),
        "animation_cache_path": str(tmp_path / "cache"),
    }


def test_missing_file_writes_defaults(tmp_path):
    path = tmp_path / "etc" / "config.yaml"
    manager = ConfigManager(path)

    config = manager.load(create_directories=False)

    assert path.exists()
    saved = yaml.safe_load(path.read_text())
    assert saved["randomize_mode"] == "disabled"
    assert saved["max_animation_duration"] == 5
    assert config.target_width == 1280


def test_load_reads_values_and_creates_directories(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {
        **tmp_paths(tmp_path),
        "current_boot_animation": "retro/deck_startup.webm",
        "randomize_mode": "per_boot",
        "shuffle_exclusions": ["a/deck_startup.webm"],
        "video_quality": 30,
    })

    config = ConfigManager(path).load()

    assert config.current_boot_animation == "retro/deck_startup.webm"
    assert config.randomize_mode == RandomizeMode.PER_BOOT
    assert config.shuffle_exclusions == ["a/deck_startup.webm"]
    assert config.video_quality == 30
    for directory in config.required_directories():
        assert directory.is_dir()


def test_invalid_values_are_fixed(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {
        "max_animation_duration": 120,
        "video_quality": 99,
        "target_width": 0,
        "max_cache_size_mb": 0,
        "randomize_mode": "sometimes",
        "process_check_interval": -1,
        "unknown_key": True,
    })

    config = ConfigManager(path).load(create_directories=False)

    assert config.max_animation_duration == 30
    assert config.video_quality == 23
    assert (config.target_width, config.target_height) == (1280, 720)
    assert config.max_cache_size_mb == 500
    assert config.randomize_mode == RandomizeMode.DISABLED
    assert config.process_check_interval == 1.0


def test_zero_duration_uses_default(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {"max_animation_duration": 0})

    assert ConfigManager(path).load(create_directories=False).max_animation_duration == 5


def test_exclusions_as_string(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {"shuffle_exclusions": "a/x.webm b/y.webm"})

    config = ConfigManager(path).load(create_directories=False)

    assert config.shuffle_exclusions == ["a/x.webm", "b/y.webm"]


def test_malformed_yaml_is_fatal(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("randomize_mode: [unclosed\n")

    with pytest.raises(ConfigError):
        ConfigManager(path).load(create_directories=False)


def test_non_mapping_is_fatal(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigError):
        ConfigManager(path).load(create_directories=False)


def test_uncreatable_directory_is_fatal(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    path = write_yaml(tmp_path / "config.yaml", {**tmp_paths(tmp_path), "animation_cache_path": str(blocker / "cache")})

    with pytest.raises(ConfigError):
        ConfigManager(path).load()


def test_updates_are_persisted(tmp_path):
    path = write_yaml(tmp_path / "config.yaml", {"current_suspend_animation": "old/steam_os_suspend.webm"})
    manager = ConfigManager(path)
    manager.load(create_directories=False)

    manager.update_animations(boot="retro/deck_startup.webm", suspend="")
    manager.update_randomization(RandomizeMode.PER_SET, ["x/deck_startup.webm"])

    reloaded = ConfigManager(path).load(create_directories=False)
    assert reloaded.current_boot_animation == "retro/deck_startup.webm"
    assert reloaded.current_suspend_animation is None
    assert reloaded.randomize_mode == RandomizeMode.PER_SET
    assert reloaded.shuffle_exclusions == ["x/deck_startup.webm"]


def test_environment_presets():
    dev = ConfigManager.for_environment("development")
    testing = ConfigManager.for_environment("testing")

    assert dev.enable_debug
    assert testing.max_animation_duration == 2
    assert ConfigManager.for_environment("production") == DaemonConfig()
