import json

from steam_animation_daemon.managers.catalog_manager import CatalogManager
from steam_animation_daemon.models.enums import AnimationType

from conftest import write_animation_set


def make_catalog(tmp_path):
    return CatalogManager(tmp_path / "animations", tmp_path / "downloads")


def test_sets_become_entries_per_slot(tmp_path):
    write_animation_set(tmp_path / "animations", "retro", (
        "deck_startup.webm",
        "steam_os_suspend.webm",
        "steam_os_suspend_from_throbber.webm",
        "readme.txt",
    ))
    catalog = make_catalog(tmp_path)

    catalog.load()

    assert len(catalog) == 3
    boot = catalog.get("retro/deck_startup.webm")
    assert boot.animation_type == AnimationType.BOOT
    assert boot.name == "retro"
    assert catalog.get("retro/steam_os_suspend.webm").name == "retro - Suspend"
    assert catalog.get("retro/steam_os_suspend_from_throbber.webm").animation_type == AnimationType.THROBBER


def test_set_config_overrides_and_disables(tmp_path):
    custom = write_animation_set(tmp_path / "animations", "custom", ("intro.webm",))
    (custom / "config.json").write_text(json.dumps({"boot": "intro.webm"}))
    off = write_animation_set(tmp_path / "animations", "off")
    (off / "config.json").write_text(json.dumps({"enabled": False}))
    broken = write_animation_set(tmp_path / "animations", "broken")
    (broken / "config.json").write_text("{not json")

    catalog = make_catalog(tmp_path)
    catalog.load()

    assert "custom/intro.webm" in catalog
    assert "off/deck_startup.webm" not in catalog
    assert "broken/deck_startup.webm" in catalog


def test_downloads(tmp_path):
    downloads = tmp_path / "downloads"
    downloads.mkdir()
    (downloads / "cool_boot-video.webm").write_bytes(b"x")
    (downloads / "night_suspend.webm").write_bytes(b"x")
    (downloads / "plain.webm").write_bytes(b"x")
    (downloads / "notes.txt").write_bytes(b"x")

    catalog = make_catalog(tmp_path)
    catalog.load()

    assert len(catalog) == 3
    assert catalog.get("downloaded/cool_boot-video").name == "cool boot video"
    assert catalog.get("downloaded/night_suspend").animation_type == AnimationType.SUSPEND
    assert catalog.get("downloaded/plain").animation_type == AnimationType.BOOT
    assert [a.id for a in catalog.by_type(AnimationType.SUSPEND)] == ["downloaded/night_suspend"]


def test_missing_directories_give_empty_catalog(tmp_path):
    catalog = make_catalog(tmp_path)

    assert catalog.load() == {}
    assert list(catalog) == []


def test_reload_keeps_cached_state(tmp_path):
    write_animation_set(tmp_path / "animations", "retro")
    catalog = make_catalog(tmp_path)
    catalog.load()

    entry = catalog.get("retro/deck_startup.webm")
    entry.cached_path = tmp_path / "cache" / "0123456789abcdef.webm"
    entry.duration = 4.0

    write_animation_set(tmp_path / "animations", "second")
    catalog.load()

    reloaded = catalog.get("retro/deck_startup.webm")
    assert reloaded.cached_path == entry.cached_path
    assert reloaded.duration == 4.0
    assert "second/deck_startup.webm" in catalog
