"""
Catalog Manager - turns animation directories into catalog entries

Sources:
    <animations_path>/<set>/deck_startup.webm                      BOOT
    <animations_path>/<set>/steam_os_suspend.webm                  SUSPEND
    <animations_path>/<set>/steam_os_suspend_from_throbber.webm    THROBBER
    <animations_path>/<set>/config.json                            optional overrides
    <downloads_path>/*.webm                                        downloaded singles

Id collisions: the entry scanned later replaces the earlier one (with a
warning). Sets are scanned in sorted order, then downloads in sorted order.
"""

import json
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from steam_animation_daemon.errors import CatalogError
from steam_animation_daemon.models.animation import Animation, AnimationSetConfig
from steam_animation_daemon.models.enums import AnimationType, TARGET_FILENAMES
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CATALOG)

SET_CONFIG_FILENAME = "config.json"
DOWNLOAD_EXTENSION = ".webm"


class CatalogManager:
    """
    Owns the single copy of every Animation.

    Example:
        catalog = CatalogManager(config.animations_path, config.downloads_path)
        catalog.load()

        boot_ids = [a.id for a in catalog.by_type(AnimationType.BOOT)]
        anim = catalog.get("set-name/deck_startup.webm")
    """

    def __init__(self, animations_path: Path, downloads_path: Path):
        self.animations_path = Path(animations_path)
        self.downloads_path = Path(downloads_path)
        self.animations: Dict[str, Animation] = {}

    # ------------------------------------------------------
    # LOADING
    # ------------------------------------------------------

    def load(self) -> Dict[str, Animation]:
        """
        Rescan both directories and replace the catalog contents

        Cached paths / durations of entries that survive the rescan with an
        unchanged source path are kept.
        """
        log.info(f"Loading animations from {self.animations_path}")

        previous = self.animations
        self.animations = {}

        if self.animations_path.is_dir():
            for set_path in sorted(self.animations_path.iterdir()):
                if not set_path.is_dir():
                    continue
                try:
                    self._load_animation_set(set_path)
                except CatalogError as e:
                    log.warn(f"Failed to load animation set {set_path}", error=e.message)
        else:
            log.warn("Animations directory missing", path=str(self.animations_path))

        if self.downloads_path.is_dir():
            for path in sorted(self.downloads_path.iterdir()):
                if path.suffix != DOWNLOAD_EXTENSION or not path.is_file():
                    continue
                try:
                    self._load_downloaded_animation(path)
                except CatalogError as e:
                    log.warn(f"Failed to load downloaded animation {path}", error=e.message)

        for anim_id, anim in self.animations.items():
            old = previous.get(anim_id)
            if old is not None and old.source_path == anim.source_path:
                anim.cached_path = old.cached_path
                anim.duration = old.duration

        log.info(f"Loaded {len(self.animations)} animations")
        return self.animations

    def _load_animation_set(self, set_path: Path) -> None:
        set_name = set_path.name
        if not set_name:
            raise CatalogError("Invalid animation set directory name", path=str(set_path))

        log.debug(f"Loading animation set: {set_name}")

        set_config = self._read_set_config(set_path)
        if not set_config.enabled:
            log.debug(f"Animation set disabled: {set_name}")
            return

        overrides = {
            AnimationType.BOOT: set_config.boot,
            AnimationType.SUSPEND: set_config.suspend,
            AnimationType.THROBBER: set_config.throbber,
        }

        for anim_type, default_name in TARGET_FILENAMES.items():
            file_name = overrides[anim_type] or default_name
            anim_path = set_path / file_name
            if not anim_path.is_file():
                continue

            name = set_name if anim_type == AnimationType.BOOT else f"{set_name} - {anim_type.name.title()}"
            self._add(Animation(
                id=f"{set_name}/{file_name}",
                name=name,
                source_path=anim_path,
                animation_type=anim_type,
            ))

    def _read_set_config(self, set_path: Path) -> AnimationSetConfig:
        config_path = set_path / SET_CONFIG_FILENAME
        if not config_path.is_file():
            return AnimationSetConfig()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            log.warn(f"Invalid {SET_CONFIG_FILENAME}, using defaults", set=set_path.name, error=str(e))
            return AnimationSetConfig()

        if not isinstance(raw, dict):
            log.warn(f"{SET_CONFIG_FILENAME} is not an object, using defaults", set=set_path.name)
            return AnimationSetConfig()

        return AnimationSetConfig(
            boot=raw.get("boot") or None,
            suspend=raw.get("suspend") or None,
            throbber=raw.get("throbber") or None,
            enabled=bool(raw.get("enabled", True)),
        )

    def _load_downloaded_animation(self, path: Path) -> None:
        file_stem = path.stem
        if not file_stem:
            raise CatalogError("Invalid downloaded animation filename", path=str(path))

        if "boot" in file_stem:
            anim_type = AnimationType.BOOT
        elif "suspend" in file_stem:
            anim_type = AnimationType.SUSPEND
        else:
            anim_type = AnimationType.BOOT

        self._add(Animation(
            id=f"downloaded/{file_stem}",
            name=file_stem.replace("_", " ").replace("-", " "),
            source_path=path,
            animation_type=anim_type,
        ))

    def _add(self, animation: Animation) -> None:
        if animation.id in self.animations:
            log.warn(
                "Duplicate animation id, later entry wins",
                id=animation.id,
                replaced=str(self.animations[animation.id].source_path),
                path=str(animation.source_path),
            )
        self.animations[animation.id] = animation

    # ------------------------------------------------------
    # ACCESS
    # ------------------------------------------------------

    def get(self, animation_id: str) -> Optional[Animation]:
        return self.animations.get(animation_id)

    def all(self) -> List[Animation]:
        return list(self.animations.values())

    def by_type(self, animation_type: AnimationType) -> List[Animation]:
        return [a for a in self.animations.values() if a.animation_type == animation_type]

    def __contains__(self, animation_id: object) -> bool:
        return animation_id in self.animations

    def __len__(self) -> int:
        return len(self.animations)

    def __iter__(self) -> Iterator[Animation]:
        return iter(list(self.animations.values()))
