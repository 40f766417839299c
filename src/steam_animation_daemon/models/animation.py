"""
Animation catalog models
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from steam_animation_daemon.models.enums import AnimationType


@dataclass
class Animation:
    """
    Catalog entry for one animation file.

    The catalog owns the single copy of each entry. Everything else refers
    to it by id; `cached_path` and `duration` are filled in lazily once the
    entry has been transcoded / probed.
    """
    id: str
    name: str
    source_path: Path
    animation_type: AnimationType
    duration: Optional[float] = None
    cached_path: Optional[Path] = None


@dataclass
class AnimationSetConfig:
    """Optional per-set overrides read from <set>/config.json"""
    boot: Optional[str] = None
    suspend: Optional[str] = None
    throbber: Optional[str] = None
    enabled: bool = True
