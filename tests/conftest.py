"""
Shared fixtures: fake transcoder / mount backend and tmp_path based config.

Nothing here runs ffmpeg, mount or journalctl.
"""

import asyncio
from pathlib import Path
from typing import Iterable, List, Tuple

import pytest

from steam_animation_daemon.errors import MountError, TranscodeError
from steam_animation_daemon.lifecycle.task_registry import TaskRegistry
from steam_animation_daemon.models.config import DaemonConfig
from steam_animation_daemon.models.video import TranscodeSettings, VideoInfo


class FakeTranscoder:
    """Writes a small file instead of running ffmpeg and records every call"""

    def __init__(self, timeout: float = 300.0, fail: bool = False, payload: bytes = b"webm-data"):
        self.timeout = timeout
        self.fail = fail
        self.payload = payload
        self.calls: List[Tuple[Path, Path, TranscodeSettings]] = []
        self.probed: List[Path] = []

    async def transcode(self, source: Path, target: Path, settings: TranscodeSettings) -> Path:
        self.calls.append((source, target, settings))
        await asyncio.sleep(0)
        if self.fail:
            raise TranscodeError("ffmpeg exited with status 1", source=str(source))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.payload)
        return target

    async def probe(self, path: Path) -> VideoInfo:
        self.probed.append(path)
        return VideoInfo(duration=4.0, width=1280, height=720, codec="vp9")


class FakeMountBackend:
    """Records bind / unbind calls; binds can be made to fail"""

    def __init__(self, fail_bind: bool = False, fail_unbind: bool = False):
        self.fail_bind = fail_bind
        self.fail_unbind = fail_unbind
        self.binds: List[Tuple[Path, Path]] = []
        self.unbinds: List[Path] = []

    async def bind(self, source: Path, target: Path) -> None:
        if self.fail_bind:
            raise MountError("Failed to mount animation: permission denied", source=str(source), target=str(target))
        self.binds.append((source, target))

    async def unbind(self, target: Path) -> None:
        self.unbinds.append(target)
        if self.fail_unbind:
            raise MountError("Unmount failed: not mounted", target=str(target))


def write_animation_set(root: Path, name: str, files: Iterable[str] = ("deck_startup.webm",)) -> Path:
    set_dir = root / name
    set_dir.mkdir(parents=True, exist_ok=True)
    for file_name in files:
        (set_dir / file_name).write_bytes(f"{name}/{file_name}".encode())
    return set_dir


@pytest.fixture(autouse=True)
def fresh_task_registry():
    TaskRegistry.reset()
    yield
    TaskRegistry.reset()


@pytest.fixture
def settings() -> TranscodeSettings:
    return TranscodeSettings(max_duration=5, width=1280, height=720, quality=23)


@pytest.fixture
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def mount_backend() -> FakeMountBackend:
    return FakeMountBackend()


@pytest.fixture
def config(tmp_path) -> DaemonConfig:
    return DaemonConfig(
        animations_path=tmp_path / "animations",
        downloads_path=tmp_path / "downloads",
        steam_override_path=tmp_path / "overrides",
        animation_cache_path=tmp_path / "cache",
    )
