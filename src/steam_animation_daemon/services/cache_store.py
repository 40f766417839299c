"""
Cache Store - content-addressed cache of transcoded animations

Layout:
    <cache_root>/<key>.webm            complete entry
    <cache_root>/<key>.webm.partial    transcode in progress (never an entry)

The directory listing is the only index. The key is derived from the source
file's identity and the transcode settings, so an unchanged source keeps
hitting the same entry across daemon restarts.
"""

import asyncio
import hashlib
import os
import struct
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List

from steam_animation_daemon.errors import TranscodeError
from steam_animation_daemon.models.animation import Animation
from steam_animation_daemon.models.video import TranscodeSettings
from steam_animation_daemon.services.transcoder import PARTIAL_SUFFIX, TranscoderGateway
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CACHE)

# 16 hex chars = 64 bits of SHA-256. Collision odds for n entries are about
# n^2 / 2^65; this is an identity key, not a security boundary.
CACHE_KEY_LENGTH = 16
CACHE_EXTENSION = ".webm"

MB = 1024 * 1024


@dataclass(frozen=True)
class CacheEntry:
    path: Path
    size: int
    modified: float


@dataclass(frozen=True)
class SweepResult:
    removed_files: int
    removed_bytes: int
    remaining_bytes: int


class CacheStore:
    """
    Transcoded-asset cache with age/size eviction.

    get_or_create() serializes work per key: a second caller for the same
    key waits for the first and then sees a cache hit. Different keys
    transcode concurrently.

    Example:
        store = CacheStore(Path("/tmp/steam-animation-cache"), settings, gateway,
                           max_size_bytes=500 * MB, max_age_seconds=30 * 86400)
        path = await store.get_or_create(animation)
        store.sweep()
    """

    def __init__(
        self,
        cache_root: Path,
        settings: TranscodeSettings,
        transcoder: TranscoderGateway,
        max_size_bytes: int,
        max_age_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self.cache_root = Path(cache_root)
        self.settings = settings
        self.transcoder = transcoder
        self.max_size_bytes = max_size_bytes
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------
    # KEYS
    # ------------------------------------------------------

    def cache_key(self, source_path: Path) -> str:
        """
        Hash of (absolute path, size, mtime seconds, max duration, width,
        height, quality), truncated to CACHE_KEY_LENGTH hex chars.

        Raises:
            OSError: source file cannot be stat'ed
        """
        abs_path = os.path.abspath(str(source_path))
        st = os.stat(abs_path)

        hasher = hashlib.sha256()
        hasher.update(abs_path.encode("utf-8"))
        hasher.update(struct.pack("<Q", st.st_size))
        hasher.update(struct.pack("<Q", int(st.st_mtime)))
        hasher.update(struct.pack("<Q", self.settings.max_duration))
        hasher.update(struct.pack("<I", self.settings.width))
        hasher.update(struct.pack("<I", self.settings.height))
        hasher.update(struct.pack("<I", self.settings.quality))

        return hasher.hexdigest()[:CACHE_KEY_LENGTH]

    def path_for_key(self, key: str) -> Path:
        return self.cache_root / f"{key}{CACHE_EXTENSION}"

    def update_settings(self, settings: TranscodeSettings) -> None:
        """New settings produce new keys; old entries age out via sweep()"""
        if settings != self.settings:
            log.info("Transcode settings changed", settings=settings)
        self.settings = settings

    # ------------------------------------------------------
    # LOOKUP / CREATE
    # ------------------------------------------------------

    async def get_or_create(self, animation: Animation) -> Path:
        """
        Return the cached, transcoded file for `animation`.

        Raises:
            TranscodeError: source unreadable or transcoding failed
        """
        try:
            key = self.cache_key(animation.source_path)
        except OSError as e:
            raise TranscodeError(f"Source file unavailable: {e}", source=str(animation.source_path))

        cached = self.path_for_key(key)
        if cached.exists():
            log.debug("Using cached optimized animation", animation=animation.id, path=str(cached))
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another caller may have produced it while we waited
            if cached.exists():
                log.debug("Cache filled while waiting", animation=animation.id, key=key)
                return cached

            log.info("Optimizing animation", animation=animation.name, key=key)
            started = self._clock()
            await self.transcoder.transcode(animation.source_path, cached, self.settings)
            log.info(
                "Animation optimized and cached",
                path=str(cached),
                seconds=f"{self._clock() - started:.1f}",
            )

        return cached

    # ------------------------------------------------------
    # EVICTION
    # ------------------------------------------------------

    def entries(self) -> List[CacheEntry]:
        """Complete cache entries, oldest first"""
        result = []
        if not self.cache_root.is_dir():
            return result

        for path in self.cache_root.iterdir():
            if path.name.endswith(PARTIAL_SUFFIX):
                continue
            try:
                st = path.stat()
            except OSError:
                continue
            if not path.is_file():
                continue
            result.append(CacheEntry(path=path, size=st.st_size, modified=st.st_mtime))

        result.sort(key=lambda e: e.modified)
        return result

    def sweep(self) -> SweepResult:
        """
        Evict entries oldest-first.

        An entry is removed while the running total exceeds max_size_bytes or
        when it is older than max_age_seconds. The running total shrinks with
        every removal, so size eviction stops as soon as the cache fits.
        A failed delete is logged and the sweep moves on.
        """
        log.debug("Cleaning up video cache", root=str(self.cache_root))

        now = self._clock()
        self._remove_orphaned_partials(now)

        entries = self.entries()
        total_size = sum(e.size for e in entries)

        removed_files = 0
        removed_bytes = 0

        for entry in entries:
            age = now - entry.modified
            if total_size <= self.max_size_bytes and age <= self.max_age_seconds:
                continue

            try:
                entry.path.unlink()
            except FileNotFoundError:
                total_size -= entry.size
                continue
            except OSError as e:
                log.warn("Failed to remove cache file", path=str(entry.path), error=str(e))
                continue

            log.debug("Removed cache file", path=str(entry.path), bytes=entry.size)
            removed_files += 1
            removed_bytes += entry.size
            total_size -= entry.size

        if removed_files > 0:
            log.info(
                f"Cache cleanup: removed {removed_files} files ({removed_bytes // MB} MB)",
                remaining_mb=total_size // MB,
            )

        return SweepResult(
            removed_files=removed_files,
            removed_bytes=removed_bytes,
            remaining_bytes=total_size,
        )

    def _remove_orphaned_partials(self, now: float) -> None:
        """Drop partial outputs older than the transcode timeout (left by a crash)"""
        if not self.cache_root.is_dir():
            return

        for path in self.cache_root.glob(f"*{PARTIAL_SUFFIX}"):
            try:
                if now - path.stat().st_mtime <= self.transcoder.timeout:
                    continue
                path.unlink()
                log.debug("Removed orphaned partial output", path=str(path))
            except FileNotFoundError:
                continue
            except OSError as e:
                log.warn("Failed to remove partial output", path=str(path), error=str(e))
