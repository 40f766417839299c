"""
Mount Controller - swaps cached animations into Steam's override directory

Steam reads fixed filenames from `uioverrides/movies`. Instead of copying or
symlinking, the cached file is bind-mounted onto an empty placeholder at the
fixed path, so Steam always sees either nothing or a complete file.

Swap sequence for one slot:
    1. target exists -> unbind (best-effort) and remove placeholder
    2. create empty placeholder
    3. bind cached asset onto placeholder
"""

import asyncio
import os
from pathlib import Path
from typing import Protocol

from steam_animation_daemon.errors import MountError
from steam_animation_daemon.models.enums import AnimationType, TARGET_FILENAMES
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.MOUNT)


class IMountBackend(Protocol):
    """
    Filesystem-namespace mount primitive.

    bind() must raise MountError on failure. unbind() raises MountError when
    nothing could be unmounted; callers treat that as non-fatal.
    """

    async def bind(self, source: Path, target: Path) -> None:
        ...

    async def unbind(self, target: Path) -> None:
        ...


class CommandMountBackend:
    """`mount --bind` / `umount` through asyncio subprocesses"""

    def __init__(self, mount: str = "mount", umount: str = "umount"):
        self.mount = mount
        self.umount = umount

    async def _run(self, *args: str) -> tuple:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return 127, str(e)
        _, stderr = await proc.communicate()
        return proc.returncode, stderr.decode("utf-8", errors="replace").strip()

    async def bind(self, source: Path, target: Path) -> None:
        code, stderr = await self._run(self.mount, "--bind", str(source), str(target))
        if code != 0:
            raise MountError(
                f"Failed to mount animation: {stderr or f'exit status {code}'}",
                source=str(source),
                target=str(target),
            )
        log.debug(f"Mounted {source} -> {target}")

    async def unbind(self, target: Path) -> None:
        code, stderr = await self._run(self.umount, str(target))
        if code != 0:
            raise MountError(
                f"Unmount failed: {stderr or f'exit status {code}'}",
                target=str(target),
            )


class MountController:
    """
    Owns the three fixed target paths under the override directory.

    Called only from the dispatch loop, so swaps never overlap.
    """

    def __init__(self, override_dir: Path, backend: IMountBackend):
        self.override_dir = Path(override_dir)
        self.backend = backend

    def target_path(self, animation_type: AnimationType) -> Path:
        return self.override_dir / TARGET_FILENAMES[animation_type]

    async def swap(self, source: Path, animation_type: AnimationType) -> Path:
        """
        Bind `source` onto the slot's target path.

        Returns:
            The target path

        Raises:
            MountError: placeholder could not be replaced or bind failed.
                If this happens after the old placeholder was removed, the
                slot is left empty.
        """
        target = self.target_path(animation_type)

        if os.path.lexists(target):
            await self.release(target)

        try:
            self.override_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"")
        except OSError as e:
            raise MountError(f"Failed to create placeholder: {e}", source=str(source), target=str(target))

        try:
            await self.backend.bind(source, target)
        except MountError:
            self._remove_placeholder(target, strict=False)
            raise

        return target

    async def release(self, target: Path) -> None:
        """
        Unbind (best-effort) and remove the placeholder.

        Raises:
            MountError: placeholder exists but could not be removed
        """
        try:
            await self.backend.unbind(target)
        except MountError as e:
            # Usually just "not mounted"
            log.debug("Unmount failed (expected if not mounted)", target=str(target), error=e.message)

        self._remove_placeholder(target, strict=True)

    async def release_slot(self, animation_type: AnimationType) -> bool:
        """
        Release one slot if anything is at its target path.

        Returns:
            True if the slot was occupied and is now empty
        """
        target = self.target_path(animation_type)
        if not os.path.lexists(target):
            return False
        await self.release(target)
        return True

    def _remove_placeholder(self, target: Path, strict: bool) -> None:
        try:
            target.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            if strict:
                raise MountError(f"Failed to remove placeholder: {e}", target=str(target))
            log.warn("Failed to remove placeholder", target=str(target), error=str(e))
