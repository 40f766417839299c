"""
Journal Monitor - follows systemd sleep units through journalctl

One run() is one attempt: it returns when the tail ends and raises when
journalctl cannot be started. Restarting is left to the supervisor.
"""

import asyncio
from typing import Optional, Sequence

from steam_animation_daemon.monitors.lifecycle_detector import LifecycleDetector
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.MONITOR)

JOURNAL_COMMAND = (
    "journalctl", "-f",
    "-u", "systemd-suspend.service",
    "-u", "systemd-hibernate.service",
    "--no-pager",
)


class JournalMonitor:

    def __init__(self, detector: LifecycleDetector, command: Sequence[str] = JOURNAL_COMMAND):
        self.detector = detector
        self.command = tuple(command)
        self._process: Optional[asyncio.subprocess.Process] = None

    async def run(self) -> None:
        """
        Raises:
            OSError: journalctl could not be spawned
        """
        self._process = await asyncio.create_subprocess_exec(
            *self.command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        log.info("Journal monitor started", command=" ".join(self.command))

        try:
            assert self._process.stdout is not None
            async for raw in self._process.stdout:
                line = raw.decode("utf-8", errors="replace").rstrip("\n")
                if line:
                    self.detector.on_log_line(line)
        finally:
            if self._process.returncode is None:
                try:
                    self._process.kill()
                except ProcessLookupError:
                    pass
            returncode = await self._process.wait()
            self._process = None

        log.warn("Journal tail ended", returncode=returncode)
