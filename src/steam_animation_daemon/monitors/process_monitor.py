"""
Process Monitor - polls the process table for the target application
"""

import asyncio
import os
from typing import Optional, Set

import psutil

from steam_animation_daemon.monitors.lifecycle_detector import LifecycleDetector
from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.MONITOR)


class ProcessMonitor:
    """
    Polls the process table and feeds pid snapshots to the detector.

    A pid matches when any argument of its command line contains `match`.
    The daemon's own pid never matches.
    """

    def __init__(self, detector: LifecycleDetector, match: str = "steam", interval: float = 1.0):
        self.detector = detector
        self.match = match
        self.interval = interval
        self._own_pid = os.getpid()
        self._pids: Set[int] = set()
        self._running = False

    def snapshot_pids(self) -> Set[int]:
        """
        Raises:
            psutil.Error / OSError: process table could not be read
        """
        pids = set()
        for proc in psutil.process_iter(["pid", "cmdline"]):
            try:
                pid = proc.info["pid"]
                cmdline = proc.info["cmdline"] or []
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
            if pid == self._own_pid:
                continue
            if any(self.match in arg for arg in cmdline):
                pids.add(pid)
        return pids

    def poll_once(self) -> Optional[Set[int]]:
        """
        Take one snapshot and feed it to the detector

        A failed snapshot is logged and the previous pid set is kept.
        """
        try:
            pids = self.snapshot_pids()
        except (psutil.Error, OSError) as e:
            log.warn("Process snapshot failed, keeping previous state", error=str(e))
            return None

        self._pids = pids
        self.detector.on_process_snapshot(pids)
        return pids

    async def run(self) -> None:
        """Polling loop; runs until cancelled or stop()"""
        self._running = True
        log.info(f"Process monitor started (match='{self.match}', interval={self.interval}s)")

        while self._running:
            self.poll_once()
            await asyncio.sleep(self.interval)

    def stop(self) -> None:
        self._running = False
        log.info("Process monitor stopped")
