"""
Task Registry
-------------

Central record of the daemon's long-lived asyncio tasks (poller, journal
tail, dispatch loop). The shutdown coordinator uses it to notice a failed
critical task and to find what is left to cancel.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Coroutine, Dict, List, Optional

from steam_animation_daemon.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


class TaskCategory(Enum):
    """Logical grouping of asynchronous tasks."""
    MONITOR = auto()
    DISPATCH = auto()
    MAINTENANCE = auto()
    SYSTEM = auto()
    GENERAL = auto()


@dataclass(frozen=True)
class TaskInfo:
    """Metadata captured at task creation time."""
    id: int
    category: TaskCategory
    description: str
    created_at: str  # ISO UTC string


@dataclass
class TaskRecord:
    task: asyncio.Task
    info: TaskInfo
    cancelled: bool = False
    finished_with_error: Optional[BaseException] = None
    finished_at: Optional[str] = None


class TaskRegistry:
    """
    Registry of tracked tasks.

    One process-wide instance via TaskRegistry.instance(); tests build
    their own with TaskRegistry() or call reset().
    """

    _instance: Optional["TaskRegistry"] = None

    def __init__(self) -> None:
        self._records: Dict[int, TaskRecord] = {}
        self._next_id: int = 1

    @classmethod
    def instance(cls) -> "TaskRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    def register(self, task: asyncio.Task, category: TaskCategory, description: str) -> int:
        task_id = self._next_id
        self._next_id += 1

        info = TaskInfo(
            id=task_id,
            category=category,
            description=description,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._records[task_id] = TaskRecord(task=task, info=info)

        log.debug(f"[Task {task_id}] Registered ({category.name}) - {description}")

        task.add_done_callback(self._on_task_done)
        return task_id

    def _on_task_done(self, task: asyncio.Task) -> None:
        record = self.record_for(task)
        if record is None:
            return

        record.finished_at = datetime.now(timezone.utc).isoformat()

        if task.cancelled():
            record.cancelled = True
            log.debug(f"[Task {record.info.id}] Cancelled")
            return

        exc = task.exception()
        if exc:
            record.finished_with_error = exc
            log.error(
                f"[Task {record.info.id}] FAILED: {record.info.description}",
                error=f"{type(exc).__name__}: {exc}",
            )
        else:
            log.debug(f"[Task {record.info.id}] Completed")

    def record_for(self, task: asyncio.Task) -> Optional[TaskRecord]:
        for record in self._records.values():
            if record.task is task:
                return record
        return None

    # -----------------------------
    # Queries
    # -----------------------------

    def list_all(self) -> List[TaskRecord]:
        return list(self._records.values())

    def active(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if not r.task.done()]

    def failed(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.finished_with_error is not None]

    def cancelled(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.cancelled]

    def summary(self) -> str:
        return (
            f"Tasks: total={len(self._records)}, running={len(self.active())}, "
            f"failed={len(self.failed())}, cancelled={len(self.cancelled())}"
        )

    def get_tasks_for_shutdown(self, exclude: Optional[List[asyncio.Task]] = None) -> List[asyncio.Task]:
        exclude = exclude or []
        return [r.task for r in self.active() if r.task not in exclude]


def create_tracked_task(
    coro: Coroutine[Any, Any, Any],
    *,
    category: TaskCategory,
    description: str,
    registry: Optional[TaskRegistry] = None,
) -> asyncio.Task:
    """Create a task on the running loop and register it"""
    task = asyncio.get_running_loop().create_task(coro, name=description)
    (registry or TaskRegistry.instance()).register(task, category, description)
    return task
