"""
Lifecycle subsystem
-------------------

Graceful shutdown, task tracking and restart supervision:
    from steam_animation_daemon.lifecycle import ShutdownCoordinator, create_tracked_task
    from steam_animation_daemon.lifecycle.handlers import AnimationCleanupHandler
"""

from .shutdown_coordinator import ShutdownCoordinator, CRITICAL_CATEGORIES
from .task_registry import TaskRegistry, TaskCategory, TaskInfo, create_tracked_task
from .shutdown_protocol import IShutdownHandler
from .supervisor import supervise
from . import handlers

__all__ = [
    "ShutdownCoordinator",
    "CRITICAL_CATEGORIES",
    "TaskRegistry",
    "TaskCategory",
    "TaskInfo",
    "create_tracked_task",
    "IShutdownHandler",
    "supervise",
    "handlers",
]
