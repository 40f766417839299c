from .animation_cleanup_handler import AnimationCleanupHandler
from .task_cancellation_handler import TaskCancellationHandler

__all__ = [
    "AnimationCleanupHandler",
    "TaskCancellationHandler",
]
