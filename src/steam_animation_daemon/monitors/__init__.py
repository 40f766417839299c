"""
Monitors - observe the host and publish lifecycle events
"""

from .lifecycle_detector import LifecycleDetector, DetectorState, SUSPEND_MARKERS, RESUME_MARKERS
from .process_monitor import ProcessMonitor
from .journal_monitor import JournalMonitor, JOURNAL_COMMAND

__all__ = [
    'LifecycleDetector',
    'DetectorState',
    'SUSPEND_MARKERS',
    'RESUME_MARKERS',
    'ProcessMonitor',
    'JournalMonitor',
    'JOURNAL_COMMAND',
]
