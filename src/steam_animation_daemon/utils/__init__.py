"""
Utility functions for the animation daemon
"""

from .logger import get_logger, configure_logger, parse_log_level
from .serialization import Serializer

__all__ = [
    'get_logger',
    'configure_logger',
    'parse_log_level',
    'Serializer',
]
