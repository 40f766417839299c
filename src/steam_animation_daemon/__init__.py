"""
Steam Animation Daemon

Watches Steam and the system sleep units, and bind-mounts transcoded boot /
suspend animations over Steam's UI override movies.
"""

__version__ = "0.1.0"
