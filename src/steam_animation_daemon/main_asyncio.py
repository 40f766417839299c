"""
main_asyncio.py - entry point for steam-animation-daemon
--------------------------------------------------------

Responsible for:
- loading configuration and the animation catalog
- wiring services (ServiceContainer)
- starting the process poller, the supervised journal tail and the dispatch loop
- graceful shutdown on SIGINT / SIGTERM, config reload on SIGHUP
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

# Output may go to journald with a non-UTF-8 locale
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore

from steam_animation_daemon import __version__
from steam_animation_daemon.daemon import AnimationDaemon
from steam_animation_daemon.errors import ConfigError
from steam_animation_daemon.lifecycle import (
    ShutdownCoordinator,
    TaskCategory,
    create_tracked_task,
    supervise,
)
from steam_animation_daemon.lifecycle.handlers import AnimationCleanupHandler, TaskCancellationHandler
from steam_animation_daemon.managers import ConfigManager, DEFAULT_CONFIG_PATH
from steam_animation_daemon.models.enums import LogLevel
from steam_animation_daemon.monitors import JournalMonitor, ProcessMonitor
from steam_animation_daemon.services import ServiceContainer
from steam_animation_daemon.services.middleware import log_middleware
from steam_animation_daemon.utils.logger import configure_logger, get_logger, LogCategory, parse_log_level

log = get_logger().for_category(LogCategory.SYSTEM)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="steam-animation-daemon",
        description="Swap Steam boot / suspend animations on lifecycle events",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> None:
    """Main async entry point (dependency injection and event loop startup)."""

    configure_logger(
        LogLevel.DEBUG if args.verbose else LogLevel.INFO,
        use_colors=sys.stdout.isatty(),
    )

    log.info(f"Starting Steam Animation Daemon v{__version__}")

    # ========================================================================
    # 1. CONFIGURATION
    # ========================================================================

    config_manager = ConfigManager(args.config)
    config = config_manager.load()

    if not args.verbose:
        level = LogLevel.DEBUG if config.enable_debug else parse_log_level(config.log_level)
        configure_logger(level, use_colors=sys.stdout.isatty())

    # ========================================================================
    # 2. SERVICES
    # ========================================================================

    services = ServiceContainer.build(config_manager, config)
    services.event_bus.add_middleware(log_middleware)

    daemon = AnimationDaemon(services)

    # ========================================================================
    # 3. TASKS
    # ========================================================================

    process_monitor = ProcessMonitor(
        services.detector,
        match=config.process_match,
        interval=config.process_check_interval,
    )
    journal_monitor = JournalMonitor(services.detector)

    dispatch_task = create_tracked_task(
        daemon.run(),
        category=TaskCategory.DISPATCH,
        description="Dispatch loop",
    )
    poller_task = create_tracked_task(
        process_monitor.run(),
        category=TaskCategory.MONITOR,
        description="Process poller",
    )
    journal_task = create_tracked_task(
        supervise(journal_monitor.run, "Journal monitor", config.log_tail_restart_delay),
        category=TaskCategory.MONITOR,
        description="Journal monitor",
    )

    # ========================================================================
    # 4. SHUTDOWN COORDINATOR
    # ========================================================================

    coordinator = ShutdownCoordinator()
    coordinator.register(TaskCancellationHandler([poller_task, journal_task, dispatch_task]))
    coordinator.register(AnimationCleanupHandler(services.animation_service))

    coordinator.setup_signal_handlers(asyncio.get_running_loop(), on_reload=daemon.request_reload)

    log.info("Daemon initialized. Waiting for exit signal...")

    await coordinator.wait_for_shutdown()
    await coordinator.shutdown_all()

    services.event_bus.close()
    log.info("Steam Animation Daemon shut down cleanly")


def run(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(main(args))
    except ConfigError as e:
        log.error(f"Startup failed: {e.message}", **e.details)
        sys.exit(1)
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")


if __name__ == "__main__":
    run()
