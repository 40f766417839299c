"""
Logger: singleton identity, level filtering, detail rows.
"""

import pytest

from steam_animation_daemon.models.enums import LogCategory, LogLevel
from steam_animation_daemon.utils.logger import configure_logger, get_logger, parse_log_level


@pytest.fixture
def logger():
    log = get_logger()
    level, colors = log.min_level, log.use_colors
    configure_logger(LogLevel.INFO, use_colors=False)
    yield log
    configure_logger(level, use_colors=colors)


def test_configure_keeps_singleton(logger):
    bound = logger.for_category(LogCategory.CACHE)

    configure_logger(LogLevel.DEBUG, use_colors=False)

    assert get_logger() is logger
    assert bound._base is logger
    assert logger.min_level == LogLevel.DEBUG


def test_details_are_printed_below_message(logger, capsys):
    logger.for_category(LogCategory.MOUNT).info("Mounted animation", target="deck_startup.webm", slot="BOOT")

    lines = capsys.readouterr().out.splitlines()

    assert "MOUNT" in lines[0]
    assert "Mounted animation" in lines[0]
    assert lines[1].strip() == "├─ target: deck_startup.webm"
    assert lines[2].strip() == "└─ slot: BOOT"


def test_messages_below_min_level_are_dropped(logger, capsys):
    logger.for_category(LogCategory.CACHE).debug("Cache hit")

    assert capsys.readouterr().out == ""


def test_exc_info_appends_traceback(logger, capsys):
    try:
        raise RuntimeError("ffmpeg vanished")
    except RuntimeError:
        logger.for_category(LogCategory.TRANSCODE).error("Transcode failed", exc_info=True)

    assert "RuntimeError: ffmpeg vanished" in capsys.readouterr().out


@pytest.mark.parametrize("name,level", [
    ("debug", LogLevel.DEBUG),
    ("WARNING", LogLevel.WARN),
    (" error ", LogLevel.ERROR),
    ("chatty", LogLevel.INFO),
])
def test_parse_log_level(name, level):
    assert parse_log_level(name) == level
