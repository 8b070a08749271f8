"""Logger configuration for the breathing coach.

The console sink stays terse so it does not drown out the session
instructions printed by the CLI. The optional file sink writes one JSON
object per line with every bound field, so a session can be replayed from
its `pattern_id`, `cycle` and `breath_count` records.
"""

import sys
from pathlib import Path

from loguru import logger

from breathwork.config.settings import Settings, settings

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
DEBUG_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | {extra}"
)


def setup_logger(app_settings: Settings = settings, *, debug: bool = False) -> Path | None:
    """Install the console sink and, when configured, the JSON file sink.

    Args:
        app_settings: Source of log_level, log_file, log_rotation and log_retention
        debug: Force DEBUG level and show module, line and bound fields

    Returns:
        Path of the log file, or None when only the console is used
    """
    level = "DEBUG" if debug else app_settings.log_level
    logger.remove()
    logger.add(
        sys.stderr,
        format=DEBUG_CONSOLE_FORMAT if debug else CONSOLE_FORMAT,
        level=level,
        colorize=True,
    )

    if not app_settings.log_file:
        logger.bind(level=level).debug("Console logging configured")
        return None

    log_path = Path(app_settings.log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path,
        level=level,
        serialize=True,
        rotation=app_settings.log_rotation,
        retention=app_settings.log_retention,
        diagnose=False,
    )
    logger.bind(level=level, log_file=str(log_path)).debug("File logging configured")
    return log_path
