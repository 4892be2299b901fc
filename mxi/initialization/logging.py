"""
Logging setup.

Configures the loguru logger with a rotating file sink.
"""

import sys

from loguru import logger


def setup_logging(
    log_file: str = "logs/mxi.log",
    level: str = "INFO",
    component: str = "mxi",
) -> None:
    """
    Configure logger with file rotation.

    Args:
        log_file: Path of the rotating log file
        level: Minimum level for both sinks
        component: Process name written at startup
    """
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        log_file,
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    logger.info(f"Starting MXI {component}...")
