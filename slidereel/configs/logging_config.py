"""
Logging configuration for SlideReel (configs).

All SlideReel modules log through loguru. Libraries that still use the
standard ``logging`` module (httpx, Pillow, redis) are forwarded into the
same loguru sinks, so a render or a polling run produces one stream.
"""

import logging
import os
import sys

from loguru import logger

from slidereel.configs.config import config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)

# Held at WARNING unless the run itself is at DEBUG
NOISY_LIBRARIES = ("httpx", "httpcore", "PIL", "redis")


class StdlibForwarder(logging.Handler):
    """Re-emit standard library log records through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).log(
            level, f"[{record.name}] {record.getMessage()}"
        )


def _library_level(log_level: str) -> str:
    return "DEBUG" if log_level == "DEBUG" else "WARNING"


def setup_logging(
    log_level: str | None = None,
    enable_file_logging: bool = False,
    log_file: str | None = None,
    log_dir: str | None = None,
    component: str = "slidereel",
) -> str | None:
    """Configure loguru sinks for a process.

    Returns the log file path when file logging is enabled.
    """
    log_level = (log_level or config.log_level).upper()

    logger.remove()
    logger.add(sys.stderr, level=log_level, format=CONSOLE_FORMAT)

    log_path = None
    if enable_file_logging:
        log_dir = log_dir or config.log_dir
        os.makedirs(log_dir, exist_ok=True)
        log_path = os.path.join(log_dir, log_file or f"{component}.log")
        logger.add(
            log_path,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="10 MB",
            retention=5,
            backtrace=False,
            diagnose=False,
        )

    logging.basicConfig(handlers=[StdlibForwarder()], level=0, force=True)
    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(_library_level(log_level))

    logger.debug(f"Logging configured for {component} at {log_level}")
    return log_path
