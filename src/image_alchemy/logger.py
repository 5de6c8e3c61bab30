"""
Unified logging for image_alchemy.

Uses loguru for one consistent logging interface, with optional rotating
file output. Nothing is configured at import time; the embedding service
calls ``setup_logging`` (or ``configure_logging`` to read the level and
file from the configuration) once at startup.
"""
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from image_alchemy.config import ConfigManager, ServiceConfig


CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the global loguru logger.

    Args:
        level: Minimum level for the console sink
        log_file: Path of the rotating log file; no file sink when None
    """
    logger.remove()  # drop the default handler

    # Only when there is a stderr (not the case for some frozen services)
    if sys.stderr is not None:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=level,
            colorize=True
        )

    if log_file:
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="1 day",
            retention="7 days",
            compression="zip",
            encoding="utf-8"
        )


class LoguruHandler:
    """
    Thin wrapper around loguru that tags every message with a request id,
    so interleaved requests can be told apart in the log.
    """

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id

    def _format_message(self, message: str) -> str:
        if self.request_id:
            return f"[{self.request_id}] {message}"
        return message

    def _output(self, message: str, level: str = "INFO"):
        # depth=2 reports the caller of info()/warning() rather than this wrapper
        logger.opt(depth=2).log(level, self._format_message(message))

    def log(self, message: str, level: str = "INFO"):
        self._output(message, level.upper())

    def info(self, message: str):
        self._output(message, "INFO")

    def error(self, message: str):
        self._output(message, "ERROR")

    def success(self, message: str):
        self._output(message, "SUCCESS")

    def warning(self, message: str):
        self._output(message, "WARNING")

    def debug(self, message: str):
        self._output(message, "DEBUG")


def create_logger(request_id: Optional[str] = None) -> LoguruHandler:
    """
    Factory for request-scoped log handlers.

    Args:
        request_id: Identifier prepended to every message

    Returns:
        LoguruHandler instance
    """
    return LoguruHandler(request_id)



def configure_logging(config_path: Optional[Union[str, Path]] = None) -> ServiceConfig:
    """
    Load the service configuration and set up logging from its
    ``log_level`` and ``log_file``.

    Args:
        config_path: Configuration file; the default location when None

    Returns:
        The loaded ServiceConfig, to hand to ``ImageProcessor``
    """
    manager = ConfigManager(config_path) if config_path is not None else ConfigManager()
    config = manager.load()
    setup_logging(config.log_level, config.log_file)
    return config
