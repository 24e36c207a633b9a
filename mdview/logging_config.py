"""Logging configuration: loguru setup and standard logging interception."""

import inspect
import logging
import sys
from pathlib import Path
from types import FrameType

from loguru import logger


def _is_logging_frame(frame: FrameType) -> bool:
    filename = frame.f_code.co_filename
    return filename == logging.__file__ or ("importlib" in filename and "_bootstrap" in filename)


class InterceptHandler(logging.Handler):
    """Forward stdlib records (httpx, httpcore, asyncio) to loguru.

    The record keeps its stdlib logger name as `extra["stdlib_logger"]`, and loguru
    attributes the message to the frame that called the stdlib logger.
    """

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame is not None and (depth == 0 or _is_logging_frame(frame)):
            frame = frame.f_back
            depth += 1

        logger.bind(stdlib_logger=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Configure loguru with a stderr sink and an optional JSON file, intercept standard logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{message}",
            level=level,
            serialize=True,
            rotation="10 MB",
            retention=10,
            compression="gz",
        )

    # Intercept standard logging → loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
