"""
Logging setup for PagePal.

Every module logs through a child of the ``pagepal`` logger. Console
output goes to stderr so stdout stays reserved for extracted text and
JSON; an optional rotating file receives the same records.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from pagepal.config.settings import LoggingSettings

ROOT_LOGGER_NAME = "pagepal"

_logging_configured = False


def _build_handlers(settings: LoggingSettings, level: int) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=settings.format, datefmt=settings.date_format)
    handlers: list[logging.Handler] = []

    if settings.log_to_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    if settings.file_path is not None:
        settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=str(settings.file_path),
            maxBytes=settings.max_file_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    settings: LoggingSettings | None = None,
    level: str | None = None,
) -> logging.Logger:
    """
    Configure the ``pagepal`` logger once per process.

    Later calls return the logger unchanged until ``reset_logging()``.

    Args:
        settings: Logging configuration (defaults when None)
        level: Level name overriding the configured one, e.g. "DEBUG"

    Returns:
        The application root logger
    """
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _logging_configured:
        return logger

    settings = settings or LoggingSettings()
    numeric_level = logging.getLevelName((level or settings.level).upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level or settings.level}")

    logger.handlers.clear()
    logger.setLevel(numeric_level)
    for handler in _build_handlers(settings, numeric_level):
        logger.addHandler(handler)
    logger.propagate = False

    _logging_configured = True
    return logger


def reset_logging() -> None:
    """Close and detach the handlers installed by ``setup_logging()``."""
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True

    _logging_configured = False


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Logger under the ``pagepal`` hierarchy.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Capture started")
    """
    if name is None or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class ContextAdapter(logging.LoggerAdapter):
    """
    Appends ``[key=value]`` context to every message.

    Example:
        >>> log = ContextAdapter(get_logger(__name__), {"action": "GET_PAGE_TEXT"})
        >>> log.warning("Request failed")  # "Request failed [action=GET_PAGE_TEXT]"
    """

    def process(self, msg, kwargs):
        if self.extra:
            context = " ".join(f"[{k}={v}]" for k, v in self.extra.items())
            msg = f"{msg} {context}"
        return msg, kwargs


def get_logger_with_context(name: str | None = None, **context: object) -> ContextAdapter:
    """Logger whose messages carry the given context."""
    return ContextAdapter(get_logger(name), context)
