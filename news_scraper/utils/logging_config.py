"""Logging setup for crawl runs."""

import logging
import sys
from typing import Optional

from ..config import get_settings

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
FILE_LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers kept at WARNING
QUIET_LOGGERS = ('asyncio', 'aiohttp', 'readability', 'playwright', 'chardet')

STATUS_LEVELS = {
    'started': logging.INFO,
    'completed': logging.INFO,
    'failed': logging.ERROR,
}


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        plain = record.levelname
        color = self.LEVEL_COLORS.get(plain)
        if color:
            record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def _console_handler(use_colors: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    formatter_cls = ColoredFormatter if use_colors and sys.stdout.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(path: str) -> logging.Handler:
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setFormatter(logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None,
                  use_colors: bool = True) -> None:
    """
    Configure the root logger for a crawl run.

    Args:
        level: Level name; defaults to the LOG_LEVEL setting
        log_file: Extra file destination; defaults to the LOG_FILE setting
        use_colors: Color level names when stdout is a terminal
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.addHandler(_console_handler(use_colors))
    if log_file:
        root.addHandler(_file_handler(log_file))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LoggingAdapter(logging.LoggerAdapter):
    """Stamps a `component` attribute on every record."""

    def process(self, msg, kwargs):
        kwargs['extra'] = {**kwargs.get('extra', {}), **self.extra}
        return msg, kwargs


def get_logger(name: str, component: str = 'CRAWL') -> LoggingAdapter:
    return LoggingAdapter(logging.getLogger(name), {'component': component})


def log_operation(logger, operation: str, status: str, **context) -> None:
    """
    Log `operation | status | key=value ...` on one line.

    started/completed go to INFO, failed to ERROR, anything else to DEBUG.
    """
    parts = [operation, status] + [f"{key}={value}" for key, value in context.items()]
    logger.log(STATUS_LEVELS.get(status, logging.DEBUG), " | ".join(parts))
