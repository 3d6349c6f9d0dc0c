"""Utility modules for news_scraper."""

from .logging_config import setup_logging, get_logger, log_operation, LoggingAdapter

__all__ = [
    'setup_logging',
    'get_logger',
    'log_operation',
    'LoggingAdapter',
]
