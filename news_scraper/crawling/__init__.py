"""Crawl adaptation and per-URL crawl pipeline."""

from .adaptation import CrawlAdaptationController
from .article_crawler import ArticleCrawler, CrawlReport
from .fetchers import BrowserPageFetcher, HttpPageFetcher, PageFetcher
from .session_manager import SessionManager

__all__ = [
    'CrawlAdaptationController',
    'ArticleCrawler',
    'CrawlReport',
    'PageFetcher',
    'HttpPageFetcher',
    'BrowserPageFetcher',
    'SessionManager',
]
