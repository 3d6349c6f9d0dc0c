"""Custom exceptions for news_scraper."""


class NewsScraperError(Exception):
    """Base exception for news_scraper."""
    pass


class ConfigurationError(NewsScraperError):
    """Configuration related errors."""
    pass


class FetchError(NewsScraperError):
    """Page or image fetching errors."""

    def __init__(self, message: str, status_code: int = None, url: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RenderingUnavailableError(FetchError):
    """A page needs enhanced rendering but no renderer is configured."""
    pass


class ContentExtractionError(NewsScraperError):
    """Content extraction errors."""
    pass


class CrawlTimeoutError(NewsScraperError):
    """A URL exceeded its processing budget."""
    pass
