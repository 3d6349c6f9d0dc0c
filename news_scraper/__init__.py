"""News article scraping: content extraction and crawl adaptation."""

__version__ = "1.0.0"
