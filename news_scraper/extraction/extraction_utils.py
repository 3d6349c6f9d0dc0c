"""Utility functions for content extraction."""

import unicodedata
from typing import Optional
from urllib.parse import urljoin, urldefrag, urlparse

from bs4 import BeautifulSoup

from .extraction_constants import MIN_CONTENT_LENGTH


class ExtractionUtils:
    """Utility functions shared by the extraction components."""

    def __init__(self, min_content_length: int = MIN_CONTENT_LENGTH):
        self.min_content_length = min_content_length

    def extract_domain(self, url: str) -> str:
        """Extract the lower-cased host from a URL."""
        try:
            return (urlparse(url).hostname or '').lower()
        except ValueError:
            return ''

    def clean_url(self, url: str) -> str:
        """Clean URL from invisible and problematic characters."""
        problematic_chars = [
            '\u200B',  # Zero Width Space
            '\u200C',  # Zero Width Non-Joiner
            '\u200D',  # Zero Width Joiner
            '\u2060',  # Word Joiner
            '\uFEFF',  # BOM
        ]

        cleaned_url = url
        for char in problematic_chars:
            cleaned_url = cleaned_url.replace(char, '')

        cleaned_url = unicodedata.normalize('NFKC', cleaned_url)
        cleaned_url = ''.join(char for char in cleaned_url if not unicodedata.category(char).startswith('C'))

        return cleaned_url.strip()

    def absolute_url(self, src: Optional[str], base_url: Optional[str]) -> Optional[str]:
        """
        Resolve a possibly relative URL against the page URL.

        Returns None for data URIs, non-http(s) results, and relative URLs
        when there is no base to resolve against. Fragments are dropped.
        """
        if not src:
            return None
        src = self.clean_url(src)
        if not src or src.startswith('data:'):
            return None

        if src.startswith('//'):
            scheme = urlparse(base_url).scheme if base_url else ''
            src = f"{scheme or 'https'}:{src}"

        try:
            if not src.startswith(('http://', 'https://')):
                if not base_url:
                    return None
                src = urljoin(base_url, src)
            url, _ = urldefrag(src)
            parsed = urlparse(url)
        except ValueError:
            return None

        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            return None
        return url

    def has_enough_content(self, text: Optional[str]) -> bool:
        """Text must be strictly longer than the minimum content length."""
        return bool(text) and len(text) > self.min_content_length

    def parse(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html or '', 'html.parser')

    def element_text(self, element) -> str:
        """Visible text of an element, one block per line."""
        if element is None:
            return ''
        return element.get_text(separator='\n', strip=True)
