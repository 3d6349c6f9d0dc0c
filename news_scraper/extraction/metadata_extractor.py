"""Title, author, description and language lookups."""

import json
import re
from typing import Optional

from bs4 import BeautifulSoup

from .extraction_constants import (
    AUTHOR_SELECTORS,
    MAX_AUTHOR_LENGTH,
    MAX_TITLE_LENGTH,
    TITLE_SELECTORS,
)
from .extraction_utils import ExtractionUtils
from .text_sanitizer import TextSanitizer

BYLINE_PREFIX = re.compile(r'^\s*by\s+', re.IGNORECASE)


class MetadataExtractor:
    """Extract article metadata from HTML."""

    def __init__(self, utils: ExtractionUtils):
        self.utils = utils

    def _meta_content(self, soup: BeautifulSoup, *keys) -> Optional[str]:
        """First non-empty content of <meta property=...> or <meta name=...>."""
        for key in keys:
            for attr in ('property', 'name'):
                meta = soup.find('meta', attrs={attr: key})
                if meta and meta.get('content'):
                    value = TextSanitizer.normalize_whitespace(meta['content'])
                    if value:
                        return value
        return None

    def extract_title(self, soup: BeautifulSoup) -> str:
        """Headline from heading selectors, then social meta tags."""
        for selector in TITLE_SELECTORS:
            for element in soup.select(selector):
                text = TextSanitizer.normalize_whitespace(element.get_text(' ', strip=True))
                if text and len(text) < MAX_TITLE_LENGTH:
                    return text

        return self._meta_content(soup, 'og:title', 'twitter:title') or ''

    def extract_meta_title(self, soup: BeautifulSoup) -> str:
        """Title from social meta tags, then the first <h1>, then <title>."""
        title = self._meta_content(soup, 'og:title', 'twitter:title')
        if title:
            return title

        h1 = soup.find('h1')
        if h1:
            text = TextSanitizer.normalize_whitespace(h1.get_text(' ', strip=True))
            if text and len(text) < MAX_TITLE_LENGTH:
                return text

        if soup.title and soup.title.string:
            return TextSanitizer.normalize_whitespace(soup.title.string)
        return ''

    def extract_author(self, soup: BeautifulSoup) -> Optional[str]:
        """Extract author information from bylines, meta tags, or JSON-LD."""
        for selector in AUTHOR_SELECTORS:
            for element in soup.select(selector):
                author = BYLINE_PREFIX.sub('', TextSanitizer.normalize_whitespace(element.get_text(' ', strip=True)))
                if author and len(author) < MAX_AUTHOR_LENGTH:
                    return author

        author = self._meta_content(soup, 'author', 'article:author')
        if author:
            return author

        return self._author_from_json_ld(soup)

    def _author_from_json_ld(self, soup: BeautifulSoup) -> Optional[str]:
        for script in soup.find_all('script', type='application/ld+json'):
            try:
                if not script.string:
                    continue
                data = json.loads(script.string)
            except (ValueError, TypeError):
                continue

            items = data if isinstance(data, list) else [data]
            for item in items:
                if not isinstance(item, dict):
                    continue
                author = item.get('author')
                if isinstance(author, list):
                    author = author[0] if author else None
                if isinstance(author, dict):
                    author = author.get('name')
                if isinstance(author, str) and author.strip():
                    return author.strip()
        return None

    def extract_description(self, soup: BeautifulSoup) -> Optional[str]:
        return self._meta_content(soup, 'description', 'og:description', 'twitter:description')

    def extract_language(self, soup: BeautifulSoup) -> str:
        html = soup.find('html')
        if html and html.get('lang'):
            return html['lang'].strip() or 'unknown'
        return 'unknown'
