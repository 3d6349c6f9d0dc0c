"""Publication date lookup and ISO 8601 normalization."""

import json
import re
from datetime import timezone
from typing import Iterator, Optional

from bs4 import BeautifulSoup
import dateutil.parser

from .extraction_constants import DATE_SELECTORS
from .extraction_utils import ExtractionUtils

DATE_META_TAGS = [
    ('property', 'article:published_time'),
    ('name', 'publish-date'),
    ('name', 'pubdate'),
    ('name', 'publishdate'),
    ('name', 'date'),
    ('itemprop', 'datePublished'),
]

JSON_LD_ARTICLE_TYPES = {'Article', 'NewsArticle', 'BlogPosting', 'ReportageNewsArticle'}

# Shapes a string must contain before dateutil is asked to parse it
DATE_SHAPES = re.compile(
    r'\d{4}[-/]\d{2}[-/]\d{2}'
    r'|\d{1,2}/\d{1,2}/\d{4}'
    r'|[A-Za-z]+\.?\s+\d{1,2},?\s+\d{4}'
    r'|\d{1,2}\s+[A-Za-z]+\.?\s+\d{4}'
)


def _json_ld_articles(soup: BeautifulSoup) -> Iterator[dict]:
    """Yield JSON-LD objects typed as articles, unwrapping lists and @graph."""
    for script in soup.find_all('script', type='application/ld+json'):
        raw = script.string
        if not raw:
            continue
        try:
            payload = json.loads(raw)
        except ValueError:
            continue

        if isinstance(payload, dict) and '@graph' in payload:
            payload = payload['@graph']
        for node in payload if isinstance(payload, list) else [payload]:
            if not isinstance(node, dict):
                continue
            kind = node.get('@type')
            if isinstance(kind, list):
                kind = next(iter(kind), None)
            if kind in JSON_LD_ARTICLE_TYPES:
                yield node


class DateExtractor:

    def __init__(self, utils: ExtractionUtils):
        self.utils = utils

    def extract_publication_date(self, soup: BeautifulSoup) -> Optional[str]:
        """
        Find the publication date of an article.

        Visible date elements win over JSON-LD, which wins over meta tags.

        Returns:
            ISO 8601 date string, or None
        """
        for raw in self._candidates(soup):
            normalized = self.normalize_date(raw)
            if normalized:
                return normalized
        return None

    def _candidates(self, soup: BeautifulSoup) -> Iterator[Optional[str]]:
        for selector in DATE_SELECTORS:
            for element in soup.select(selector):
                yield element.get('datetime') or element.get('content') or element.get_text(strip=True)

        for article in _json_ld_articles(soup):
            yield article.get('datePublished')
            yield article.get('dateCreated')

        for attr, value in DATE_META_TAGS:
            meta = soup.find('meta', attrs={attr: value})
            if meta:
                yield meta.get('content')

    def normalize_date(self, date_str) -> Optional[str]:
        """Normalize a date string to ISO 8601 (UTC when the source has an offset)."""
        if not isinstance(date_str, str):
            return None
        date_str = date_str.strip()
        if len(date_str) < 8 or not DATE_SHAPES.search(date_str):
            return None
        try:
            parsed = dateutil.parser.parse(date_str)
        except (ValueError, OverflowError):
            return None
        if parsed.tzinfo is None:
            return parsed.isoformat()
        return parsed.astimezone(timezone.utc).isoformat()
