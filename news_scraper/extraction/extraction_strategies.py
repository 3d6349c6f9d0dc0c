"""Independent strategies for extracting an article from page HTML."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
from readability.readability import Document

from ..models import ExtractionCandidate
from .date_extractor import DateExtractor
from .extraction_constants import (
    BROAD_CONTENT_SELECTORS,
    CONTENT_SELECTORS,
    DENSITY_CONTAINER_TAGS,
    MIN_DENSITY_BLOCK_LENGTH,
)
from .extraction_utils import ExtractionUtils
from .image_collector import ImageCollector
from .metadata_extractor import MetadataExtractor
from .text_sanitizer import TextSanitizer

logger = logging.getLogger(__name__)

READABILITY_NO_TITLE = '[no-title]'


@dataclass
class PreparedPage:
    """A page parsed once and shared by all strategies."""
    url: str
    raw_soup: BeautifulSoup
    clean_html: str
    clean_soup: BeautifulSoup


class ExtractionStrategy(ABC):
    """One way of turning HTML into an ExtractionCandidate."""

    method: str = "base"

    def __init__(self, utils: ExtractionUtils, sanitizer: TextSanitizer,
                 metadata_extractor: MetadataExtractor, date_extractor: DateExtractor,
                 image_collector: ImageCollector):
        self.utils = utils
        self.sanitizer = sanitizer
        self.metadata_extractor = metadata_extractor
        self.date_extractor = date_extractor
        self.image_collector = image_collector

    def prepare(self, html: str, page_url: str) -> PreparedPage:
        clean_html = self.sanitizer.clean_html(html)
        return PreparedPage(
            url=page_url,
            raw_soup=self.utils.parse(html),
            clean_html=clean_html,
            clean_soup=self.utils.parse(clean_html),
        )

    def extract(self, html: str, page_url: str) -> ExtractionCandidate:
        """Run this strategy alone over raw HTML."""
        return self.extract_from(self.prepare(html, page_url))

    @abstractmethod
    def extract_from(self, page: PreparedPage) -> ExtractionCandidate:
        """Run this strategy over an already prepared page."""
        pass

    def _build_candidate(self, page: PreparedPage, title: str, text: str,
                         success: bool, content_scope: Optional[Tag] = None,
                         description: Optional[str] = None) -> ExtractionCandidate:
        """Attach the shared metadata lookups to a strategy's title and body."""
        raw = page.raw_soup
        images = self.image_collector.collect(page.clean_soup, content_scope=content_scope, base_url=page.url)
        return ExtractionCandidate(
            title=title,
            text=text,
            author=self.metadata_extractor.extract_author(raw),
            published_at=self.date_extractor.extract_publication_date(raw),
            description=description or self.metadata_extractor.extract_description(raw),
            images=tuple(images),
            language=self.metadata_extractor.extract_language(raw),
            method=self.method,
            success=success,
        )


class ReadabilityStrategy(ExtractionStrategy):
    """Generic readability heuristic over the sanitized document."""

    method = "readability"

    def extract_from(self, page: PreparedPage) -> ExtractionCandidate:
        doc = Document(page.clean_html)
        summary_html = doc.summary(html_partial=True)
        summary_soup = BeautifulSoup(summary_html, 'html.parser')
        text = self.sanitizer.clean_text(self.utils.element_text(summary_soup))

        title = self.metadata_extractor.extract_meta_title(page.raw_soup)
        if not title:
            doc_title = doc.title()
            title = '' if doc_title == READABILITY_NO_TITLE else TextSanitizer.normalize_whitespace(doc_title)

        success = bool(title) and self.utils.has_enough_content(text)
        return self._build_candidate(page, title, text, success)


class SelectorStrategy(ExtractionStrategy):
    """Known article-body selectors used by common news templates."""

    method = "custom-selectors"

    def _first_match(self, soup: BeautifulSoup, selectors: List[str]) -> Optional[Tag]:
        for selector in selectors:
            try:
                element = soup.select_one(selector)
            except Exception:
                continue
            if element is not None and self.utils.element_text(element):
                return element
        return None

    def _longest_match(self, soup: BeautifulSoup, selectors: List[str],
                       current: Optional[Tag]) -> Optional[Tag]:
        best = current
        best_length = len(self.utils.element_text(current)) if current is not None else 0
        for selector in selectors:
            try:
                element = soup.select_one(selector)
            except Exception:
                continue
            if element is None:
                continue
            length = len(self.utils.element_text(element))
            if length > best_length:
                best, best_length = element, length
        return best

    def extract_from(self, page: PreparedPage) -> ExtractionCandidate:
        title = self.metadata_extractor.extract_title(page.raw_soup)

        element = self._first_match(page.clean_soup, CONTENT_SELECTORS)
        if not self.utils.has_enough_content(self.utils.element_text(element)):
            element = self._longest_match(page.clean_soup, BROAD_CONTENT_SELECTORS, element)

        text = self.sanitizer.clean_text(self.utils.element_text(element))
        success = bool(title) and self.utils.has_enough_content(text)
        return self._build_candidate(page, title, text, success, content_scope=element)


class DensityStrategy(ExtractionStrategy):
    """Container with the best text-to-markup ratio plus a paragraph bonus."""

    method = "text-density"

    def density_score(self, element: Tag) -> Optional[float]:
        text = element.get_text(strip=True)
        if len(text) < MIN_DENSITY_BLOCK_LENGTH:
            return None
        markup_length = len(str(element)) or 1
        paragraph_bonus = min(len(element.find_all('p')) * 0.1, 1.0)
        return len(text) / markup_length + paragraph_bonus

    def extract_from(self, page: PreparedPage) -> ExtractionCandidate:
        best_element = None
        best_score = 0.0
        for element in page.clean_soup.find_all(DENSITY_CONTAINER_TAGS):
            score = self.density_score(element)
            if score is not None and score > best_score:
                best_element, best_score = element, score

        if best_element is None:
            return ExtractionCandidate.empty(self.method)

        text = self.sanitizer.clean_text(self.utils.element_text(best_element))
        title = self.metadata_extractor.extract_title(page.raw_soup)
        success = self.utils.has_enough_content(text)
        return self._build_candidate(page, title, text, success, content_scope=best_element)


def default_strategies(utils: ExtractionUtils, sanitizer: TextSanitizer,
                       metadata_extractor: MetadataExtractor, date_extractor: DateExtractor,
                       image_collector: ImageCollector) -> List[ExtractionStrategy]:
    """Strategies in tie-break order."""
    args = (utils, sanitizer, metadata_extractor, date_extractor, image_collector)
    return [
        ReadabilityStrategy(*args),
        SelectorStrategy(*args),
        DensityStrategy(*args),
    ]
