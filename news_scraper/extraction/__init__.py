"""Content extraction components for news_scraper."""

from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag

from ..config import get_settings
from ..models import ExtractionCandidate, ImageCandidate
from .core_extractor import ExtractionEngine
from .date_extractor import DateExtractor
from .extraction_logger import ExtractionLogger, get_extraction_logger
from .extraction_strategies import (
    DensityStrategy,
    ExtractionStrategy,
    ReadabilityStrategy,
    SelectorStrategy,
    default_strategies,
)
from .extraction_utils import ExtractionUtils
from .image_collector import ImageCollector, matches_image_pattern
from .metadata_extractor import MetadataExtractor
from .quality_scorer import QualityScorer
from .text_sanitizer import TextSanitizer
from .url_resolver import DecodedUrl, UrlResolver


class ContentExtractor:
    """
    Main content extractor that wires the specialized components together.

    Everything here is synchronous and free of I/O; fetching and image
    validation live in the crawling package.
    """

    def __init__(self, min_content_length: Optional[int] = None,
                 extraction_logger: Optional[ExtractionLogger] = None):
        if min_content_length is None:
            min_content_length = get_settings().min_content_length

        self.utils = ExtractionUtils(min_content_length=min_content_length)
        self.sanitizer = TextSanitizer()
        self.metadata_extractor = MetadataExtractor(self.utils)
        self.date_extractor = DateExtractor(self.utils)
        self.image_collector = ImageCollector(self.utils)
        self.scorer = QualityScorer(min_content_length=min_content_length)
        self.strategies = default_strategies(
            self.utils, self.sanitizer, self.metadata_extractor, self.date_extractor, self.image_collector
        )
        self.engine = ExtractionEngine(
            self.utils, self.strategies, self.scorer,
            extraction_logger=extraction_logger or get_extraction_logger()
        )

    def extract(self, html: str, url: str) -> ExtractionCandidate:
        """Best candidate across all strategies (zero-value when none succeeds)."""
        return self.engine.extract(html, url)

    def collect_images(self, document: Union[str, BeautifulSoup], content_scope: Optional[Tag] = None,
                       base_url: Optional[str] = None) -> List[ImageCandidate]:
        return self.image_collector.collect(document, content_scope=content_scope, base_url=base_url)

    def clean_html(self, html: str) -> str:
        return self.sanitizer.clean_html(html)

    def clean_text(self, text: str) -> str:
        return self.sanitizer.clean_text(text)

    def score(self, candidate: ExtractionCandidate) -> int:
        return self.scorer.score(candidate)


__all__ = [
    'ContentExtractor',
    'ExtractionEngine',
    'ExtractionStrategy',
    'ReadabilityStrategy',
    'SelectorStrategy',
    'DensityStrategy',
    'ExtractionUtils',
    'TextSanitizer',
    'MetadataExtractor',
    'DateExtractor',
    'ImageCollector',
    'QualityScorer',
    'UrlResolver',
    'DecodedUrl',
    'matches_image_pattern',
]
