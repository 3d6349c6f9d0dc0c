"""Image candidate collection for articles."""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from ..models import ImageCandidate, ImageSourceType
from .extraction_constants import (
    DECORATIVE_IMAGE_MARKERS,
    IMAGE_EXTENSIONS,
    IMAGE_FALLBACK_SELECTORS,
    IMAGE_SOURCE_ATTRIBUTES,
    INVALID_IMAGE_PATTERNS,
    TRUSTED_IMAGE_HOSTS,
)
from .extraction_utils import ExtractionUtils
from .text_sanitizer import TextSanitizer

logger = logging.getLogger(__name__)

META_IMAGE_SOURCES = [
    (('og:image', 'og:image:url', 'og:image:secure_url'), ImageSourceType.META_OG),
    (('twitter:image', 'twitter:image:src'), ImageSourceType.META_TWITTER),
]


class ImageCollector:
    """
    Gather image candidates from meta tags and article markup.

    No network I/O: reachability checks belong to the crawl controller.
    """

    def __init__(self, utils: ExtractionUtils):
        self.utils = utils

    def collect(
        self,
        document: Union[str, BeautifulSoup],
        content_scope: Optional[Tag] = None,
        base_url: Optional[str] = None,
    ) -> List[ImageCandidate]:
        """
        Collect candidates in priority order, filtered and deduplicated by URL.

        Args:
            document: Page HTML or an already parsed soup
            content_scope: Element holding the article body, if known
            base_url: URL to resolve relative image paths against
        """
        soup = document if isinstance(document, BeautifulSoup) else self.utils.parse(document)
        base_url = base_url or self._document_base_url(soup)

        found: List[ImageCandidate] = []

        for keys, source_type in META_IMAGE_SOURCES:
            for key in keys:
                for attr in ('property', 'name'):
                    for meta in soup.find_all('meta', attrs={attr: key}):
                        self._add(found, meta.get('content'), source_type, base_url)

        for meta in soup.find_all('meta', attrs={'itemprop': 'image'}):
            self._add(found, meta.get('content'), ImageSourceType.META_SCHEMA, base_url)

        if content_scope is not None:
            for img in content_scope.find_all('img'):
                self._add_img(found, img, ImageSourceType.CONTENT, base_url)
        else:
            for selector in IMAGE_FALLBACK_SELECTORS:
                try:
                    images = soup.select(selector)
                except Exception:
                    continue
                for img in images:
                    self._add_img(found, img, ImageSourceType.CONTENT, base_url)

        for picture in soup.find_all('picture'):
            img = picture.find('img')
            if img is not None and self._image_source(img):
                self._add_img(found, img, ImageSourceType.PICTURE, base_url)
                continue
            source = picture.find('source', srcset=True)
            if source is not None:
                self._add(found, self._first_srcset_url(source['srcset']), ImageSourceType.PICTURE, base_url)

        images = self._deduplicate_and_filter(found)
        logger.debug(f"🖼️ Collected {len(images)} image candidates")
        return images

    def _document_base_url(self, soup: BeautifulSoup) -> Optional[str]:
        link = soup.find('link', rel='canonical')
        if link and link.get('href', '').startswith(('http://', 'https://')):
            return link['href']
        meta = soup.find('meta', attrs={'property': 'og:url'})
        if meta and meta.get('content', '').startswith(('http://', 'https://')):
            return meta['content']
        return None

    def _add(self, found: List[ImageCandidate], src: Optional[str], source_type: ImageSourceType,
             base_url: Optional[str], alt_text: str = "", caption: str = "") -> None:
        url = self.utils.absolute_url(src, base_url)
        if not url:
            return
        found.append(ImageCandidate(url=url, source_type=source_type, alt_text=alt_text, caption=caption))

    def _add_img(self, found: List[ImageCandidate], img: Tag, source_type: ImageSourceType,
                 base_url: Optional[str]) -> None:
        self._add(
            found,
            self._image_source(img),
            source_type,
            base_url,
            alt_text=TextSanitizer.normalize_whitespace(img.get('alt', '')),
            caption=self._caption_for(img),
        )

    def _image_source(self, img: Tag) -> Optional[str]:
        for attr in IMAGE_SOURCE_ATTRIBUTES:
            value = img.get(attr)
            if value and value.strip():
                return value.strip()
        if img.get('srcset'):
            return self._first_srcset_url(img['srcset'])
        return None

    @staticmethod
    def _first_srcset_url(srcset: str) -> Optional[str]:
        first = srcset.split(',')[0].strip()
        return first.split()[0] if first else None

    def _caption_for(self, img: Tag) -> str:
        figure = img.find_parent('figure')
        if figure is not None:
            figcaption = figure.find('figcaption')
            if figcaption is not None:
                return TextSanitizer.normalize_whitespace(figcaption.get_text(' ', strip=True))

        parent = img.parent
        if parent is not None:
            caption = parent.find(class_='caption')
            if caption is not None:
                return TextSanitizer.normalize_whitespace(caption.get_text(' ', strip=True))
        return ""

    def is_decorative(self, url: str) -> bool:
        lowered = url.lower()
        return any(marker in lowered for marker in DECORATIVE_IMAGE_MARKERS)

    def _deduplicate_and_filter(self, candidates: List[ImageCandidate]) -> List[ImageCandidate]:
        """Drop decorative images; merge duplicates keeping the first URL and source."""
        unique: Dict[str, ImageCandidate] = {}

        for candidate in candidates:
            if self.is_decorative(candidate.url):
                continue

            key = self._dedup_key(candidate.url)
            existing = unique.get(key)
            if existing is None:
                unique[key] = candidate
                continue

            unique[key] = replace(
                existing,
                alt_text=existing.alt_text or candidate.alt_text,
                caption=existing.caption or candidate.caption,
            )

        return list(unique.values())

    @staticmethod
    def _dedup_key(url: str) -> str:
        parsed = urlparse(url)
        return parsed._replace(scheme=parsed.scheme.lower(), netloc=parsed.netloc.lower()).geturl()


def matches_image_pattern(url: Optional[str]) -> bool:
    """Cheap validity check by URL shape, used when network validation is off."""
    if not url or not url.startswith(('http://', 'https://')):
        return False

    lowered = url.lower()
    if any(pattern in lowered for pattern in INVALID_IMAGE_PATTERNS):
        return False

    has_extension = any(ext in lowered for ext in IMAGE_EXTENSIONS)
    trusted_host = any(host in lowered for host in TRUSTED_IMAGE_HOSTS)
    return has_extension or trusted_host
