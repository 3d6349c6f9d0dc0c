"""Data records shared by extraction and crawling."""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ImageSourceType(str, Enum):
    """Where an image candidate was found on the page."""
    META_OG = "meta-og"
    META_TWITTER = "meta-twitter"
    META_SCHEMA = "meta-schema"
    CONTENT = "content"
    PICTURE = "picture"


@dataclass(frozen=True)
class ImageCandidate:
    """A candidate article image. Identity is the absolute URL."""
    url: str
    source_type: ImageSourceType
    alt_text: str = ""
    caption: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            'url': self.url,
            'type': self.source_type.value,
            'alt': self.alt_text,
            'caption': self.caption,
        }


@dataclass(frozen=True)
class ExtractionCandidate:
    """Result of one extraction strategy over one page."""
    title: str = ""
    text: str = ""
    author: Optional[str] = None
    published_at: Optional[str] = None
    description: Optional[str] = None
    images: Tuple[ImageCandidate, ...] = ()
    language: str = "unknown"
    method: str = "none"
    success: bool = False
    score: int = 0

    @classmethod
    def empty(cls, method: str = "none") -> "ExtractionCandidate":
        """Zero-value candidate used when nothing could be extracted."""
        return cls(method=method)


@dataclass(frozen=True)
class DomainPolicy:
    """Learned crawl behaviour for one domain."""
    domain: str
    requires_enhanced_rendering: bool = False
    last_updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class CrawlRequest:
    """A link to crawl plus the metadata the feed supplied for it."""
    link: str
    query: str = ""
    source: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    published_at: Optional[str] = None


@dataclass(frozen=True)
class FetchedPage:
    """HTML returned by the fetch layer."""
    url: str
    html: str
    status: int = 200
    rendered: bool = False


@dataclass(frozen=True)
class ConsentBypass:
    """Cookies and headers to replay on the next fetch of a consent-walled URL."""
    strategy_index: int
    cookies: Tuple[Dict[str, str], ...] = ()
    headers: Dict[str, str] = field(default_factory=dict)


class CrawlAction(str, Enum):
    """What the fetch layer should do with a page."""
    PROCEED = "proceed"
    RETRY_WITH_CONSENT_BYPASS = "retry_with_consent_bypass"
    RETRY_WITH_ENHANCED_RENDERING = "retry_with_enhanced_rendering"


@dataclass(frozen=True)
class CrawlDecision:
    """Controller verdict for a fetched page."""
    action: CrawlAction
    reason: str = ""
    bypass: Optional[ConsentBypass] = None

    @property
    def should_proceed(self) -> bool:
        return self.action == CrawlAction.PROCEED


@dataclass(frozen=True)
class ArticleRecord:
    """Final structured output for one crawled article."""
    url: str
    original_link: str
    query: str
    source: str
    title: str
    text: str
    author: Optional[str]
    published_at: Optional[str]
    description: Optional[str]
    images: Tuple[ImageCandidate, ...]
    language: str
    method: str
    score: int
    extraction_success: bool
    scraped_at: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['images'] = [image.to_dict() for image in self.images]
        return data


@dataclass(frozen=True)
class FailureRecord:
    """Terminal failure for one crawled URL."""
    url: str
    reason: str
    retry_count: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
