"""Per-URL crawl pipeline with bounded concurrency and a rendering second pass."""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from ..config import Settings, get_settings
from ..core.domain_policy import domain_key
from ..core.exceptions import ContentExtractionError, CrawlTimeoutError, RenderingUnavailableError
from ..core.failure_log import FailureLog, FailureReason
from ..extraction import ContentExtractor
from ..models import (
    ArticleRecord,
    CrawlAction,
    CrawlRequest,
    DomainPolicy,
    ExtractionCandidate,
    FailureRecord,
    ImageCandidate,
    utc_now_iso,
)
from ..utils.logging_config import get_logger, log_operation
from .adaptation import CrawlAdaptationController
from .fetchers import PageFetcher

logger = get_logger(__name__, component='CRAWL')

RecordSink = Callable[[ArticleRecord], Awaitable[None]]


@dataclass
class CrawlOutcome:
    """What happened to one request in one pass. At most one of record/failure is set."""
    request: CrawlRequest
    url: str
    record: Optional[ArticleRecord] = None
    failure: Optional[FailureRecord] = None
    needs_rendering: bool = False
    retry_count: int = 0


@dataclass
class CrawlReport:
    records: List[ArticleRecord] = field(default_factory=list)
    failures: List[FailureRecord] = field(default_factory=list)
    domain_policies: Dict[str, DomainPolicy] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        total = len(self.records) + len(self.failures)
        return len(self.records) / total if total else 0.0


class ArticleCrawler:
    """
    Crawls article links: resolve, fetch, adapt, extract, validate images, emit.

    Every request ends as exactly one ArticleRecord or one FailureRecord.
    Pages that need script execution are collected during the first pass and
    re-dispatched through `renderer` afterwards.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        renderer: Optional[PageFetcher] = None,
        controller: Optional[CrawlAdaptationController] = None,
        extractor: Optional[ContentExtractor] = None,
        failure_log: Optional[FailureLog] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher
        self.renderer = renderer
        self.controller = controller or CrawlAdaptationController(
            image_probe=getattr(fetcher, 'client', None), settings=self.settings
        )
        self.extractor = extractor or ContentExtractor(min_content_length=self.settings.min_content_length)
        self.failure_log = failure_log if failure_log is not None else FailureLog()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self.fetcher.close()
        if self.renderer is not None:
            await self.renderer.close()

    # ---------------------------------------------------------------- run

    async def crawl_articles(self, requests: Iterable[CrawlRequest],
                             sink: Optional[RecordSink] = None) -> CrawlReport:
        """Crawl every request; records go to `sink` as soon as they are built."""
        requests = list(requests)
        log_operation(logger, 'crawl_articles', 'started', urls=len(requests),
                      concurrency=self.settings.max_concurrency)

        semaphore = asyncio.Semaphore(self.settings.max_concurrency)
        records: List[ArticleRecord] = []

        async def run(request: CrawlRequest, fetcher: PageFetcher, retry_count: int) -> CrawlOutcome:
            async with semaphore:
                outcome = await self._crawl_one(request, fetcher, retry_count)
            if outcome.record is not None:
                records.append(outcome.record)
                await self._emit(outcome.record, sink)
            return outcome

        first_pass = await asyncio.gather(*[run(r, self.fetcher, 0) for r in requests])
        escalated = [outcome for outcome in first_pass if outcome.needs_rendering]

        if escalated and self.renderer is None:
            for outcome in escalated:
                self.failure_log.record(outcome.url, FailureReason.RENDERING_UNAVAILABLE, outcome.retry_count)
        elif escalated:
            logger.info(f"🎭 Re-crawling {len(escalated)} URLs with browser rendering")
            await asyncio.gather(*[
                run(outcome.request, self.renderer, outcome.retry_count + 1) for outcome in escalated
            ])

        if self.settings.failure_log_path:
            await self.failure_log.dump(self.settings.failure_log_path)

        report = CrawlReport(
            records=records,
            failures=self.failure_log.snapshot(),
            domain_policies=self.controller.policy_store.snapshot(),
        )
        log_operation(logger, 'crawl_articles', 'completed', records=len(report.records),
                      failures=len(report.failures), success_rate=f"{report.success_rate:.0%}")
        return report

    async def crawl_article(self, request: CrawlRequest) -> ArticleRecord:
        """
        Crawl a single link, raising on failure instead of reporting it.

        The failure is still appended to the failure log.

        Raises:
            CrawlTimeoutError: the URL exceeded its time budget
            RenderingUnavailableError: the page needs rendering and no renderer is set
            ContentExtractionError: any other terminal failure
        """
        outcome = await self._crawl_one(request, self.fetcher, 0)

        if outcome.needs_rendering:
            if self.renderer is None:
                self.failure_log.record(outcome.url, FailureReason.RENDERING_UNAVAILABLE, outcome.retry_count)
                raise RenderingUnavailableError(FailureReason.RENDERING_UNAVAILABLE.value, url=outcome.url)
            outcome = await self._crawl_one(request, self.renderer, outcome.retry_count + 1)

        if outcome.record is not None:
            return outcome.record

        reason = outcome.failure.reason if outcome.failure else FailureReason.UNKNOWN_ERROR.value
        if reason == FailureReason.TIMEOUT.value:
            raise CrawlTimeoutError(f"Timed out after {self.settings.url_timeout_seconds}s: {request.link}")
        raise ContentExtractionError(f"{reason}: {outcome.url}")

    async def _crawl_one(self, request: CrawlRequest, fetcher: PageFetcher, retry_count: int) -> CrawlOutcome:
        try:
            return await asyncio.wait_for(
                self.process(request, fetcher, retry_count),
                timeout=self.settings.url_timeout_seconds
            )
        except asyncio.TimeoutError:
            failure = self.failure_log.record(request.link, FailureReason.TIMEOUT, retry_count)
            return CrawlOutcome(request=request, url=request.link, failure=failure, retry_count=retry_count)

    async def _emit(self, record: ArticleRecord, sink: Optional[RecordSink]) -> None:
        if sink is None:
            return
        try:
            await sink(record)
        except Exception as e:
            logger.error(f"Sink rejected record for {record.url[:80]}: {e}")

    # ------------------------------------------------------------ per URL

    async def process(self, request: CrawlRequest, fetcher: PageFetcher, retry_count: int = 0) -> CrawlOutcome:
        """
        Run one request through one fetcher.

        Returns an outcome flagged `needs_rendering` when a lightweight fetcher
        hit a page that only renders with script; nothing is recorded then.
        """
        url = request.link
        attempts = retry_count
        try:
            url = self.controller.resolver.resolve(request.link)

            if not fetcher.rendered and self.controller.known_to_need_rendering(url):
                logger.debug(f"Dispatching {url[:80]} straight to rendering")
                return CrawlOutcome(request=request, url=url, needs_rendering=True, retry_count=attempts)

            consent_attempts = 0
            while True:
                page = await fetcher.fetch(url)
                decision = self.controller.assess(page, consent_attempts)

                if decision.action == CrawlAction.RETRY_WITH_CONSENT_BYPASS:
                    logger.info(f"🍪 {decision.reason} on {url[:80]}, retrying with bypass {decision.bypass.strategy_index}")
                    await fetcher.apply_consent_bypass(decision.bypass)
                    consent_attempts += 1
                    attempts += 1
                    continue

                if decision.action == CrawlAction.RETRY_WITH_ENHANCED_RENDERING:
                    return CrawlOutcome(request=request, url=url, needs_rendering=True, retry_count=attempts)
                break

            candidate = self.extractor.extract(page.html, page.url)
            images = await self._validated_images(candidate.images)
            record = self.build_record(request, page.url, candidate, images)
            return CrawlOutcome(request=request, url=url, record=record, retry_count=attempts)

        except Exception as e:
            failure = self.failure_log.record(url, str(e) or type(e).__name__, attempts)
            return CrawlOutcome(request=request, url=url, failure=failure, retry_count=attempts)

    async def _validated_images(self, images: Iterable[ImageCandidate]) -> List[ImageCandidate]:
        images = list(images)
        if not images:
            return []
        valid_urls = set(await self.controller.validate_images([image.url for image in images]))
        return [image for image in images if image.url in valid_urls]

    def build_record(self, request: CrawlRequest, final_url: str, candidate: ExtractionCandidate,
                     images: List[ImageCandidate]) -> ArticleRecord:
        """Merge the winning candidate with feed metadata; feed values fill gaps only."""
        return ArticleRecord(
            url=final_url,
            original_link=request.link,
            query=request.query,
            source=request.source or domain_key(final_url),
            title=candidate.title or request.title or 'No title',
            text=candidate.text,
            author=candidate.author,
            published_at=candidate.published_at or request.published_at,
            description=candidate.description or request.description,
            images=tuple(images),
            language=candidate.language,
            method=candidate.method,
            score=candidate.score,
            extraction_success=candidate.success,
            scraped_at=utc_now_iso(),
        )
