"""Per-domain crawl adaptation: consent walls, enhanced rendering, image validation."""

import asyncio
import logging
from typing import Iterable, List, Optional

from ..config import Settings, get_settings
from ..core.domain_policy import DomainPolicyStore, domain_key
from ..extraction.image_collector import matches_image_pattern
from ..extraction.url_resolver import UrlResolver
from ..models import ConsentBypass, CrawlAction, CrawlDecision, FetchedPage
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


class CrawlAdaptationController:
    """
    Decides, per fetched page, whether to proceed or re-dispatch.

    Consent walls and script-only pages are reported as CrawlDecision values,
    never raised. Domains that once needed enhanced rendering keep needing it
    for the rest of the run.

    `image_probe` is any object with `async head_status(url, timeout) -> int`
    (AsyncHTTPClient in production). Without one, image URLs are checked by
    pattern only.
    """

    def __init__(
        self,
        policy_store: Optional[DomainPolicyStore] = None,
        resolver: Optional[UrlResolver] = None,
        session_manager: Optional[SessionManager] = None,
        image_probe=None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.policy_store = policy_store if policy_store is not None else DomainPolicyStore()
        self.resolver = resolver or UrlResolver(self.settings.aggregator_host)
        self.session_manager = session_manager or SessionManager(self.settings.user_agents)
        self.image_probe = image_probe

        self.consent_indicators = [phrase.lower() for phrase in self.settings.consent_indicators]
        self.rendering_indicators = [phrase.lower() for phrase in self.settings.rendering_indicators]

    # ------------------------------------------------------------ consent

    def is_consent_page(self, html: Optional[str], url: Optional[str] = None) -> bool:
        if url and domain_key(url).startswith('consent.'):
            return True
        if not html:
            return False
        lowered = html.lower()
        return any(indicator in lowered for indicator in self.consent_indicators)

    def plan_consent_bypass(self, attempt: int) -> Optional[ConsentBypass]:
        """Bypass values for the given retry; None means proceed best-effort."""
        return self.session_manager.consent_bypass(attempt)

    # ------------------------------------------------ enhanced rendering

    def needs_enhanced_rendering(self, url: str, html: Optional[str]) -> bool:
        if self.resolver.is_always_dynamic(url):
            return True

        domain = domain_key(url)
        if self.policy_store.requires_enhanced_rendering(domain):
            return True

        if html:
            lowered = html.lower()
            for indicator in self.rendering_indicators:
                if indicator in lowered:
                    logger.info(f"🎭 '{indicator}' found on {url[:80]}")
                    self.policy_store.mark_requires_enhanced_rendering(domain)
                    return True

        return False

    def known_to_need_rendering(self, url: str) -> bool:
        """Pre-fetch check that never looks at page content."""
        return self.resolver.is_always_dynamic(url) or self.policy_store.requires_enhanced_rendering(domain_key(url))

    def assess(self, page: FetchedPage, consent_attempts: int = 0) -> CrawlDecision:
        """Consent first, then the rendering check for lightweight fetches."""
        blocked = self.session_manager.is_blocked_status(page.status)
        if blocked or self.is_consent_page(page.html, page.url):
            bypass = self.plan_consent_bypass(consent_attempts)
            if bypass is not None:
                reason = f"HTTP {page.status}" if blocked else "consent page"
                return CrawlDecision(CrawlAction.RETRY_WITH_CONSENT_BYPASS, reason=reason, bypass=bypass)
            logger.info(f"🍪 Consent bypass exhausted for {page.url[:80]}, extracting best-effort")

        if not page.rendered and self.needs_enhanced_rendering(page.url, page.html):
            return CrawlDecision(CrawlAction.RETRY_WITH_ENHANCED_RENDERING, reason="Browser mode required")

        return CrawlDecision(CrawlAction.PROCEED)

    # -------------------------------------------------- image validation

    async def validate_images(self, urls: Iterable[str]) -> List[str]:
        """
        Keep only image URLs that answer HEAD with a 2xx status.

        URLs are probed in batches of `image_validation_batch_size`, each
        batch fully awaited before a short pause and the next batch. The whole
        run is bounded by `image_validation_deadline_seconds`; on expiry the
        URLs confirmed so far are returned.
        """
        candidates = list(dict.fromkeys(url for url in urls if url))
        if not candidates:
            return []

        if self.settings.skip_image_validation or self.image_probe is None:
            return [url for url in candidates if matches_image_pattern(url)]

        confirmed: List[str] = []
        try:
            await asyncio.wait_for(
                self._validate_in_batches(candidates, confirmed),
                timeout=self.settings.image_validation_deadline_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"⏱️ Image validation deadline hit, keeping {len(confirmed)} of {len(candidates)} images"
            )
        return list(confirmed)

    async def _validate_in_batches(self, urls: List[str], confirmed: List[str]) -> None:
        batch_size = self.settings.image_validation_batch_size
        for start in range(0, len(urls), batch_size):
            if start > 0:
                await self._pause_between_batches()
            batch = urls[start:start + batch_size]
            results = await asyncio.gather(*[self._probe(url) for url in batch], return_exceptions=True)
            confirmed.extend(url for url, ok in zip(batch, results) if ok is True)

    async def _pause_between_batches(self) -> None:
        await asyncio.sleep(self.settings.image_validation_pause_seconds)

    async def _probe(self, url: str) -> bool:
        try:
            status = await self.image_probe.head_status(
                url, timeout=self.settings.image_validation_timeout_seconds
            )
        except Exception as e:
            logger.debug(f"Image validation failed for {url[:80]}: {e}")
            return False
        return 200 <= status < 300
