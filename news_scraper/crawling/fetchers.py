"""Page fetchers: lightweight HTTP and Playwright-rendered."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from ..config import get_settings
from ..core.domain_policy import domain_key
from ..core.exceptions import FetchError
from ..core.http_client import AsyncHTTPClient
from ..extraction.url_resolver import UrlResolver
from ..models import ConsentBypass, FetchedPage
from .session_manager import SessionManager

logger = logging.getLogger(__name__)

BROWSER_CONCURRENCY = 2
BLOCKED_RESOURCE_TYPES = {"image", "media", "font"}
CONSENT_CLICK_WAIT_MS = 1000


class PageFetcher(ABC):
    """Fetch-layer interface used by the crawler."""

    rendered: bool = False

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """Fetch a page; raise FetchError when nothing usable came back."""
        pass

    async def apply_consent_bypass(self, bypass: ConsentBypass) -> None:
        """Inject consent cookies/headers for subsequent fetches."""
        pass

    async def close(self) -> None:
        pass


class HttpPageFetcher(PageFetcher):
    """Plain HTTP GET through the shared aiohttp client; no script execution."""

    rendered = False

    def __init__(self, client: Optional[AsyncHTTPClient] = None,
                 session_manager: Optional[SessionManager] = None):
        self.client = client or AsyncHTTPClient()
        self.session_manager = session_manager or SessionManager()
        self._bypass_headers: Dict[str, str] = {}

    async def fetch(self, url: str) -> FetchedPage:
        headers = self.session_manager.get_headers(self.session_manager.next_user_agent())
        headers.update(self._bypass_headers)

        final_url, status, html = await self.client.fetch_page(url, headers=headers)
        if status >= 400 and not self.session_manager.is_blocked_status(status):
            raise FetchError(f"HTTP {status} for {url}", status_code=status, url=url)

        return FetchedPage(url=final_url, html=html, status=status, rendered=False)

    async def apply_consent_bypass(self, bypass: ConsentBypass) -> None:
        await self.client.set_cookies(bypass.cookies)
        self._bypass_headers = dict(bypass.headers)

    async def close(self) -> None:
        await self.client.close()


class BrowserPageFetcher(PageFetcher):
    """Headless Chromium rendering for script-only pages and aggregator redirects."""

    rendered = True

    def __init__(self, session_manager: Optional[SessionManager] = None,
                 resolver: Optional[UrlResolver] = None,
                 timeout_ms: Optional[int] = None,
                 concurrency: int = BROWSER_CONCURRENCY):
        settings = get_settings()
        self.session_manager = session_manager or SessionManager()
        self.resolver = resolver or UrlResolver(settings.aggregator_host)
        self.timeout_ms = timeout_ms or settings.browser_timeout_ms

        self.browser: Optional[Browser] = None
        self._playwright = None
        self._launch_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(concurrency)
        self._cookies: List[Dict[str, str]] = []

    async def _ensure_browser(self) -> Browser:
        async with self._launch_lock:
            if not self.browser:
                logger.info("🚀 Launching Playwright browser...")
                self._playwright = await async_playwright().start()
                self.browser = await self._playwright.chromium.launch(
                    headless=True,
                    args=['--no-sandbox', '--disable-setuid-sandbox']
                )
        return self.browser

    async def apply_consent_bypass(self, bypass: ConsentBypass) -> None:
        known = {(c['name'], c['domain']) for c in self._cookies}
        for cookie in bypass.cookies:
            if (cookie['name'], cookie['domain']) in known:
                self._cookies = [c for c in self._cookies
                                 if (c['name'], c['domain']) != (cookie['name'], cookie['domain'])]
            self._cookies.append(dict(cookie))

    async def fetch(self, url: str) -> FetchedPage:
        budget_start = time.time()

        def remaining_ms() -> int:
            elapsed_ms = (time.time() - budget_start) * 1000
            return max(1, int(self.timeout_ms - elapsed_ms))

        async with self._semaphore:
            browser = await self._ensure_browser()
            context = await browser.new_context(user_agent=self.session_manager.next_user_agent())
            try:
                if self._cookies:
                    await context.add_cookies([{**cookie, 'path': '/'} for cookie in self._cookies])

                page = await context.new_page()

                async def route_handler(route):
                    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
                        await route.abort()
                    else:
                        await route.continue_()

                await page.route("**/*", route_handler)

                logger.debug(f"🌐 Rendering {url[:80]} (timeout: {remaining_ms()}ms)")
                response = await page.goto(url, timeout=remaining_ms(), wait_until='domcontentloaded')

                if self.resolver.is_aggregator_link(url):
                    try:
                        await page.wait_for_url(
                            lambda current: not self.resolver.is_aggregator_link(current),
                            timeout=min(10_000, remaining_ms())
                        )
                    except PlaywrightTimeoutError:
                        logger.debug(f"Aggregator page did not redirect: {url[:80]}")

                try:
                    await page.wait_for_load_state('networkidle', timeout=min(5_000, remaining_ms()))
                except PlaywrightTimeoutError:
                    pass

                await self._accept_consent(page)

                html = await page.content()
                status = response.status if response else 200
                return FetchedPage(url=page.url, html=html, status=status, rendered=True)
            except PlaywrightError as e:
                raise FetchError(f"Browser fetch failed: {e}", url=url) from e
            finally:
                await context.close()

    async def _accept_consent(self, page) -> bool:
        for selector in self.session_manager.consent_selectors_for(domain_key(page.url)):
            try:
                button = await page.query_selector(selector)
                if button and await button.is_visible():
                    await button.click(timeout=2_000)
                    await page.wait_for_timeout(CONSENT_CLICK_WAIT_MS)
                    logger.debug(f"🍪 Clicked consent button '{selector}' on {page.url[:80]}")
                    return True
            except PlaywrightError:
                continue
        return False

    async def close(self) -> None:
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
