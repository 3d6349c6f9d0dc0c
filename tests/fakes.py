"""HTML samples and in-memory stand-ins for the fetch layer and HEAD probes."""

import asyncio

from news_scraper.core.exceptions import FetchError
from news_scraper.crawling.fetchers import PageFetcher
from news_scraper.models import FetchedPage


LOREM = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua. Ut enim ad minim veniam, quis nostrud "
    "exercitation ullamco laboris nisi ut aliquip ex ea commodo consequat. Duis aute irure "
    "dolor in reprehenderit in voluptate velit esse cillum dolore eu fugiat nulla pariatur. "
    "Excepteur sint occaecat cupidatat non proident, sunt in culpa qui officia deserunt "
    "mollit anim id est laborum."
)

OG_IMAGE_URL = "https://cdn.example.com/images/lead-photo.jpg"


def scenario_a_html(og_image: str = OG_IMAGE_URL) -> str:
    return (
        "<html><head>"
        f'<meta property="og:image" content="{og_image}">'
        "</head><body>"
        "<h1>Test</h1>"
        f"<article><p>{LOREM}</p></article>"
        "</body></html>"
    )


SCENARIO_B_HTML = "<html><body><noscript><h1>JavaScript is required</h1></noscript></body></html>"

CONSENT_HTML = (
    "<html><body><h1>Before you continue to Google</h1>"
    "<p>We use cookies and data to deliver our services.</p></body></html>"
)


class FakeFetcher(PageFetcher):
    """
    In-memory fetch layer.

    `pages` maps URL -> html, FetchedPage, or a list of those served in order
    (the last entry repeats).
    """

    def __init__(self, pages=None, rendered=False, delay=0.0, error=None):
        self.pages = {}
        for url, value in (pages or {}).items():
            self.pages[url] = list(value) if isinstance(value, list) else [value]
        self.rendered = rendered
        self.delay = delay
        self.error = error
        self.fetched = []
        self.bypasses = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch(self, url):
        self.fetched.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            responses = self.pages.get(url)
            if not responses:
                raise FetchError(f"HTTP 404 for {url}", status_code=404, url=url)
            response = responses.pop(0) if len(responses) > 1 else responses[0]
        finally:
            self.in_flight -= 1

        if isinstance(response, FetchedPage):
            return response
        return FetchedPage(url=url, html=response, status=200, rendered=self.rendered)

    async def apply_consent_bypass(self, bypass):
        self.bypasses.append(bypass)

    async def close(self):
        self.closed = True


class FakeProbe:
    """HEAD probe answering from a status map; exceptions in the map are raised."""

    def __init__(self, statuses=None, default=200, delays=None):
        self.statuses = statuses or {}
        self.default = default
        self.delays = delays or {}
        self.calls = []

    async def head_status(self, url, timeout):
        self.calls.append(url)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        status = self.statuses.get(url, self.default)
        if isinstance(status, Exception):
            raise status
        return status
