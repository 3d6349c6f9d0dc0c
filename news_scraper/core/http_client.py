"""Async HTTP client with connection pooling and retries."""

import asyncio
import logging
from typing import Dict, Iterable, Optional

import aiohttp
import chardet
from aiohttp import ClientTimeout, ClientError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from yarl import URL

from ..config import get_settings
from .exceptions import FetchError

logger = logging.getLogger(__name__)

# Statuses worth retrying; anything else is terminal for the request
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class TransientHTTPError(FetchError):
    """Server answered with a retryable status."""
    pass


def decode_body(content_bytes: bytes, declared_encoding: Optional[str] = None) -> str:
    """Decode a response body, falling back to chardet when no charset is declared."""
    if declared_encoding:
        try:
            return content_bytes.decode(declared_encoding)
        except (UnicodeDecodeError, LookupError):
            pass

    encoding_info = chardet.detect(content_bytes)
    encoding = encoding_info.get('encoding') or 'utf-8'
    confidence = encoding_info.get('confidence') or 0

    if confidence < 0.7:
        for fallback_encoding in ['utf-8', 'cp1252', 'iso-8859-1']:
            try:
                return content_bytes.decode(fallback_encoding)
            except UnicodeDecodeError:
                continue

    try:
        return content_bytes.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return content_bytes.decode('utf-8', errors='ignore')


class AsyncHTTPClient:
    """Async HTTP client with connection pooling, retries and a cookie jar."""

    def __init__(self, timeout_seconds: Optional[float] = None):
        self.session: Optional[aiohttp.ClientSession] = None
        settings = get_settings()
        total = timeout_seconds or settings.request_timeout_seconds
        self.timeout = ClientTimeout(total=total, connect=min(10, total))

    def _session_open(self) -> bool:
        return self.session is not None and not self.session.closed

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Open the pooled session if none is live."""
        if not self._session_open():
            connector = aiohttp.TCPConnector(
                limit=20,
                limit_per_host=5,
                ttl_dns_cache=300,
                use_dns_cache=True,
            )
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=self.timeout,
                cookie_jar=aiohttp.CookieJar(unsafe=True),
            )

    async def close(self):
        if self._session_open():
            await self.session.close()

    async def set_cookies(self, cookies: Iterable[Dict[str, str]]):
        """Store cookies so they are replayed on requests to their domain."""
        await self.start()
        for cookie in cookies:
            host = cookie.get('domain', '').lstrip('.')
            self.session.cookie_jar.update_cookies(
                {cookie['name']: cookie['value']},
                response_url=URL(f"https://{host}/"),
            )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((ClientError, asyncio.TimeoutError, TransientHTTPError)),
        reraise=True
    )
    async def fetch_page(self, url: str, headers: Optional[Dict[str, str]] = None):
        """
        GET a page with retries on transient failures.

        Returns:
            Tuple of (final_url, status, html)
        """
        await self.start()

        logger.debug(f"🌐 GET {url[:80]}")
        async with self.session.get(url, headers=headers, allow_redirects=True) as response:
            if response.status in RETRYABLE_STATUS_CODES:
                logger.debug(f"⚠️ HTTP {response.status} for {url[:80]}, retrying")
                raise TransientHTTPError(f"HTTP {response.status}", status_code=response.status, url=url)
            content_bytes = await response.read()
            html = decode_body(content_bytes, response.charset)
            return str(response.url), response.status, html

    async def head_status(self, url: str, timeout: float) -> int:
        """Send a HEAD request and return the status code."""
        await self.start()

        async with self.session.head(
            url,
            allow_redirects=True,
            timeout=ClientTimeout(total=timeout)
        ) as response:
            return response.status
