"""Resolution of aggregator links into direct article URLs."""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse, parse_qs

from ..config import get_settings

logger = logging.getLogger(__name__)

URL_IN_BYTES = re.compile(rb'https?://[^\s"\'<>\x00-\x20\x7f-\xff]+')
URL_IN_TEXT = re.compile(r'https?://[^\s"\'<>]+')
ARTICLE_TOKEN = re.compile(r'/articles/([^/?#]+)')

# Framed token layout: 08 13 22 <length> <url> [d2 01 00]
LEGACY_PREFIX = b'\x08\x13\x22'
LEGACY_SUFFIX = b'\xd2\x01\x00'

# Tokens with this prefix carry no embedded URL
NEW_STYLE_TOKEN_PREFIX = 'AU_yqL'


@dataclass(frozen=True)
class DecodedUrl:
    """Outcome of decoding an opaque aggregator token. `url` is None on failure."""
    url: Optional[str] = None
    strategy: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.url is not None


class UrlResolver:
    """
    Turns aggregator redirect links into direct article URLs.

    `resolve()` is total: any link it cannot improve on, or any error while
    trying, gives back the input unchanged. Decoded URLs are advisory only.
    """

    REDIRECT_PARAMS = ('url', 'u', 'link', 'target', 'redirect')

    def __init__(self, aggregator_host: Optional[str] = None):
        self.aggregator_host = (aggregator_host or get_settings().aggregator_host).lower()
        labels = self.aggregator_host.split('.')
        self.aggregator_root = '.'.join(labels[-2:]) if len(labels) >= 2 else self.aggregator_host

    def is_aggregator_link(self, url: str) -> bool:
        try:
            return (urlparse(url).hostname or '').lower() == self.aggregator_host
        except (ValueError, AttributeError):
            return False

    def is_always_dynamic(self, url: str) -> bool:
        """Aggregator article pages only ever redirect through script."""
        if not self.is_aggregator_link(url):
            return False
        return '/articles/' in urlparse(url).path

    def resolve(self, raw_link: str) -> str:
        try:
            return self._resolve(raw_link)
        except Exception as e:
            logger.debug(f"URL resolution failed for {raw_link!r}: {e}")
            return raw_link

    def _resolve(self, raw_link: str) -> str:
        parsed = urlparse(raw_link)
        if (parsed.hostname or '').lower() != self.aggregator_host:
            return raw_link

        # Old redirect format: target carried in a query parameter
        params = parse_qs(parsed.query)
        for name in self.REDIRECT_PARAMS:
            for value in params.get(name, []):
                if self._is_external_url(value):
                    return value

        # Feed form of an article link
        if '/rss/articles/' in parsed.path:
            web_url = raw_link.replace('/rss/articles/', '/articles/', 1)
            logger.debug(f"Converted feed link to web form: {web_url[:100]}")
            return web_url

        match = ARTICLE_TOKEN.search(parsed.path)
        if match:
            decoded = self.decode_token(match.group(1))
            if decoded.found:
                logger.debug(f"🔓 Decoded aggregator token ({decoded.strategy}): {decoded.url}")
                return decoded.url

        return raw_link

    def decode_token(self, token: str) -> DecodedUrl:
        """Best-effort decoding of an opaque article token."""
        if not token or token.startswith(NEW_STYLE_TOKEN_PREFIX):
            return DecodedUrl()

        for strategy, decoder in (
            ('legacy', self._decode_legacy),
            ('base64', self._decode_standard_base64),
            ('urlsafe-base64', self._decode_urlsafe_base64),
            ('pattern', self._decode_literal),
            ('hex', self._decode_hex),
        ):
            try:
                url = decoder(token)
            except (binascii.Error, ValueError, IndexError):
                continue
            if url:
                return DecodedUrl(url=url, strategy=strategy)

        return DecodedUrl()

    def _is_external_url(self, url: str) -> bool:
        if not url or not url.startswith(('http://', 'https://')):
            return False
        host = (urlparse(url).hostname or '').lower()
        if not host:
            return False
        return host != self.aggregator_root and not host.endswith('.' + self.aggregator_root)

    def _first_external_url(self, data: bytes) -> Optional[str]:
        for match in URL_IN_BYTES.finditer(data):
            url = match.group(0).decode('ascii', errors='ignore')
            if self._is_external_url(url):
                return url
        return None

    @staticmethod
    def _pad(token: str) -> str:
        return token + '=' * (-len(token) % 4)

    def _decode_legacy(self, token: str) -> Optional[str]:
        raw = base64.urlsafe_b64decode(self._pad(token))
        if not raw.startswith(LEGACY_PREFIX):
            return None
        raw = raw[len(LEGACY_PREFIX):]
        if raw.endswith(LEGACY_SUFFIX):
            raw = raw[:-len(LEGACY_SUFFIX)]

        length = raw[0]
        offset = 1
        if length >= 0x80:
            length = (length & 0x7f) | (raw[1] << 7)
            offset = 2
        url = raw[offset:offset + length].decode('utf-8', errors='ignore')
        return url if self._is_external_url(url) else None

    def _decode_standard_base64(self, token: str) -> Optional[str]:
        return self._first_external_url(base64.b64decode(self._pad(token), validate=True))

    def _decode_urlsafe_base64(self, token: str) -> Optional[str]:
        normalized = token.replace('-', '+').replace('_', '/')
        return self._first_external_url(base64.b64decode(self._pad(normalized)))

    def _decode_literal(self, token: str) -> Optional[str]:
        for match in URL_IN_TEXT.finditer(token):
            if self._is_external_url(match.group(0)):
                return match.group(0)
        return None

    def _decode_hex(self, token: str) -> Optional[str]:
        if not re.fullmatch(r'(?:[0-9a-fA-F]{2})+', token):
            return None
        return self._first_external_url(bytes.fromhex(token))
