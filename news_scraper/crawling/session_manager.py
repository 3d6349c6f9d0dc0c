"""Session helpers: user-agent rotation, request headers and consent bypass cookies."""

import logging
import random
import threading
from datetime import date
from typing import Callable, Dict, List, Optional

from ..config import get_settings
from ..core.exceptions import ConfigurationError
from ..models import ConsentBypass

logger = logging.getLogger(__name__)

BLOCKED_STATUS_CODES = {403, 429, 503}

CONSENT_BUTTON_SELECTORS = [
    '#onetrust-accept-btn-handler',
    'button[aria-label*="accept" i]',
    'button[aria-label*="agree" i]',
    'button:has-text("Accept all")',
    'button:has-text("Accept")',
    'button:has-text("I agree")',
    'button:has-text("Agree")',
    '.fc-cta-consent',
    '.js-consent-banner .accept',
    'button[class*="accept"]',
]

DOMAIN_CONSENT_SELECTORS = {
    'www.bbc.com': ['button#bbccookies-continue-button', 'button:has-text("Yes, I agree")'],
    'www.reuters.com': ['button#onetrust-accept-btn-handler'],
    'edition.cnn.com': ['button:has-text("I Agree")', '#onetrust-accept-btn-handler'],
    'www.malaymail.com': ['#onetrust-accept-btn-handler', 'button:has-text("I agree")'],
}


class SessionManager:
    """
    Owns the values injected into fetch sessions.

    Consent bypass strategies are tried in order, one per retry of a
    consent-walled URL; each returns cookies scoped to the aggregator's
    cookie domain.
    """

    def __init__(self, user_agents: Optional[List[str]] = None, cookie_domain: Optional[str] = None):
        settings = get_settings()
        self.user_agents = list(user_agents if user_agents is not None else settings.user_agents)
        if not self.user_agents:
            raise ConfigurationError("SessionManager needs at least one user agent")

        if cookie_domain is None:
            labels = settings.aggregator_host.split('.')
            cookie_domain = '.' + '.'.join(labels[-2:])
        self.cookie_domain = cookie_domain

        self._user_agent_index = 0
        self._lock = threading.Lock()
        self._strategies: List[Callable[[], List[Dict[str, str]]]] = [
            self._consent_cookies,
            self._preference_cookies,
            self._pending_consent_cookies,
        ]

    @property
    def strategy_count(self) -> int:
        return len(self._strategies)

    def random_user_agent(self) -> str:
        return random.choice(self.user_agents)

    def next_user_agent(self) -> str:
        with self._lock:
            user_agent = self.user_agents[self._user_agent_index % len(self.user_agents)]
            self._user_agent_index += 1
        return user_agent

    def get_headers(self, user_agent: Optional[str] = None) -> Dict[str, str]:
        """Browser-like headers for article page requests."""
        return {
            'User-Agent': user_agent or self.random_user_agent(),
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
            'Cache-Control': 'no-cache',
            'DNT': '1',
            'Upgrade-Insecure-Requests': '1',
        }

    def is_blocked_status(self, status: int) -> bool:
        return status in BLOCKED_STATUS_CODES

    def consent_bypass(self, strategy_index: int) -> Optional[ConsentBypass]:
        """Cookies and headers for bypass attempt `strategy_index`; None once exhausted."""
        if strategy_index < 0 or strategy_index >= len(self._strategies):
            return None

        cookies = self._strategies[strategy_index]()
        logger.debug(f"🍪 Consent bypass strategy {strategy_index}: {[c['name'] for c in cookies]}")
        return ConsentBypass(
            strategy_index=strategy_index,
            cookies=tuple(cookies),
            headers=self.get_headers(self.next_user_agent()),
        )

    def consent_selectors_for(self, domain: str) -> List[str]:
        """Consent buttons to click in a rendered page, site-specific first."""
        return DOMAIN_CONSENT_SELECTORS.get(domain, []) + CONSENT_BUTTON_SELECTORS

    def _cookie(self, name: str, value: str) -> Dict[str, str]:
        return {'name': name, 'value': value, 'domain': self.cookie_domain}

    def _consent_cookies(self) -> List[Dict[str, str]]:
        return [
            self._cookie('CONSENT', 'YES+cb.20210720-07-p0.en+FX+410'),
            self._cookie('SOCS', 'CAESEwgDEgk0ODE3Nzk3MjQaAmVuIAEaBgiA_LyaBg'),
            self._cookie('NID', '511=consent_accepted'),
        ]

    def _preference_cookies(self) -> List[Dict[str, str]]:
        return [
            self._cookie('PREF', 'f1=50000000&f6=8&hl=en-US&gl=US'),
            self._cookie('1P_JAR', date.today().isoformat()),
        ]

    def _pending_consent_cookies(self) -> List[Dict[str, str]]:
        return [
            self._cookie('CONSENT', 'PENDING+999'),
            self._cookie('ANID', 'consent_state_service_pending'),
        ]
