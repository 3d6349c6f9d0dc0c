"""Per-domain crawl policy learned during a run."""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Optional
from urllib.parse import urlparse

from ..models import DomainPolicy

logger = logging.getLogger(__name__)


def domain_key(url: str) -> str:
    """Lower-cased hostname of a URL, '' when it has none."""
    try:
        return (urlparse(url).hostname or '').lower()
    except ValueError:
        return ''


class DomainPolicyStore:
    """
    Thread-safe domain -> DomainPolicy map.

    Entries are created lazily on first write and replaced, never mutated,
    so readers always see a consistent snapshot. The enhanced-rendering flag
    only ever goes from False to True within a run.
    """

    def __init__(self):
        self._policies: Dict[str, DomainPolicy] = {}
        self._lock = threading.Lock()

    def get(self, domain: str) -> Optional[DomainPolicy]:
        with self._lock:
            return self._policies.get(domain)

    def requires_enhanced_rendering(self, domain: str) -> bool:
        policy = self.get(domain)
        return bool(policy and policy.requires_enhanced_rendering)

    def mark_requires_enhanced_rendering(self, domain: str) -> bool:
        """
        Flip the enhanced-rendering flag for a domain.

        Returns:
            True if this call flipped it, False if it was already set
        """
        if not domain:
            return False
        with self._lock:
            current = self._policies.get(domain)
            if current and current.requires_enhanced_rendering:
                return False
            now = datetime.now(timezone.utc)
            if current:
                updated = replace(current, requires_enhanced_rendering=True, last_updated_at=now)
            else:
                updated = DomainPolicy(domain=domain, requires_enhanced_rendering=True, last_updated_at=now)
            self._policies[domain] = updated

        logger.info(f"🎭 Domain {domain} now requires enhanced rendering")
        return True

    def snapshot(self) -> Dict[str, DomainPolicy]:
        with self._lock:
            return dict(self._policies)

    def __len__(self) -> int:
        with self._lock:
            return len(self._policies)
