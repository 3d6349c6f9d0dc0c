"""Per-page extraction metrics and run-wide strategy telemetry."""

import logging
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger('news_scraper.extraction')

TOP_FAILURE_DOMAINS = 10


@dataclass
class StrategyAttempt:
    strategy: str
    success: bool
    score: int
    duration_ms: int
    error: Optional[str] = None


@dataclass
class ExtractionMetrics:
    """Timing and outcome of one page going through the engine."""
    url: str
    domain: str
    started_at: float = field(default_factory=time.time)
    attempts: List[StrategyAttempt] = field(default_factory=list)
    winner: Optional[str] = None
    duration_ms: Optional[int] = None
    content_length: int = 0
    quality_score: int = 0

    def finish(self, winner: Optional[str], content_length: int, quality_score: int) -> None:
        self.duration_ms = int((time.time() - self.started_at) * 1000)
        self.winner = winner
        self.content_length = content_length
        self.quality_score = quality_score

    @property
    def errors(self) -> List[str]:
        return [f"{a.strategy}: {a.error}" for a in self.attempts if a.error]

    def summary(self) -> Dict[str, Any]:
        return {
            'url': self.url[:100],
            'domain': self.domain,
            'duration_ms': self.duration_ms,
            'attempts': len(self.attempts),
            'winner': self.winner,
            'content_length': self.content_length,
            'quality_score': self.quality_score,
            'errors': len(self.errors),
        }


@dataclass
class StrategyStats:
    attempts: int = 0
    successes: int = 0
    wins: int = 0

    @property
    def success_rate(self) -> float:
        return round(self.successes / self.attempts * 100, 1) if self.attempts else 0.0


class ExtractionLogger:
    """
    Collects how each strategy fares across a crawl run.

    Safe to share between worker threads; counters are guarded by a lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pages = 0
        self._pages_extracted = 0
        self._strategies: Dict[str, StrategyStats] = {}
        self._failed_domains: Counter = Counter()

    def start_extraction(self, url: str, domain: str) -> ExtractionMetrics:
        logger.debug(f"Extracting {url[:80]}")
        return ExtractionMetrics(url=url, domain=domain)

    def log_strategy_attempt(self, metrics: ExtractionMetrics, strategy: str, success: bool,
                             score: int, duration_ms: int, error: Optional[str] = None):
        metrics.attempts.append(StrategyAttempt(strategy, success, score, duration_ms, error))

        with self._lock:
            stats = self._strategies.setdefault(strategy, StrategyStats())
            stats.attempts += 1
            stats.successes += int(success)

        if error:
            logger.debug(f"{strategy} raised on {metrics.url[:80]}: {error}")
        else:
            logger.debug(f"{strategy}: {'ok' if success else 'no result'}, score {score}, {duration_ms}ms")

    def complete_extraction(self, metrics: ExtractionMetrics, success: bool,
                            strategy: Optional[str] = None, content_length: int = 0,
                            quality_score: int = 0):
        metrics.finish(strategy if success else None, content_length, quality_score)

        with self._lock:
            self._pages += 1
            if success:
                self._pages_extracted += 1
                if strategy in self._strategies:
                    self._strategies[strategy].wins += 1
            else:
                self._failed_domains[metrics.domain] += 1

        if success:
            logger.info(
                f"✅ {strategy} won with {content_length} chars "
                f"(score {quality_score}, {metrics.duration_ms}ms): {metrics.url[:80]}"
            )
        else:
            logger.warning(f"⚠️ No strategy succeeded for {metrics.url[:80]}", extra=metrics.summary())

    def get_telemetry(self) -> Dict[str, Any]:
        with self._lock:
            pages = self._pages
            return {
                'total_extractions': pages,
                'successful_extractions': self._pages_extracted,
                'success_rate': round(self._pages_extracted / pages * 100, 1) if pages else 0.0,
                'strategy_performance': {
                    name: {
                        'attempts': stats.attempts,
                        'successes': stats.successes,
                        'wins': stats.wins,
                        'success_rate': stats.success_rate,
                    }
                    for name, stats in self._strategies.items()
                },
                'top_failure_domains': dict(self._failed_domains.most_common(TOP_FAILURE_DOMAINS)),
            }

    def reset_telemetry(self):
        with self._lock:
            self._pages = 0
            self._pages_extracted = 0
            self._strategies.clear()
            self._failed_domains.clear()


_extraction_logger: Optional[ExtractionLogger] = None


def get_extraction_logger() -> ExtractionLogger:
    """Process-wide telemetry collector."""
    global _extraction_logger
    if _extraction_logger is None:
        _extraction_logger = ExtractionLogger()
    return _extraction_logger
