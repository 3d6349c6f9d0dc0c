"""Runs every extraction strategy over a page and keeps the best candidate."""

import logging
import time
from dataclasses import replace
from typing import List, Optional

from ..core.exceptions import ConfigurationError
from ..models import ExtractionCandidate
from .extraction_logger import ExtractionLogger, get_extraction_logger
from .extraction_strategies import ExtractionStrategy, PreparedPage
from .extraction_utils import ExtractionUtils
from .quality_scorer import QualityScorer

logger = logging.getLogger(__name__)


class ExtractionEngine:
    """
    Competitive extraction: every strategy runs, the highest score wins.

    A strategy that raises or reports `success=False` never blocks the
    others. Ties go to the strategy listed first. When nothing succeeds the
    engine returns a zero-value candidate instead of raising.
    """

    def __init__(self, utils: ExtractionUtils, strategies: List[ExtractionStrategy],
                 scorer: QualityScorer, extraction_logger: Optional[ExtractionLogger] = None):
        if not strategies:
            raise ConfigurationError("ExtractionEngine needs at least one strategy")
        self.utils = utils
        self.strategies = strategies
        self.scorer = scorer
        self.extraction_logger = extraction_logger or get_extraction_logger()

    def extract(self, html: str, url: str) -> ExtractionCandidate:
        metrics = self.extraction_logger.start_extraction(url, self.utils.extract_domain(url))

        try:
            page = self.strategies[0].prepare(html or '', url)
        except Exception as e:
            logger.debug(f"Could not prepare page {url[:80]}: {e}")
            self.extraction_logger.complete_extraction(metrics, success=False)
            return ExtractionCandidate.empty()

        best: Optional[ExtractionCandidate] = None
        for strategy in self.strategies:
            candidate = self._run_strategy(strategy, page, metrics)
            if candidate is None or not candidate.success:
                continue
            if best is None or candidate.score > best.score:
                best = candidate

        if best is None:
            self.extraction_logger.complete_extraction(metrics, success=False)
            return ExtractionCandidate.empty()

        self.extraction_logger.complete_extraction(
            metrics, success=True, strategy=best.method,
            content_length=len(best.text), quality_score=best.score
        )
        return best

    def _run_strategy(self, strategy: ExtractionStrategy, page: PreparedPage, metrics) -> Optional[ExtractionCandidate]:
        started = time.time()
        try:
            candidate = strategy.extract_from(page)
        except Exception as e:
            duration_ms = int((time.time() - started) * 1000)
            self.extraction_logger.log_strategy_attempt(
                metrics, strategy.method, False, 0, duration_ms, error=str(e) or type(e).__name__
            )
            return None

        score = self.scorer.score(candidate) if candidate.success else 0
        candidate = replace(candidate, score=score)
        duration_ms = int((time.time() - started) * 1000)
        self.extraction_logger.log_strategy_attempt(metrics, strategy.method, candidate.success, score, duration_ms)
        return candidate
