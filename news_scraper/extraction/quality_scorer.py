"""Additive quality score for extraction candidates."""

from ..models import ExtractionCandidate
from .extraction_constants import (
    MIN_CONTENT_LENGTH,
    MIN_SCORED_DESCRIPTION_LENGTH,
    MIN_SCORED_TITLE_LENGTH,
    SCORE_AUTHOR,
    SCORE_DATE,
    SCORE_DESCRIPTION,
    SCORE_IMAGE,
    SCORE_MANY_IMAGES,
    SCORE_TEXT_BASE,
    SCORE_TEXT_LONG,
    SCORE_TEXT_VERY_LONG,
    SCORE_TITLE,
    TEXT_LONG_LENGTH,
    TEXT_VERY_LONG_LENGTH,
)


class QualityScorer:
    """Integer score; every criterion only ever adds points."""

    def __init__(self, min_content_length: int = MIN_CONTENT_LENGTH):
        self.min_content_length = min_content_length

    def score(self, candidate: ExtractionCandidate) -> int:
        score = 0
        text_length = len(candidate.text or '')

        if text_length > self.min_content_length:
            score += SCORE_TEXT_BASE
        if text_length > TEXT_LONG_LENGTH:
            score += SCORE_TEXT_LONG
        if text_length > TEXT_VERY_LONG_LENGTH:
            score += SCORE_TEXT_VERY_LONG

        if candidate.title and len(candidate.title) > MIN_SCORED_TITLE_LENGTH:
            score += SCORE_TITLE
        if candidate.author:
            score += SCORE_AUTHOR
        if candidate.published_at:
            score += SCORE_DATE

        image_count = len(candidate.images)
        if image_count > 0:
            score += SCORE_IMAGE
        if image_count > 2:
            score += SCORE_MANY_IMAGES

        if candidate.description and len(candidate.description) > MIN_SCORED_DESCRIPTION_LENGTH:
            score += SCORE_DESCRIPTION

        return score
