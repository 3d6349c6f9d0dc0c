"""Tests for the additive quality score."""

from news_scraper.extraction.quality_scorer import QualityScorer
from news_scraper.models import ExtractionCandidate, ImageCandidate, ImageSourceType


def images(count):
    return tuple(
        ImageCandidate(url=f'https://cdn.example.com/{i}.jpg', source_type=ImageSourceType.CONTENT)
        for i in range(count)
    )


def test_empty_candidate_scores_zero():
    assert QualityScorer().score(ExtractionCandidate()) == 0


def test_text_threshold_is_strict_and_monotonic():
    scorer = QualityScorer(min_content_length=300)
    at_threshold = scorer.score(ExtractionCandidate(text='a' * 300))
    above = scorer.score(ExtractionCandidate(text='a' * 301))
    assert at_threshold == 0
    assert above == 40
    assert scorer.score(ExtractionCandidate(text='a' * 1001)) == 60
    assert scorer.score(ExtractionCandidate(text='a' * 2001)) == 70


def test_every_criterion_adds():
    candidate = ExtractionCandidate(
        title='Long enough title',
        text='a' * 2001,
        author='Jane Reporter',
        published_at='2024-03-01T08:00:00+00:00',
        description='d' * 51,
        images=images(3),
    )
    assert QualityScorer().score(candidate) == 115


def test_short_title_and_description_do_not_count():
    candidate = ExtractionCandidate(title='Test', description='Short', images=images(1))
    assert QualityScorer().score(candidate) == 10
