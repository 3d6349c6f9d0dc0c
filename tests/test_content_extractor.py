"""Tests for the ContentExtractor facade and metadata helpers."""

from news_scraper.extraction import ContentExtractor
from news_scraper.extraction.date_extractor import DateExtractor
from news_scraper.extraction.extraction_utils import ExtractionUtils
from news_scraper.extraction.metadata_extractor import MetadataExtractor
from news_scraper.models import ImageSourceType

from tests.fakes import OG_IMAGE_URL, scenario_a_html


def test_facade_wires_components(extractor):
    assert '<script' not in extractor.clean_html('<script>x()</script><p>Hi</p>')
    assert extractor.clean_text('  Hi  ') == 'Hi'

    images = extractor.collect_images(scenario_a_html(), base_url='https://example.com/a')
    assert [(image.url, image.source_type) for image in images] == [(OG_IMAGE_URL, ImageSourceType.META_OG)]


def test_default_minimum_comes_from_settings():
    assert ContentExtractor().utils.min_content_length == 300


def test_author_byline_prefix_is_stripped():
    utils = ExtractionUtils()
    soup = utils.parse('<span class="byline">By  Jane Reporter</span>')
    assert MetadataExtractor(utils).extract_author(soup) == 'Jane Reporter'


def test_meta_title_prefers_social_tags():
    utils = ExtractionUtils()
    soup = utils.parse(
        '<head><title>Site | Story</title><meta property="og:title" content="Story headline"></head>'
        '<body><h1>Other</h1></body>'
    )
    assert MetadataExtractor(utils).extract_meta_title(soup) == 'Story headline'


def test_dates_are_normalized():
    dates = DateExtractor(ExtractionUtils())
    assert dates.normalize_date('2024-03-01T10:00:00Z') == '2024-03-01T10:00:00+00:00'
    assert dates.normalize_date('March 1, 2024') == '2024-03-01T00:00:00'
    assert dates.normalize_date('yesterday') is None
    assert dates.normalize_date(None) is None


def test_time_element_date():
    utils = ExtractionUtils()
    soup = utils.parse('<time datetime="2024-02-10T09:30:00+01:00">10 Feb</time>')
    assert DateExtractor(utils).extract_publication_date(soup) == '2024-02-10T08:30:00+00:00'


def test_absolute_url():
    utils = ExtractionUtils()
    assert utils.absolute_url('//cdn.example.com/a.jpg', 'http://example.com/') == 'http://cdn.example.com/a.jpg'
    assert utils.absolute_url('img/a.jpg', 'https://example.com/news/') == 'https://example.com/news/img/a.jpg'
    assert utils.absolute_url('https://example.com/a\u200b.jpg', None) == 'https://example.com/a.jpg'
    assert utils.absolute_url('mailto:x@example.com', 'https://example.com/') is None
