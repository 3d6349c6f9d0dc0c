"""Shared fixtures for the crawl and extraction tests."""

import pytest

from news_scraper.config import Settings
from news_scraper.core.domain_policy import DomainPolicyStore
from news_scraper.crawling.adaptation import CrawlAdaptationController
from news_scraper.extraction import ContentExtractor
from news_scraper.extraction.extraction_logger import ExtractionLogger

from tests.fakes import FakeProbe


@pytest.fixture
def make_settings():
    def factory(**overrides):
        values = {
            'image_validation_pause_seconds': 0.0,
            'url_timeout_seconds': 5.0,
            'image_validation_deadline_seconds': 2.0,
            'failure_log_path': None,
        }
        values.update(overrides)
        return Settings(**values)
    return factory


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def policy_store():
    return DomainPolicyStore()


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def controller(settings, policy_store, probe):
    return CrawlAdaptationController(policy_store=policy_store, image_probe=probe, settings=settings)


@pytest.fixture
def extraction_logger():
    return ExtractionLogger()


@pytest.fixture
def extractor(extraction_logger):
    return ContentExtractor(min_content_length=300, extraction_logger=extraction_logger)
