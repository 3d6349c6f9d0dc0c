"""End-to-end tests for the per-URL crawl pipeline."""

import json

import pytest

from news_scraper.core.exceptions import ContentExtractionError, CrawlTimeoutError, RenderingUnavailableError
from news_scraper.core.failure_log import FailureLog
from news_scraper.core.http_client import AsyncHTTPClient
from news_scraper.crawling import ArticleCrawler
from news_scraper.crawling.fetchers import HttpPageFetcher
from news_scraper.crawling.session_manager import SessionManager
from news_scraper.models import CrawlRequest, FetchedPage

from tests.fakes import (
    CONSENT_HTML,
    OG_IMAGE_URL,
    SCENARIO_B_HTML,
    FakeFetcher,
    scenario_a_html,
)

ARTICLE_URL = 'https://example.com/news/story'
SPA_URL = 'https://spa.example.com/story'
AGGREGATOR_LINK = 'https://news.google.com/articles/not-a-real-token?hl=en-US'


@pytest.fixture
def make_crawler(controller, extractor, settings):
    def factory(fetcher, renderer=None, crawl_settings=None):
        return ArticleCrawler(
            fetcher,
            renderer=renderer,
            controller=controller,
            extractor=extractor,
            failure_log=FailureLog(),
            settings=crawl_settings or settings,
        )
    return factory


@pytest.mark.asyncio
async def test_scenario_a_emits_record_with_one_image(make_crawler):
    crawler = make_crawler(FakeFetcher({ARTICLE_URL: scenario_a_html()}))

    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL, query='lorem', source='Example')])

    assert report.failures == []
    assert len(report.records) == 1
    record = report.records[0]
    assert record.extraction_success
    assert record.title == 'Test'
    assert record.query == 'lorem'
    assert record.source == 'Example'
    assert [image.url for image in record.images] == [OG_IMAGE_URL]
    assert record.to_dict()['images'][0]['type'] == 'meta-og'


@pytest.mark.asyncio
async def test_invalid_images_are_dropped(make_crawler, probe):
    probe.statuses[OG_IMAGE_URL] = 404
    crawler = make_crawler(FakeFetcher({ARTICLE_URL: scenario_a_html()}))

    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

    assert report.records[0].images == ()


@pytest.mark.asyncio
async def test_scenario_b_without_renderer_records_failure(make_crawler):
    crawler = make_crawler(FakeFetcher({SPA_URL: SCENARIO_B_HTML}))

    report = await crawler.crawl_articles([CrawlRequest(link=SPA_URL)])

    assert report.records == []
    assert len(report.failures) == 1
    assert report.failures[0].reason == 'Browser mode required'
    assert report.domain_policies['spa.example.com'].requires_enhanced_rendering


@pytest.mark.asyncio
async def test_escalated_urls_go_through_the_renderer(make_crawler):
    fetcher = FakeFetcher({SPA_URL: SCENARIO_B_HTML})
    renderer = FakeFetcher({SPA_URL: scenario_a_html()}, rendered=True)
    crawler = make_crawler(fetcher, renderer=renderer)

    report = await crawler.crawl_articles([CrawlRequest(link=SPA_URL)])

    assert report.failures == []
    assert len(report.records) == 1
    assert renderer.fetched == [SPA_URL]


@pytest.mark.asyncio
async def test_known_domains_skip_the_lightweight_fetch(make_crawler, policy_store):
    policy_store.mark_requires_enhanced_rendering('spa.example.com')
    fetcher = FakeFetcher({SPA_URL: scenario_a_html()})
    renderer = FakeFetcher({SPA_URL: scenario_a_html()}, rendered=True)
    crawler = make_crawler(fetcher, renderer=renderer)

    report = await crawler.crawl_articles([CrawlRequest(link=SPA_URL)])

    assert fetcher.fetched == []
    assert len(report.records) == 1


@pytest.mark.asyncio
async def test_aggregator_link_is_rendered_to_the_publisher(make_crawler):
    final_page = FetchedPage(url=ARTICLE_URL, html=scenario_a_html(), rendered=True)
    fetcher = FakeFetcher()
    renderer = FakeFetcher({AGGREGATOR_LINK: final_page}, rendered=True)
    crawler = make_crawler(fetcher, renderer=renderer)

    report = await crawler.crawl_articles([CrawlRequest(link=AGGREGATOR_LINK)])

    assert fetcher.fetched == []
    record = report.records[0]
    assert record.url == ARTICLE_URL
    assert record.original_link == AGGREGATOR_LINK
    assert record.source == 'example.com'


@pytest.mark.asyncio
async def test_consent_wall_is_retried_with_bypass(make_crawler):
    fetcher = FakeFetcher({ARTICLE_URL: [CONSENT_HTML, scenario_a_html()]})
    crawler = make_crawler(fetcher)

    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

    assert [bypass.strategy_index for bypass in fetcher.bypasses] == [0]
    assert report.records[0].extraction_success


@pytest.mark.asyncio
async def test_exhausted_consent_bypass_keeps_feed_metadata(make_crawler):
    fetcher = FakeFetcher({ARTICLE_URL: CONSENT_HTML})
    crawler = make_crawler(fetcher)
    request = CrawlRequest(
        link=ARTICLE_URL, title='Feed title', description='Feed summary', published_at='2024-03-01'
    )

    report = await crawler.crawl_articles([request])

    assert [bypass.strategy_index for bypass in fetcher.bypasses] == [0, 1, 2]
    record = report.records[0]
    assert not record.extraction_success
    assert record.title == 'Feed title'
    assert record.description == 'Feed summary'
    assert record.published_at == '2024-03-01'


@pytest.mark.asyncio
async def test_failed_extraction_without_feed_title(make_crawler):
    crawler = make_crawler(FakeFetcher({ARTICLE_URL: '<p>Too short</p>'}))

    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

    assert report.records[0].title == 'No title'
    assert report.records[0].method == 'none'


@pytest.mark.asyncio
async def test_fetch_errors_become_failures(make_crawler):
    crawler = make_crawler(FakeFetcher())

    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

    assert report.records == []
    assert 'HTTP 404' in report.failures[0].reason
    assert report.success_rate == 0.0


@pytest.mark.asyncio
async def test_timeout_records_failure_and_no_partial_record(make_crawler, make_settings):
    crawler = make_crawler(
        FakeFetcher({ARTICLE_URL: scenario_a_html()}, delay=1.0),
        crawl_settings=make_settings(url_timeout_seconds=0.05, image_validation_deadline_seconds=0.01),
    )

    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

    assert report.records == []
    assert [failure.reason for failure in report.failures] == ['timeout']


@pytest.mark.asyncio
async def test_one_outcome_per_url(make_crawler):
    urls = ['https://example.com/news/0', 'https://example.com/news/1', SPA_URL, 'https://example.com/missing']
    pages = {urls[0]: scenario_a_html(), urls[1]: scenario_a_html(), SPA_URL: SCENARIO_B_HTML}
    crawler = make_crawler(FakeFetcher(pages))

    report = await crawler.crawl_articles([CrawlRequest(link=url) for url in urls])

    outcomes = [r.original_link for r in report.records] + [f.url for f in report.failures]
    assert sorted(outcomes) == sorted(urls)


@pytest.mark.asyncio
async def test_concurrency_is_bounded(make_crawler, make_settings):
    urls = [f'https://example.com/news/{i}' for i in range(6)]
    fetcher = FakeFetcher({url: scenario_a_html() for url in urls}, delay=0.02)
    crawler = make_crawler(fetcher, crawl_settings=make_settings(max_concurrency=2))

    report = await crawler.crawl_articles([CrawlRequest(link=url) for url in urls])

    assert len(report.records) == 6
    assert fetcher.max_in_flight <= 2


@pytest.mark.asyncio
async def test_records_are_sent_to_sink(make_crawler):
    received = []

    async def sink(record):
        received.append(record)

    crawler = make_crawler(FakeFetcher({ARTICLE_URL: scenario_a_html()}))
    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)], sink=sink)

    assert received == report.records


@pytest.mark.asyncio
async def test_sink_errors_do_not_stop_the_crawl(make_crawler):
    async def broken_sink(record):
        raise IOError('disk full')

    crawler = make_crawler(FakeFetcher({ARTICLE_URL: scenario_a_html()}))
    report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)], sink=broken_sink)

    assert len(report.records) == 1


@pytest.mark.asyncio
async def test_failures_are_written_to_failure_log_path(make_crawler, make_settings, tmp_path):
    path = tmp_path / 'failed.jsonl'
    crawler = make_crawler(FakeFetcher(), crawl_settings=make_settings(failure_log_path=str(path)))

    await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

    entry = json.loads(path.read_text(encoding='utf-8').splitlines()[0])
    assert entry['url'] == ARTICLE_URL


class TestCrawlArticle:

    @pytest.mark.asyncio
    async def test_returns_record(self, make_crawler):
        crawler = make_crawler(FakeFetcher({ARTICLE_URL: scenario_a_html()}))
        record = await crawler.crawl_article(CrawlRequest(link=ARTICLE_URL))
        assert record.url == ARTICLE_URL

    @pytest.mark.asyncio
    async def test_timeout_raises(self, make_crawler, make_settings):
        crawler = make_crawler(
            FakeFetcher({ARTICLE_URL: scenario_a_html()}, delay=1.0),
            crawl_settings=make_settings(url_timeout_seconds=0.05, image_validation_deadline_seconds=0.01),
        )
        with pytest.raises(CrawlTimeoutError):
            await crawler.crawl_article(CrawlRequest(link=ARTICLE_URL))

    @pytest.mark.asyncio
    async def test_rendering_unavailable_raises(self, make_crawler):
        crawler = make_crawler(FakeFetcher({SPA_URL: SCENARIO_B_HTML}))
        with pytest.raises(RenderingUnavailableError):
            await crawler.crawl_article(CrawlRequest(link=SPA_URL))
        assert len(crawler.failure_log) == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_raises(self, make_crawler):
        crawler = make_crawler(FakeFetcher())
        with pytest.raises(ContentExtractionError):
            await crawler.crawl_article(CrawlRequest(link=ARTICLE_URL))


@pytest.mark.asyncio
async def test_close_closes_both_fetchers(make_crawler):
    fetcher, renderer = FakeFetcher(), FakeFetcher(rendered=True)
    async with make_crawler(fetcher, renderer=renderer):
        pass
    assert fetcher.closed and renderer.closed


class TestDefaultWiring:
    EXTENSIONLESS_IMAGE = 'https://cdn.example.com/image/upload/abc123'

    @pytest.fixture
    def client(self, mocker):
        client = mocker.Mock(spec=AsyncHTTPClient)
        client.fetch_page = mocker.AsyncMock(
            return_value=(ARTICLE_URL, 200, scenario_a_html(self.EXTENSIONLESS_IMAGE))
        )
        client.head_status = mocker.AsyncMock(return_value=200)
        client.close = mocker.AsyncMock()
        return client

    @pytest.fixture
    def crawler(self, client, settings):
        fetcher = HttpPageFetcher(client=client, session_manager=SessionManager(user_agents=['ua-1']))
        return ArticleCrawler(fetcher, settings=settings)

    def test_http_client_validates_images(self, crawler, client):
        assert crawler.controller.image_probe is client

    @pytest.mark.asyncio
    async def test_images_are_checked_with_head_requests(self, crawler, client):
        report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

        assert [image.url for image in report.records[0].images] == [self.EXTENSIONLESS_IMAGE]
        assert client.head_status.await_args.args[0] == self.EXTENSIONLESS_IMAGE

    @pytest.mark.asyncio
    async def test_images_failing_head_are_dropped(self, crawler, client):
        client.head_status.return_value = 404

        report = await crawler.crawl_articles([CrawlRequest(link=ARTICLE_URL)])

        assert report.records[0].images == ()
