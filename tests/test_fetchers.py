"""Tests for the HTTP fetch adapter and response decoding."""

import pytest
from yarl import URL

from news_scraper.core.exceptions import FetchError
from news_scraper.core.http_client import AsyncHTTPClient, decode_body
from news_scraper.crawling.fetchers import HttpPageFetcher
from news_scraper.crawling.session_manager import SessionManager


@pytest.fixture
def client(mocker):
    client = mocker.Mock(spec=AsyncHTTPClient)
    client.fetch_page = mocker.AsyncMock()
    client.set_cookies = mocker.AsyncMock()
    client.close = mocker.AsyncMock()
    return client


@pytest.fixture
def fetcher(client):
    return HttpPageFetcher(client=client, session_manager=SessionManager(user_agents=['ua-1']))


@pytest.mark.asyncio
async def test_fetch_returns_final_url(fetcher, client):
    client.fetch_page.return_value = ('https://example.com/final', 200, '<p>Hi</p>')

    page = await fetcher.fetch('https://example.com/start')

    assert page.url == 'https://example.com/final'
    assert page.html == '<p>Hi</p>'
    assert not page.rendered
    headers = client.fetch_page.call_args.kwargs['headers']
    assert headers['User-Agent'] == 'ua-1'


@pytest.mark.asyncio
async def test_error_status_raises(fetcher, client):
    client.fetch_page.return_value = ('https://example.com/a', 404, 'Not found')

    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch('https://example.com/a')
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_blocked_status_is_returned_for_assessment(fetcher, client):
    client.fetch_page.return_value = ('https://example.com/a', 403, 'Forbidden')

    page = await fetcher.fetch('https://example.com/a')
    assert page.status == 403


@pytest.mark.asyncio
async def test_consent_bypass_sets_cookies_and_headers(fetcher, client):
    bypass = fetcher.session_manager.consent_bypass(0)
    client.fetch_page.return_value = ('https://example.com/a', 200, '<p>Hi</p>')

    await fetcher.apply_consent_bypass(bypass)
    await fetcher.fetch('https://example.com/a')

    client.set_cookies.assert_awaited_once_with(bypass.cookies)
    assert client.fetch_page.call_args.kwargs['headers']['DNT'] == '1'


@pytest.mark.asyncio
async def test_cookies_are_stored_in_the_jar():
    async with AsyncHTTPClient(timeout_seconds=5) as http_client:
        await http_client.set_cookies([{'name': 'CONSENT', 'value': 'YES+', 'domain': '.google.com'}])
        cookies = http_client.session.cookie_jar.filter_cookies(URL('https://google.com/'))
    assert 'CONSENT' in cookies


def test_decode_body_with_declared_encoding():
    assert decode_body('Grüße'.encode('utf-8'), 'utf-8') == 'Grüße'


def test_decode_body_with_unknown_encoding():
    assert decode_body(b'plain ascii text', 'no-such-codec') == 'plain ascii text'
    assert decode_body(b'plain ascii text') == 'plain ascii text'
