"""Tests for failure accumulation and JSONL persistence."""

import json

import pytest

from news_scraper.core.failure_log import FailureLog, FailureReason


def test_record_accepts_enum_and_text():
    log = FailureLog()
    first = log.record('https://example.com/a', FailureReason.TIMEOUT)
    second = log.record('https://example.com/b', 'HTTP 404 for https://example.com/b', retry_count=2)

    assert first.reason == 'timeout'
    assert second.retry_count == 2
    assert [f.url for f in log.snapshot()] == ['https://example.com/a', 'https://example.com/b']
    assert len(log) == 2


@pytest.mark.asyncio
async def test_dump_appends_jsonl(tmp_path):
    path = tmp_path / 'logs' / 'failed.jsonl'
    log = FailureLog()
    log.record('https://example.com/a', FailureReason.RENDERING_UNAVAILABLE, retry_count=1)

    assert await log.dump(path) == 1
    assert await log.dump(path) == 1

    lines = path.read_text(encoding='utf-8').splitlines()
    assert len(lines) == 2
    entry = json.loads(lines[0])
    assert entry['url'] == 'https://example.com/a'
    assert entry['reason'] == 'Browser mode required'
    assert entry['retry_count'] == 1
    assert entry['timestamp']


@pytest.mark.asyncio
async def test_dump_without_records_or_path(tmp_path):
    assert await FailureLog().dump(tmp_path / 'failed.jsonl') == 0
    assert not (tmp_path / 'failed.jsonl').exists()

    log = FailureLog()
    log.record('https://example.com/a', 'boom')
    assert await log.dump(None) == 0
