"""Accumulation and persistence of per-URL crawl failures."""

import json
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import aiofiles

from ..models import FailureRecord

logger = logging.getLogger(__name__)


class FailureReason(Enum):
    """Common failure reasons recorded for crawled URLs."""
    TIMEOUT = "timeout"
    RENDERING_UNAVAILABLE = "Browser mode required"
    UNKNOWN_ERROR = "unknown_error"


class FailureLog:
    """
    Ordered, thread-safe list of FailureRecord entries.

    Appends are serialized; `snapshot()` returns a copy so callers can
    iterate while crawling continues.
    """

    def __init__(self):
        self._records: List[FailureRecord] = []
        self._lock = threading.Lock()

    def append(self, record: FailureRecord) -> None:
        with self._lock:
            self._records.append(record)
        logger.warning(f"❌ Failed {record.url[:80]}: {record.reason} (retries: {record.retry_count})")

    def record(self, url: str, reason: Union[str, FailureReason], retry_count: int = 0) -> FailureRecord:
        """Build and append a FailureRecord."""
        if isinstance(reason, FailureReason):
            reason = reason.value
        failure = FailureRecord(url=url, reason=reason, retry_count=retry_count)
        self.append(failure)
        return failure

    def snapshot(self) -> List[FailureRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    async def dump(self, path: Optional[Union[str, Path]]) -> int:
        """
        Append all records to a JSONL file.

        Returns:
            Number of records written
        """
        if not path:
            return 0
        records = self.snapshot()
        if not records:
            return 0

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, 'a', encoding='utf-8') as f:
            for failure in records:
                await f.write(json.dumps(failure.to_dict(), ensure_ascii=False) + '\n')

        logger.info(f"💾 Wrote {len(records)} failed URLs to {path}")
        return len(records)
