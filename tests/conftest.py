import asyncio
from typing import Callable, Dict, List, Optional

import pytest

from hibp_preloader.application.domain import HashRecord, RangeSource
from hibp_preloader.application.exceptions import FetchCancelled
from hibp_preloader.application.shutdown import ShutdownController


def make_record(prefix: str, index: int, count: Optional[int] = None) -> HashRecord:
    """Builds a record whose digest starts with the given 5-char prefix."""
    digest = bytes.fromhex(prefix + f"{index:035X}")
    return HashRecord(digest=digest, count=index + 1 if count is None else count)


def make_body(records: List[HashRecord], newline: str = "\r\n") -> str:
    """Renders records the way the range endpoint does."""
    return "".join(
        f"{r.digest.hex().upper()[5:]}:{r.count}{newline}" for r in records
    )


class FakeRangeSource(RangeSource):
    """Answers every prefix with `per_prefix` synthetic records."""

    def __init__(
        self,
        shutdown: ShutdownController,
        per_prefix: int = 2,
        on_request: Optional[Callable[[str], None]] = None,
    ):
        self.shutdown = shutdown
        self.per_prefix = per_prefix
        self.on_request = on_request
        self.requests: List[str] = []

    def records_for(self, prefix: str) -> List[HashRecord]:
        return [make_record(prefix, i) for i in range(self.per_prefix)]

    async def get_range(self, prefix: str) -> List[HashRecord]:
        if self.shutdown.is_set():
            raise FetchCancelled(prefix)
        self.requests.append(prefix)
        if self.on_request is not None:
            self.on_request(prefix)
        await asyncio.sleep(0)
        return self.records_for(prefix)


@pytest.fixture()
def shutdown() -> ShutdownController:
    return ShutdownController()


@pytest.fixture()
def fake_source(shutdown: ShutdownController) -> FakeRangeSource:
    return FakeRangeSource(shutdown)


@pytest.fixture()
def sample_body() -> str:
    """The documented single-line response for prefix 5BAA6."""
    return "1E4C9B93F3F0682250B6CF8331B7EE68FD8:12345\r\n"


@pytest.fixture()
def group_digests() -> Callable[[List[HashRecord]], Dict[str, int]]:
    """Counts records per 4-nibble group of their digest."""

    def _count(records: List[HashRecord]) -> Dict[str, int]:
        groups: Dict[str, int] = {}
        for record in records:
            group = record.digest.hex().upper()[:4]
            groups[group] = groups.get(group, 0) + 1
        return groups

    return _count
