"""Batch-scoped aggregation of the records fetched by all workers."""

import operator
import threading
from typing import Iterable, List

from .domain import HashRecord


class ResultStore:
    """
    Shared record collection for one batch.

    Workers splice whole group buffers in with `append`, one lock
    acquisition per call. `finalize` sorts by digest once every worker
    of the batch has stopped. Duplicate digests are kept as they are.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[HashRecord] = []

    def append(self, records: Iterable[HashRecord]) -> int:
        """Merges a worker-local buffer and returns the new total size."""
        with self._lock:
            self._records.extend(records)
            return len(self._records)

    def finalize(self) -> List[HashRecord]:
        """Stable-sorts the collection by ascending digest bytes."""
        with self._lock:
            self._records.sort(key=operator.attrgetter("digest"))
            return self._records

    def __len__(self):
        with self._lock:
            return len(self._records)
