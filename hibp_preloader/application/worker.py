"""
The fetch worker: drains a WorkQueue of 4-nibble groups into a ResultStore.
"""

import logging
from typing import Callable, List, Optional

from .domain import NIBBLES, HashRecord, RangeSource
from .exceptions import FetchCancelled
from .partitioning import WorkQueue
from .shutdown import ShutdownController
from .store import ResultStore


class FetchWorker:
    """
    Fetches the 16 prefixes of each group it pops and merges them as a unit.

    A group is merged only once all 16 range queries succeeded. On shutdown
    the worker returns immediately and whatever it fetched for its current
    group is discarded, so at most one group per worker is lost.
    """

    def __init__(
        self,
        worker_id: int,
        queue: WorkQueue,
        store: ResultStore,
        source: RangeSource,
        shutdown: ShutdownController,
        on_group_done: Optional[Callable[[str, int], None]] = None,
    ):
        """Initializes the worker with the shared state of one batch."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.worker_id = worker_id
        self.queue = queue
        self.store = store
        self.source = source
        self.shutdown = shutdown
        self.on_group_done = on_group_done

    async def _fetch_group(self, group: str) -> Optional[List[HashRecord]]:
        """Collects all 16 prefixes of a group, or None when cancelled."""
        buffer: List[HashRecord] = []
        for nibble in NIBBLES:
            if self.shutdown.is_set():
                return None
            prefix = group + nibble
            try:
                records = await self.source.get_range(prefix)
            except FetchCancelled:
                return None
            self.logger.debug(
                f"Worker {self.worker_id}: {prefix} -> {len(records)} hashes"
            )
            buffer.extend(records)
        return buffer

    async def run(self) -> int:
        """
        Processes groups until the queue is drained or a stop is requested.

        Returns:
            The number of groups this worker merged.
        """
        merged = 0
        while not self.shutdown.is_set():
            group = self.queue.pop()
            if group is None:
                self.logger.debug(f"Worker {self.worker_id}: queue is empty.")
                return merged

            records = await self._fetch_group(group)
            if records is None:
                break

            total = self.store.append(records)
            merged += 1
            self.logger.debug(
                f"Worker {self.worker_id}: merged group {group}, "
                f"total hashes collected: {total}"
            )
            if self.on_group_done is not None:
                self.on_group_done(group, len(records))

        self.logger.debug(f"Worker {self.worker_id} quitting ...")
        return merged
