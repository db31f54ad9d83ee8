"""
The core application service and pipeline, containing pure business logic.

This module defines the main orchestrator (PreloaderService) for the keyspace
download and the pipeline (BatchPipeline) that fetches a single batch of the
prefix space with a pool of concurrent workers.
"""

import asyncio
import logging
import time
from typing import Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from .domain import *
from .partitioning import PrefixSpace, WorkQueue
from .shutdown import ShutdownController
from .store import ResultStore
from .worker import FetchWorker

logger = logging.getLogger(__name__)


class BatchPipeline:
    """Encapsulates the concurrent fetch of one batch into a ResultStore."""

    def __init__(
        self,
        source: RangeSource,
        shutdown: ShutdownController,
        workers: int,
        show_progress: bool = True,
    ):
        """Initializes the pipeline with necessary dependencies (ports)."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.source = source
        self.shutdown = shutdown
        self.workers = workers
        self.show_progress = show_progress

    async def run(self, batch: PrefixBatch) -> Optional[ResultStore]:
        """
        Drains the batch with up to `workers` concurrent FetchWorkers.

        Args:
            batch: The interval of 4-nibble groups to fetch.

        Returns:
            The filled ResultStore, or None if a shutdown was requested
            before every worker finished.

        Raises:
            RangeQueryError: If a worker gave up on a prefix. The other
                workers are cancelled before it propagates.
        """

        queue = WorkQueue.for_batch(batch)
        store = ResultStore()
        pool_size = min(self.workers, len(queue))

        self.logger.debug(
            f"Starting {pool_size} workers for {len(queue)} groups of {batch}"
        )

        with tqdm(
            total=len(batch),
            unit="group",
            desc=str(batch),
            disable=not self.show_progress,
        ) as progress_bar:
            workers = [
                FetchWorker(
                    worker_id,
                    queue,
                    store,
                    self.source,
                    self.shutdown,
                    on_group_done=lambda group, count: progress_bar.update(1),
                )
                for worker_id in range(pool_size)
            ]
            tasks = [asyncio.create_task(worker.run()) for worker in workers]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                # A failed worker takes its siblings down with it.
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        if self.shutdown.is_set():
            self.logger.info(f"Batch {batch} interrupted, discarding it.")
            return None

        return store


class PreloaderService:
    """Orchestrates the batch loop: fetch, flush, checkpoint, advance."""

    def __init__(
        self,
        source: RangeSource,
        sink: RecordSink,
        checkpoints: CheckpointStore,
        shutdown: ShutdownController,
        workers: int,
        show_progress: bool = True,
    ):
        """Initializes the service and the reusable batch pipeline."""
        self.sink = sink
        self.checkpoints = checkpoints
        self.shutdown = shutdown
        self.pipeline = BatchPipeline(source, shutdown, workers, show_progress)

    async def _flush(self, batch: PrefixBatch, store: ResultStore) -> int:
        """Writes a finished batch, then records it in the checkpoint."""
        started = time.monotonic()
        records = store.finalize()
        logger.info(
            f"Writing {len(records)} entries of {batch} to {self.sink.path} ..."
        )
        await asyncio.to_thread(self.sink.append, records)
        self.checkpoints.save(Checkpoint(batch, self.sink.path))
        logger.debug(
            f"Flushed {batch} in {(time.monotonic() - started) * 1000:.0f} ms"
        )
        return len(records)

    async def run(
        self,
        first: int = 0,
        last: int = MAX_PREFIX,
        step: int = DEFAULT_PREFIX_STEP,
    ) -> RunSummary:
        """
        Downloads [first, last) batch by batch.

        Each batch is appended to the sink and checkpointed only once all of
        its groups were fetched. The checkpoint is removed when the whole
        range completes without a shutdown.

        Raises:
            ConfigurationError: If the range is invalid.
            PersistenceError: If a batch cannot be written.
        """

        if first == last:
            logger.info(f"Nothing left to download at {first:04x}.")
            self.checkpoints.clear()
            return RunSummary(0, 0, False)

        space = PrefixSpace(first, last, step)
        logger.info(
            f"Starting download of [{first:04x}, {last:04x}) "
            f"in {len(space)} batches of {step:#x} groups."
        )

        batches_completed = 0
        records_written = 0
        cancelled = False

        with logging_redirect_tqdm():
            for batch in space.batches():
                if self.shutdown.is_set():
                    cancelled = True
                    break

                logger.info(
                    f"Fetching hashes in [{batch.start:04x}0h, "
                    f"{batch.end - 1:04x}fh] ..."
                )
                started = time.monotonic()
                store = await self.pipeline.run(batch)
                if store is None:
                    cancelled = True
                    break
                logger.info(
                    f"Fetched {len(store)} hashes of {batch} in "
                    f"{time.monotonic() - started:.1f} s"
                )

                records_written += await self._flush(batch, store)
                batches_completed += 1

        if cancelled:
            logger.info(
                f"Stopped after {batches_completed} batches; "
                f"the checkpoint names the last completed one."
            )
        else:
            self.checkpoints.clear()
            logger.info("All batches completed.")

        return RunSummary(batches_completed, records_written, cancelled)
