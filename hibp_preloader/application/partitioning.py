"""
Partitioning of the prefix space into batches and per-batch work queues.
"""

import collections
import threading
from typing import Deque, Iterable, Iterator, Optional

from .domain import DEFAULT_PREFIX_STEP, MAX_PREFIX, PrefixBatch
from .exceptions import ConfigurationError


class PrefixSpace:
    """Splits [first, last) into contiguous batches of a fixed width."""

    def __init__(
        self,
        first: int = 0,
        last: int = MAX_PREFIX,
        step: int = DEFAULT_PREFIX_STEP,
    ):
        """
        Initializes the prefix space.

        Raises:
            ConfigurationError: If the bounds fall outside [0, 0x10000),
                                are empty, or the step is not positive.
        """
        if not 0 <= first < MAX_PREFIX:
            raise ConfigurationError(
                f"First prefix {first:#06x} must be within [0000, ffff]."
            )
        if not first < last <= MAX_PREFIX:
            raise ConfigurationError(
                f"Last prefix {last:#06x} must be above {first:#06x} "
                f"and at most {MAX_PREFIX:#06x}."
            )
        if step <= 0:
            raise ConfigurationError(f"Prefix step must be positive, got {step}.")

        self.first = first
        self.last = last
        self.step = step

    def batches(self) -> Iterator[PrefixBatch]:
        """Yields [s, min(s + step, last)) for s = first, first + step, ..."""
        for start in range(self.first, self.last, self.step):
            yield PrefixBatch(start, min(start + self.step, self.last))

    def __len__(self):
        return -(-(self.last - self.first) // self.step)


class WorkQueue:
    """A mutex-guarded FIFO of 4-nibble groups which never blocks on pop."""

    def __init__(self, groups: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._items: Deque[str] = collections.deque(groups)

    @classmethod
    def for_batch(cls, batch: PrefixBatch) -> "WorkQueue":
        return cls(batch.groups())

    def push(self, group: str):
        with self._lock:
            self._items.append(group)

    def pop(self) -> Optional[str]:
        """Removes and returns the oldest group, or None if drained."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def __len__(self):
        with self._lock:
            return len(self._items)
