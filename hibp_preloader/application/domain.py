"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the application's business logic operates on.
"""

import dataclasses
from pathlib import Path

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

DIGEST_SIZE = 20
MAX_COUNT = 0xFFFFFFFF

# Exclusive upper bound of the 4-nibble group space.
MAX_PREFIX = 0x10000
DEFAULT_PREFIX_STEP = 0x40

NIBBLES = "0123456789ABCDEF"


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class HashRecord:
    """A SHA-1 digest together with its reported occurrence count."""

    digest: bytes
    count: int

    def __post_init__(self):
        if len(self.digest) != DIGEST_SIZE:
            raise ValueError(
                f"Digest must be {DIGEST_SIZE} bytes, got {len(self.digest)}"
            )
        if not 0 <= self.count <= MAX_COUNT:
            raise ValueError(f"Count {self.count} is not an unsigned 32-bit value")

    def __str__(self):
        return f"{self.digest.hex().upper()}:{self.count}"


@dataclasses.dataclass(frozen=True)
class PrefixBatch:
    """A half-open interval [start, end) of 4-nibble groups."""

    start: int
    end: int

    def groups(self) -> List[str]:
        """Renders every group of the batch as a 4-hex-character string."""
        return [format_group(value) for value in range(self.start, self.end)]

    def __len__(self):
        return self.end - self.start

    def __str__(self):
        return f"{self.start:04x}-{self.end:04x}"


@dataclasses.dataclass(frozen=True)
class Checkpoint:
    """Marker of the last fully flushed batch and the file it went to."""

    batch: PrefixBatch
    output_path: Path


@dataclasses.dataclass(frozen=True)
class RunSummary:
    """Outcome of one download run."""

    batches_completed: int
    records_written: int
    cancelled: bool


def format_group(value: int) -> str:
    """Formats a group number as four uppercase hex digits."""
    if not 0 <= value < MAX_PREFIX:
        raise ValueError(f"Group {value:#x} outside of [0, {MAX_PREFIX:#x})")
    return f"{value:04X}"


# --- Ports (Interfaces) ---

class RangeSource(ABC):
    """A port for any source answering 5-character prefix range queries."""

    @abstractmethod
    async def get_range(self, prefix: str) -> List[HashRecord]:
        """
        Fetches every record sharing the given prefix.
        Retries transient failures until it succeeds or a shutdown is
        requested, in which case FetchCancelled is raised.
        """
        pass


class RecordSink(ABC):
    """A port for the append-only destination of finalized records."""

    @property
    @abstractmethod
    def path(self) -> Path:
        """The location the records are written to."""
        pass

    @abstractmethod
    def append(self, records: Sequence[HashRecord]) -> int:
        """
        Durably appends records, returning the number of bytes written.
        Raises PersistenceError on failure.
        """
        pass


class CheckpointStore(ABC):
    """A port for persisting the last completed batch."""

    @abstractmethod
    def load(self) -> Optional[Checkpoint]:
        """Returns the stored checkpoint, or None if there is none."""
        pass

    @abstractmethod
    def save(self, checkpoint: Checkpoint):
        """Replaces the stored checkpoint. Raises PersistenceError."""
        pass

    @abstractmethod
    def clear(self):
        """Removes the stored checkpoint if present."""
        pass
