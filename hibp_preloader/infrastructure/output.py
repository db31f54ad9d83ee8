"""
File implementation of the RecordSink port, plus readers for the written
dataset.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..application.domain import DIGEST_SIZE, HashRecord, RecordSink
from ..application.exceptions import PersistenceError

from . import codec

_READ_CHUNK_RECORDS = 65536


class BinaryOutputFile(RecordSink):
    """Appends finalized batches to a flat file of 24-byte records."""

    def __init__(self, path: Path):
        """Initializes the sink."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def truncate(self):
        """Discards any existing output, e.g. when starting over."""
        self.logger.info(f"Removing {self._path}")
        self._path.unlink(missing_ok=True)

    def append(self, records: Sequence[HashRecord]) -> int:
        """
        Appends records and syncs them to disk before returning.

        On a failed write the file is cut back to its previous length so a
        partially written batch never stays behind.

        Raises:
            PersistenceError: If the file cannot be written.
        """

        data = codec.encode_many(records)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "ab") as f:
                offset = f.tell()
                try:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                except OSError:
                    f.truncate(offset)
                    raise
        except OSError as e:
            raise PersistenceError(
                f"Failed to append {len(records)} records to {self._path}: {e}"
            ) from e

        self.logger.debug(f"Appended {len(data)} bytes to {self._path.name}")
        return len(data)


def iter_records(path: Path) -> Iterator[HashRecord]:
    """Yields every record of an output file in file order."""
    chunk_size = codec.RECORD_SIZE * _READ_CHUNK_RECORDS
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            yield from codec.decode_many(chunk)


def lookup(path: Path, digest: bytes) -> Optional[HashRecord]:
    """
    Binary-searches a sorted output file for a digest.

    Returns:
        The matching record, or None if the digest is not present.
    """
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"Digest must be {DIGEST_SIZE} bytes")

    with open(path, "rb") as f:
        lo, hi = 0, os.fstat(f.fileno()).st_size // codec.RECORD_SIZE
        while lo < hi:
            mid = (lo + hi) // 2
            f.seek(mid * codec.RECORD_SIZE)
            record = codec.decode(f.read(codec.RECORD_SIZE))
            if record.digest < digest:
                lo = mid + 1
            elif record.digest > digest:
                hi = mid
            else:
                return record
    return None
