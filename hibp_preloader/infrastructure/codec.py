"""
Fixed-width binary encoding of HashRecords.

Each record is 24 bytes: the 20 digest bytes verbatim followed by the count
as a big-endian unsigned 32-bit integer. Files are plain concatenations of
records with no header.
"""

import struct
from typing import Iterable, Iterator

from ..application.domain import HashRecord
from ..application.exceptions import CodecError

_RECORD = struct.Struct(">20sI")

RECORD_SIZE = _RECORD.size


def encode(record: HashRecord) -> bytes:
    """Packs one record into its 24-byte form."""
    return _RECORD.pack(record.digest, record.count)


def encode_many(records: Iterable[HashRecord]) -> bytes:
    return b"".join(_RECORD.pack(r.digest, r.count) for r in records)


def decode(data: bytes) -> HashRecord:
    """
    Unpacks a 24-byte record.

    Raises:
        CodecError: If `data` is not exactly RECORD_SIZE bytes long.
    """
    if len(data) != RECORD_SIZE:
        raise CodecError(f"Expected {RECORD_SIZE} bytes, got {len(data)}")
    digest, count = _RECORD.unpack(data)
    return HashRecord(digest=digest, count=count)


def decode_many(data: bytes) -> Iterator[HashRecord]:
    """Yields every record of a buffer holding whole records."""
    if len(data) % RECORD_SIZE:
        raise CodecError(
            f"Buffer of {len(data)} bytes is not a multiple of {RECORD_SIZE}"
        )
    for digest, count in _RECORD.iter_unpack(data):
        yield HashRecord(digest=digest, count=count)
