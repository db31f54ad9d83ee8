"""
Decoder for the plain-text body of a range query.

A body holds zero or more lines of the form `<35 hex chars>:<decimal>`
separated by CRLF or LF. The queried 5-character prefix supplies the first
five hex characters of each 40-character digest.
"""

from typing import List

from ..application.domain import MAX_COUNT, HashRecord

_HEX_DIGITS = frozenset("0123456789ABCDEFabcdef")
_DEC_DIGITS = frozenset("0123456789")

_PREFIX_LENGTH = 5
_HEX_LENGTH = 40

# Scanner states.
_HASH = 0
_SEPARATOR = 1
_COUNT = 2
_LINE_END = 3


def parse_range_response(prefix: str, body: str) -> List[HashRecord]:
    """
    Parses one response body into records, in textual order.

    The function keeps no state between calls and can be run from several
    threads at once. Characters outside the expected positions are skipped.
    A line that ends before its digest is complete yields nothing, and the
    last record is dropped when the body has no trailing newline.

    Args:
        prefix: The 5-hex-character prefix that was queried.
        body: The response text.

    Returns:
        A new list of HashRecords.
    """
    if len(prefix) != _PREFIX_LENGTH:
        raise ValueError(f"Prefix must be {_PREFIX_LENGTH} characters: {prefix!r}")

    records: List[HashRecord] = []
    hex_hash = list(prefix.upper())
    state = _HASH
    count = 0

    for c in body:
        if c == "\r":
            continue

        if c == "\n":
            if state != _HASH:
                records.append(
                    HashRecord(bytes.fromhex("".join(hex_hash)), count)
                )
            del hex_hash[_PREFIX_LENGTH:]
            state = _HASH
            count = 0
        elif state == _HASH:
            if c in _HEX_DIGITS:
                hex_hash.append(c.upper())
                if len(hex_hash) == _HEX_LENGTH:
                    state = _SEPARATOR
        elif state == _SEPARATOR:
            # Always ':' in a well-formed body.
            state = _COUNT
        elif state == _COUNT:
            if c in _DEC_DIGITS:
                count = (count * 10 + int(c)) & MAX_COUNT
            else:
                state = _LINE_END

    return records
