from __future__ import annotations
import string
from pathlib import Path
from typing import Iterable, Iterator, List

from ..config import DEFAULT_ADDRESS_WIDTH
from ..errors import TraceFormatError
from ..utils.logging import get_logger
from .access import AccessKind, MemoryAccess

logger = get_logger(__name__)

_HEX_DIGITS = frozenset(string.hexdigits)


def parse_trace_line(line: str, sequence_number: int, line_number: int | None = None,
                     address_width: int = DEFAULT_ADDRESS_WIDTH) -> MemoryAccess:
    """Parses one '<R|W>:<size>:<hexAddress>' record."""
    fields = [f.strip() for f in line.strip().split(":")]
    if len(fields) != 3:
        raise TraceFormatError(f"expected 3 colon-separated fields, got {len(fields)}", line_number, line)
    kind_token, size_token, address_token = fields

    try:
        kind = AccessKind(kind_token)
    except ValueError:
        raise TraceFormatError(f"unknown direction {kind_token!r}, expected 'R' or 'W'", line_number, line) from None

    if not (size_token.isascii() and size_token.isdigit()):
        raise TraceFormatError(f"size {size_token!r} is not a non-negative integer", line_number, line)

    if not address_token or not _HEX_DIGITS.issuperset(address_token):
        raise TraceFormatError(f"address {address_token!r} is not hexadecimal", line_number, line)
    address = int(address_token, 16)
    if address >> address_width:
        raise TraceFormatError(f"address {address_token!r} does not fit in {address_width} bits", line_number, line)

    return MemoryAccess(
        sequence_number=sequence_number,
        kind=kind,
        size_bytes=int(size_token),
        address=address,
        line_number=line_number,
    )


def _decode_line(raw: str | bytes, line_number: int) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TraceFormatError(f"not valid UTF-8 ({e.reason})", line_number, raw.decode("utf-8", "replace")) from e


def iter_trace(lines: Iterable[str | bytes], strict: bool = True,
               address_width: int = DEFAULT_ADDRESS_WIDTH) -> Iterator[MemoryAccess]:
    """Yields MemoryAccess records in trace order.

    Lines may be str or undecoded bytes. In strict mode the first malformed
    line, including one that is not valid UTF-8, raises TraceFormatError. Otherwise
    the line is logged and skipped, and sequence numbers only count the
    records that were accepted.
    """
    sequence_number = 0
    for line_number, line in enumerate(lines, start=1):
        try:
            line = _decode_line(line, line_number)
            if not line.strip():
                continue
            access = parse_trace_line(line, sequence_number, line_number, address_width)
        except TraceFormatError as e:
            if strict:
                raise
            logger.warning("Skipping malformed trace record (%s)", e)
            continue
        sequence_number += 1
        yield access


def parse_trace(lines: Iterable[str | bytes], strict: bool = True,
                address_width: int = DEFAULT_ADDRESS_WIDTH) -> List[MemoryAccess]:
    return list(iter_trace(lines, strict=strict, address_width=address_width))


def load_trace(path: str | Path, strict: bool = True,
               address_width: int = DEFAULT_ADDRESS_WIDTH) -> List[MemoryAccess]:
    """Reads a whole trace file into memory so it can be replayed more than once."""
    # Binary mode so a bad byte sequence is reported against its own line
    with open(path, "rb") as f:
        accesses = parse_trace(f, strict=strict, address_width=address_width)
    logger.info("Loaded %d memory accesses from %s", len(accesses), path)
    return accesses
