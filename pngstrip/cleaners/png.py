# pngstrip/cleaners/png.py
"""
PNG chunk filter.

Walks the chunk list of a PNG byte string, verifies each chunk's CRC and
rebuilds a new PNG out of the chunks we want to keep:
  - pixel data and rendering metadata (IHDR, PLTE, IDAT, IEND, tRNS, gAMA,
    cHRM, sRGB, iCCP, sBIT, pHYs) are copied byte-for-byte
  - everything else (text, timestamps, background hints, EXIF, private
    chunks) is dropped and counted in RemovalStats

Kept chunks are sliced from the input and never re-encoded, so their CRCs
stay exactly as they were. Any malformed or corrupted chunk aborts the whole
run: there is no partial output.
"""
from __future__ import annotations

import logging
import struct
import zlib
from dataclasses import dataclass, asdict
from typing import BinaryIO, Iterator

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# length (4) + type (4) + crc (4)
CHUNK_OVERHEAD = 12

PRESERVED_CHUNKS = frozenset({
    # Core
    "IHDR", "PLTE", "IDAT", "IEND",
    # Transparency
    "tRNS",
    # Color space
    "gAMA", "cHRM", "sRGB", "iCCP", "sBIT",
    # Physical dimensions
    "pHYs",
})

# Dropped chunk type -> RemovalStats attribute. Anything missing lands in "other_chunks".
_REMOVAL_BUCKETS = {
    "tEXt": "text_chunks",
    "zTXt": "text_chunks",
    "iTXt": "text_chunks",
    "tIME": "time_chunk",
    "bKGD": "background",
    "eXIf": "exif_data",
}


class StripError(Exception):
    """Base class for everything the stripper raises."""


class FormatError(StripError, ValueError):
    def __init__(self, message: str, offset: int | None = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} at offset {offset}"
        super().__init__(message)


class IntegrityError(StripError, ValueError):
    def __init__(self, message: str, chunk_type: str, offset: int):
        self.chunk_type = chunk_type
        self.offset = offset
        super().__init__(f"{message} for chunk {chunk_type} at offset {offset}")


class SourceReadError(StripError, OSError):
    pass


class SinkWriteError(StripError, OSError):
    pass


@dataclass
class RemovalStats:
    """Bytes removed per category. Sizes are full on-wire chunk sizes."""
    text_chunks: int = 0     # tEXt, zTXt, iTXt
    time_chunk: int = 0      # tIME
    background: int = 0      # bKGD
    exif_data: int = 0       # eXIf
    other_chunks: int = 0    # everything else that was dropped
    total: int = 0

    def add(self, chunk_type: str, size: int) -> None:
        bucket = _REMOVAL_BUCKETS.get(chunk_type, "other_chunks")
        setattr(self, bucket, getattr(self, bucket) + size)
        self.total += size

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def should_keep(chunk_type: str) -> bool:
    return chunk_type in PRESERVED_CHUNKS


def _decode_type(raw: bytes) -> str:
    # latin-1 maps every byte, so a garbage type tag still gets a printable name
    return raw.decode("latin-1")


def iter_chunks(data: bytes) -> Iterator[tuple[int, str, int, int]]:
    """
    Validate ``data`` as a PNG and yield ``(offset, chunk_type, length, crc)``
    for every chunk, in file order. Raises FormatError / IntegrityError at
    the first problem.
    """
    if len(data) < len(PNG_SIGNATURE):
        raise FormatError("too short")
    if data[:len(PNG_SIGNATURE)] != PNG_SIGNATURE:
        raise FormatError("bad signature")

    offset = len(PNG_SIGNATURE)
    end = len(data)
    while offset < end:
        if offset + 8 > end:
            raise FormatError("incomplete record header", offset)

        (length,) = struct.unpack_from(">I", data, offset)
        # Bounds first: a bogus length must never drive a read past the buffer.
        if offset + CHUNK_OVERHEAD + length > end:
            raise FormatError("record exceeds container bounds", offset)

        chunk_type = _decode_type(data[offset + 4:offset + 8])
        body_end = offset + 8 + length
        (stored_crc,) = struct.unpack_from(">I", data, body_end)
        if zlib.crc32(data[offset + 4:body_end]) & 0xFFFFFFFF != stored_crc:
            raise IntegrityError("checksum mismatch", chunk_type, offset)

        yield offset, chunk_type, length, stored_crc
        offset += CHUNK_OVERHEAD + length


def strip(data: bytes) -> tuple[bytes, RemovalStats]:
    """Return ``(cleaned_png, stats)`` for the PNG in ``data``."""
    stats = RemovalStats()
    kept = [PNG_SIGNATURE]
    for offset, chunk_type, length, _crc in iter_chunks(data):
        size = CHUNK_OVERHEAD + length
        if should_keep(chunk_type):
            kept.append(data[offset:offset + size])
        else:
            logger.debug("dropping %s chunk (%d bytes) at offset %d", chunk_type, size, offset)
            stats.add(chunk_type, size)
    return b"".join(kept), stats


def strip_reader(source: BinaryIO) -> tuple[bytes, RemovalStats]:
    """Read ``source`` to the end, then strip it."""
    try:
        data = source.read()
    except (OSError, ValueError) as e:
        # ValueError: the source was already closed
        raise SourceReadError(f"failed to read data: {e}") from e
    return strip(data)


def strip_writer(data: bytes, sink: BinaryIO) -> RemovalStats:
    """Strip ``data`` and write the result to ``sink`` in a single call."""
    cleaned, stats = strip(data)
    try:
        sink.write(cleaned)
    except (OSError, ValueError) as e:
        raise SinkWriteError(f"failed to write data: {e}") from e
    return stats
