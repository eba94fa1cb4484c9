# pngstrip/utils/chunks.py
"""
Chunk listing for debugging and for the /inspect endpoint.
"""
from __future__ import annotations

from dataclasses import dataclass

from pngstrip.cleaners.png import CHUNK_OVERHEAD, iter_chunks, should_keep


@dataclass(frozen=True)
class ChunkInfo:
    offset: int
    type: str
    length: int
    crc: int

    @property
    def size(self) -> int:
        return CHUNK_OVERHEAD + self.length

    @property
    def keep(self) -> bool:
        return should_keep(self.type)

    def as_dict(self) -> dict:
        return {
            "offset": self.offset,
            "type": self.type,
            "length": self.length,
            "size": self.size,
            "crc": f"{self.crc:08x}",
            "keep": self.keep,
        }


def list_chunks(data: bytes) -> list[ChunkInfo]:
    return [ChunkInfo(offset, chunk_type, length, crc) for offset, chunk_type, length, crc in iter_chunks(data)]


def format_chunks(infos: list[ChunkInfo]) -> list[str]:
    return [f"  {c.type}: {c.length} bytes ({'keep' if c.keep else 'drop'})" for c in infos]
