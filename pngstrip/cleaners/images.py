# pngstrip/cleaners/images.py
"""
File-level PNG cleaning:
1) Read the source, run the chunk filter, write the result to a new file.
2) Optionally decode both versions with Pillow and make sure the pixels match.
"""
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageChops

from pngstrip.cleaners.png import RemovalStats, SinkWriteError, SourceReadError, StripError, strip

logger = logging.getLogger(__name__)


class PixelMismatchError(StripError):
    pass


def _read_source(src: Path) -> bytes:
    try:
        return src.read_bytes()
    except OSError as e:
        raise SourceReadError(f"failed to read {src}: {e}") from e


def _write_output(dst: Path, data: bytes) -> None:
    # Write next to the destination first so a failed write never leaves a half file behind
    tmp = dst.with_name(f".{dst.name}.part")
    try:
        tmp.write_bytes(data)
        tmp.replace(dst)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise SinkWriteError(f"failed to write {dst}: {e}") from e


def clean_image(src: Path, dst: Path) -> RemovalStats:
    cleaned, stats = strip(_read_source(src))
    _write_output(dst, cleaned)
    logger.info("cleaned %s -> %s (%d bytes removed)", src.name, dst.name, stats.total)
    return stats


def verify_pixels(original: bytes, cleaned: bytes) -> None:
    """Raise PixelMismatchError unless both PNGs decode to the same image."""
    with Image.open(BytesIO(original)) as before, Image.open(BytesIO(cleaned)) as after:
        if before.size != after.size:
            raise PixelMismatchError(f"image size differs: {before.size} != {after.size}")
        if before.mode != after.mode:
            raise PixelMismatchError(f"image mode differs: {before.mode} != {after.mode}")
        # Compare in RGBA so palette and transparency are taken into account
        diff = ImageChops.difference(before.convert("RGBA"), after.convert("RGBA"))
        if diff.getbbox() is not None:
            raise PixelMismatchError(f"pixel data differs in region {diff.getbbox()}")
