# pngstrip/utils/signature.py
"""
Magic-number checks to reject extension-spoofed uploads before we parse them.
"""
from __future__ import annotations

from pngstrip.cleaners.png import PNG_SIGNATURE

def _starts(data: bytes, prefix: bytes) -> bool:
    return data.startswith(prefix)

def _is_png(data: bytes) -> bool:
    return _starts(data, PNG_SIGNATURE)

def detect_extension(data: bytes) -> str | None:
    """Return a normalized extension (with dot), or None if unsupported."""
    if _is_png(data): return ".png"
    return None

def ext_equivalent(a: str, b: str) -> bool:
    """True if both extensions name the same format (case and leading dot ignored)."""
    return a.lstrip(".").lower() == b.lstrip(".").lower()
