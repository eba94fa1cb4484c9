# scripts/cli_clean.py
r"""
CLI PNG metadata stripper (no web server needed).
Usage examples (from project root, with your venv activated):

  python scripts/cli_clean.py path/to/pic.png
  python scripts/cli_clean.py path/to/folder          (processes all PNGs inside, recursively)
  python scripts/cli_clean.py pic.png --list          (show chunks, change nothing)
  python scripts/cli_clean.py pic.png --verify        (decode before/after and compare pixels)

Outputs are written next to the originals as *_clean.png unless --in-place is given.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Make "pngstrip" importable when running by path from a source checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pngstrip.cleaners.images import clean_image, verify_pixels
from pngstrip.cleaners.png import StripError
from pngstrip.settings import ALLOWED_EXTENSIONS
from pngstrip.utils.chunks import format_chunks, list_chunks

_BUCKET_LABELS = {
    "text_chunks": "text (tEXt/zTXt/iTXt)",
    "time_chunk": "time (tIME)",
    "background": "background (bKGD)",
    "exif_data": "EXIF (eXIf)",
    "other_chunks": "other",
}

def print_stats(stats) -> None:
    for key, label in _BUCKET_LABELS.items():
        size = getattr(stats, key)
        if size:
            print(f"    {label}: {size} bytes")
    print(f"    total: {stats.total} bytes")

def list_one(path: Path) -> bool:
    try:
        data = path.read_bytes()
        chunks = list_chunks(data)
    except (OSError, StripError) as e:
        print(f"❌ {path.name}: {e}")
        return False
    print(f"File: {path} ({len(data)} bytes)")
    print("Chunks:")
    for line in format_chunks(chunks):
        print(line)
    return True

def clean_one(path: Path, in_place: bool = False, verify: bool = False) -> Path | None:
    dst = path if in_place else path.with_name(f"{path.stem}_clean{path.suffix}")
    # Whatever sat at dst before this run (the source itself when in place)
    previous = dst.read_bytes() if dst.exists() else None
    try:
        stats = clean_image(path, dst)
        if verify:
            verify_pixels(path.read_bytes() if not in_place else previous, dst.read_bytes())
    except (OSError, StripError) as e:
        print(f"❌ Failed to clean {path.name}: {e}")
        if previous is None:
            dst.unlink(missing_ok=True)
        elif dst.exists() and dst.read_bytes() != previous:
            dst.write_bytes(previous)
        return None
    print(f"✅ Cleaned: {path.name} → {dst.name}")
    print_stats(stats)
    return dst

def iter_files(target: Path):
    if target.is_file():
        yield target
    else:
        for p in sorted(target.rglob("*")):
            if p.is_file() and p.suffix.lower() in ALLOWED_EXTENSIONS and not p.stem.endswith("_clean"):
                yield p

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Remove non-essential metadata chunks from PNG files.")
    parser.add_argument("path", help="File or folder to clean")
    parser.add_argument("--list", action="store_true", help="Only list chunks, do not write anything")
    parser.add_argument("--verify", action="store_true", help="Check that pixels are unchanged after cleaning")
    parser.add_argument("--in-place", action="store_true", help="Overwrite the originals")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    return parser

def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    root = Path(args.path).expanduser().resolve()
    if not root.exists():
        print(f"❌ Not found: {root}")
        return 1

    seen = 0
    failed = 0
    for f in iter_files(root):
        seen += 1
        if args.list:
            ok = list_one(f)
        else:
            ok = clean_one(f, in_place=args.in_place, verify=args.verify) is not None
        if not ok:
            failed += 1

    if not seen:
        print("ℹ️ Nothing to do. Did you pass a PNG file or a folder containing PNGs?")
    return 1 if failed else 0

if __name__ == "__main__":
    sys.exit(main())
