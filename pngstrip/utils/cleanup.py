# pngstrip/utils/cleanup.py
"""
Periodic cleanup of expired files in OUTPUT_DIR.
We scan after every batch, and also run a background thread.
"""

from datetime import datetime
from pathlib import Path
from pngstrip.settings import OUTPUT_DIR, RETENTION
import logging
import time
import threading

logger = logging.getLogger(__name__)

def _is_old(path: Path) -> bool:
    try:
        mtime = datetime.fromtimestamp(path.stat().st_mtime)
        return (datetime.now() - mtime) > RETENTION
    except FileNotFoundError:
        return False

def cleanup_once(root: Path = OUTPUT_DIR) -> int:
    removed = 0
    for p in root.glob("*"):
        try:
            if p.is_file() and _is_old(p):
                p.unlink(missing_ok=True)
                removed += 1
        except OSError as e:
            # Another worker may be serving or deleting the same file
            logger.warning("could not remove %s: %s", p.name, e)
    if removed:
        logger.debug("removed %d expired file(s) from %s", removed, root)
    return removed

def start_background_cleanup(interval_seconds: int = 120) -> threading.Thread:
    """
    Starts a daemon thread that periodically deletes expired outputs.
    """
    def _loop():
        while True:
            cleanup_once()
            time.sleep(interval_seconds)

    t = threading.Thread(target=_loop, name="cleanup-thread", daemon=True)
    t.start()
    return t
