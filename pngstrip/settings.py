# pngstrip/settings.py
from pathlib import Path
import os
from datetime import timedelta

# Per-user default, never inside the installed package
BASE_DIR = Path(os.getenv("PNGSTRIP_DATA_DIR", Path.home() / ".pngstrip"))
# Created on first use by the server, not at import
OUTPUT_DIR = BASE_DIR / "outputs"

MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", 50 * 1024 * 1024))
RETENTION = timedelta(minutes=int(os.getenv("RETENTION_MINUTES", 2)))
CLEANUP_INTERVAL_SECONDS = int(os.getenv("CLEANUP_INTERVAL_SECONDS", 120))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ALLOWED_EXTENSIONS = {".png"}
