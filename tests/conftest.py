# tests/conftest.py
import os
import tempfile

# Keep server outputs out of the source tree; must run before pngstrip.settings is imported
os.environ.setdefault("PNGSTRIP_DATA_DIR", tempfile.mkdtemp(prefix="pngstrip-tests-"))
