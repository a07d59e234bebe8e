from __future__ import annotations

import os

os.environ.setdefault("IMAGEHOST_CLEANUP_INTERVAL_MS", "0")
os.environ.setdefault("IMAGEHOST_LOG_LEVEL", "WARNING")
