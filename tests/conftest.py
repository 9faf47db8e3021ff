from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "global-home"
os.environ.setdefault("CORECACHE_HOME", str(SANDBOX_HOME))
os.environ.pop("CORECACHE_CACHE_DIR", None)
os.environ.pop("CORECACHE_MANIFEST_POLICY", None)
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
for entry in (SRC, ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))
