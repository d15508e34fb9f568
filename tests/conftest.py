from __future__ import annotations

import sys
import os
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "global-home"
os.environ.setdefault("RDCALL_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
PYTEST_TEMP = Path(os.environ.get("PYTEST_DEBUG_TEMPROOT", "/tmp/rdcall-pytest")).resolve()
os.environ.setdefault("PYTEST_DEBUG_TEMPROOT", str(PYTEST_TEMP))
PYTEST_TEMP.mkdir(parents=True, exist_ok=True)
for name in ("RD_URL", "RD_TOKEN", "RD_TOKEN_ENV", "RD_API_VERSION", "RD_PROJECT", "RD_COLOR"):
    os.environ.pop(name, None)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
