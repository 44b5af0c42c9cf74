# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest configuration for the suite",
#   "sections": [
#     {"id": "globals", "name": "Globals", "anchor": "GLOB", "kind": "infra"},
#     {"id": "isolate-environment", "name": "_isolate_environment", "anchor": "function-isolate-environment", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

Puts ``src`` on ``sys.path`` so the suite runs from a plain checkout and keeps
``SPECSYNC_*`` variables from the developer shell out of every test.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SPECSYNC_"):
            monkeypatch.delenv(name, raising=False)
