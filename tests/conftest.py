"""Pytest bootstrap for local source imports.

The ``pytest`` console script can run with a sys.path that excludes the
repository root. Ensure ``import navhistory`` resolves to the local package
and that the shared test fakes (``tests/fakes.py``) are importable.
"""

from __future__ import annotations

import sys
from pathlib import Path


TESTS_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_ROOT.parent

for path in (str(PROJECT_ROOT), str(TESTS_ROOT)):
    if path not in sys.path:
        sys.path.insert(0, path)
