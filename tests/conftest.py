"""
Shared pytest configuration and fixtures.
"""
import os
import sys
import tempfile
from datetime import date
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep run folders out of the source tree; settings are read at import time
os.environ.setdefault("DRIVER_CHECK_RUNS_DIR", tempfile.mkdtemp(prefix="driver-check-"))

TODAY = date(2024, 6, 1)

VALID_ROW = {
    "DriverId": "1001",
    "driverName": "Jane Doe",
    "DateofBirth": "1994-06-01",
    "DLExpirationDate": "2025-06-01",
    "DOTExpirationDate": "2025-06-01",
    "LastDrugTest": "2024-06-01",
    "BackgroundCheck": "2024-06-01",
    "PUCFingerPrints": "2025-06-01",
    "MVRLastRan": "2024-06-01",
    "LastTrained": "2024-06-01",
}


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_row():
    """Build a driver row that passes every rule, with overrides applied."""
    def _make(**overrides):
        row = dict(VALID_ROW)
        row.update(overrides)
        return row
    return _make


@pytest.fixture
def csv_text():
    """Render rows as CSV text with the required header."""
    def _render(rows, columns=None):
        columns = columns or list(VALID_ROW)
        lines = [",".join(columns)]
        for row in rows:
            lines.append(",".join(str(row.get(c, "")) for c in columns))
        return "\n".join(lines) + "\n"
    return _render
