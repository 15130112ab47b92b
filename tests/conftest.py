"""Shared builders for shift and setup records."""

from datetime import date, datetime

import pytest

from opsmetrics.domains.setup.models import SetupActivityInput
from opsmetrics.domains.shift.models import ShiftProductionInput


@pytest.fixture
def make_shift():
    """Build a shift record with sensible defaults; override any field by keyword."""

    def _make(**overrides) -> ShiftProductionInput:
        fields = {
            "record_id": "log-1",
            "log_date": date(2024, 3, 1),
            "plant_id": "P1",
            "shift": "A",
            "machine_id": "CNC-01",
            "setup_number": "S1",
            "shift_start_time": "08:00",
            "shift_end_time": "16:00",
            "actual_quantity": 1000,
            "cycle_time_seconds": 22.5,
        }
        fields.update(overrides)
        return ShiftProductionInput(**fields)

    return _make


@pytest.fixture
def make_setup():
    """Build a setup record; ``start`` and friends accept "YYYY-MM-DD HH:MM" strings."""

    def _parse(value):
        return datetime.fromisoformat(value) if isinstance(value, str) else value

    def _make(record_id, setter_id="s1", start=None, end=None, approval=None, created=None, **overrides):
        start = _parse(start)
        fields = {
            "record_id": record_id,
            "setter_id": setter_id,
            "setter_name": overrides.pop("setter_name", setter_id.upper()),
            "machine_id": "CNC-01",
            "item_code": "ITEM-A",
            "wo_id": "WO-1",
            "setup_start_time": start,
            "setup_end_time": _parse(end),
            "first_piece_approval_time": _parse(approval),
            "created_at": _parse(created) or start or datetime(2024, 3, 1, 8, 0),
        }
        fields.update(overrides)
        return SetupActivityInput(**fields)

    return _make
