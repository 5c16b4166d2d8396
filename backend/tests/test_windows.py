# backend/tests/test_windows.py
from __future__ import annotations

from datetime import datetime, time

import pytest

from propdesk.domain.errors import ValidationError
from propdesk.domain.windows import add_months, parse_when, parse_window
from propdesk.schemas import DateWindowQuery


def test_date_only_end_covers_the_whole_day():
    w = parse_window("2026-01-01", "2026-01-31")
    assert w.start == datetime(2026, 1, 1)
    assert w.end == datetime.combine(datetime(2026, 1, 31).date(), time.max)
    assert w.days == 31


def test_missing_date_is_rejected():
    with pytest.raises(ValidationError, match="Start and end dates required"):
        parse_window("2026-01-01", None)
    with pytest.raises(ValidationError):
        parse_window("", "2026-01-31")
    assert parse_window(None, None, required=False) is None


def test_start_after_end_is_rejected():
    with pytest.raises(ValidationError):
        parse_window("2026-02-01", "2026-01-01")


def test_garbage_date_is_rejected():
    with pytest.raises(ValidationError):
        parse_when("next tuesday")


def test_offsets_normalize_to_naive_utc():
    assert parse_when("2026-01-01T05:00:00+05:00") == datetime(2026, 1, 1, 0, 0)


def test_previous_window_has_same_length_and_abuts():
    w = parse_window("2026-03-01", "2026-03-31")
    prev = w.previous()
    assert prev.end < w.start
    assert prev.end - prev.start == w.end - w.start


def test_add_months_clamps_day():
    assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
    assert add_months(datetime(2026, 3, 15), -3) == datetime(2025, 12, 15)
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)


def test_query_model_builds_window():
    q = DateWindowQuery(start_date="2026-01-01", end_date="2026-01-31")
    w = q.window()
    assert (w.start, w.end.date()) == (datetime(2026, 1, 1), datetime(2026, 1, 31).date())
    assert DateWindowQuery().window(required=False) is None
    with pytest.raises(ValidationError):
        DateWindowQuery(start_date="2026-01-01").window()
