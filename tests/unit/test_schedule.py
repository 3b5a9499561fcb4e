from __future__ import annotations

import pytest

from playbill.program.schedule import (
    PerformanceRecord,
    format_performance_label,
    parse_performance_schedule,
    resolve_show_dates,
)

pytestmark = pytest.mark.unit


def test_parse_performance_schedule_drops_entries_without_date() -> None:
    records = parse_performance_schedule(
        [{"date": " 2026-03-01 ", "time": "19:30"}, {"date": "", "time": "14:00"}, {"date": "2026-03-02"}]
    )

    assert records == [PerformanceRecord(date="2026-03-01", time="19:30"), PerformanceRecord(date="2026-03-02")]


@pytest.mark.parametrize(
    ("record", "expected"),
    [
        (PerformanceRecord(date="2026-03-01", time="19:30"), "Mar 1, 2026 7:30 PM"),
        (PerformanceRecord(date="2026-03-07", time="00:05"), "Mar 7, 2026 12:05 AM"),
        (PerformanceRecord(date="2026-12-24", time="12:00"), "Dec 24, 2026 12:00 PM"),
        (PerformanceRecord(date="2026-03-01"), "Mar 1, 2026"),
        (PerformanceRecord(date="2026-03-01", time="evening"), "Mar 1, 2026"),
        (PerformanceRecord(date="March 1st"), ""),
    ],
)
def test_format_performance_label(record: PerformanceRecord, expected: str) -> None:
    assert format_performance_label(record) == expected


def test_resolve_show_dates_prefers_override_then_free_text() -> None:
    schedule = [PerformanceRecord(date="2026-03-01", time="19:30")]

    assert resolve_show_dates(" Opening night only ", "Mar 1-3", schedule) == "Opening night only"
    assert resolve_show_dates("  ", "Mar 1-3", schedule) == "Mar 1-3"


def test_resolve_show_dates_joins_schedule_labels() -> None:
    schedule = [
        PerformanceRecord(date="2026-03-01", time="19:30"),
        PerformanceRecord(date="not-a-date"),
        PerformanceRecord(date="2026-03-02", time="14:00"),
    ]

    assert resolve_show_dates("", "", schedule) == "Mar 1, 2026 7:30 PM | Mar 2, 2026 2:00 PM"


def test_resolve_show_dates_requires_a_date() -> None:
    with pytest.raises(ValueError, match="at least one performance date is required"):
        resolve_show_dates("", None, [PerformanceRecord(date="soon")])
