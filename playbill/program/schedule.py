from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Sequence


@dataclass(frozen=True)
class PerformanceRecord:
    date: str
    time: str = ""


def parse_performance_schedule(entries: Iterable[Mapping[str, str | None]] | None) -> list[PerformanceRecord]:
    """Keep schedule entries that carry a date; times are optional."""
    if not entries:
        return []

    records: list[PerformanceRecord] = []
    for entry in entries:
        date = (entry.get("date") or "").strip()
        if not date:
            continue
        records.append(PerformanceRecord(date=date, time=(entry.get("time") or "").strip()))

    return records


def format_performance_label(performance: PerformanceRecord) -> str:
    """Format ``2026-03-01`` / ``19:30`` as ``Mar 1, 2026 7:30 PM``.

    An unparseable date yields an empty label. An unparseable time is dropped.
    """
    try:
        day = datetime.strptime(performance.date, "%Y-%m-%d")
    except ValueError:
        return ""

    label = f"{day:%b} {day.day}, {day.year}"
    if not performance.time:
        return label

    try:
        moment = datetime.strptime(performance.time, "%H:%M")
    except ValueError:
        return label

    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{label} {hour}:{moment.minute:02d} {meridiem}"


def resolve_show_dates(
    override: str | None,
    show_dates: str | None,
    schedule: Sequence[PerformanceRecord] = (),
) -> str:
    """Pick the printed show dates: override, then free text, then the schedule."""
    if override and override.strip():
        return override.strip()
    if show_dates and show_dates.strip():
        return show_dates.strip()

    labels = [label for label in (format_performance_label(item) for item in schedule) if label]
    if not labels:
        raise ValueError("at least one performance date is required")
    return " | ".join(labels)
