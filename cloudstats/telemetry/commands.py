"""Per-day command frequency tables from the command history."""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable

from cloudstats.models import CommandLogEntry, DailyCommandCount


def same_day(a: datetime, b: datetime) -> bool:
    """Calendar equality, not a 24h window."""
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)


def _flush(stats: list[DailyCommandCount], commands: Counter, anchor: datetime) -> None:
    for command, hits in commands.items():
        stats.append(DailyCommandCount(command=command, hits=hits, date=anchor))


def aggregate_commands(
    entries: Iterable[CommandLogEntry],
    since_watermark: int = 0,
) -> tuple[list[DailyCommandCount], int]:
    """Group time-ordered entries into daily command counts.

    A new group starts whenever an entry falls on a different calendar day
    than the current group's first entry. The input is not sorted here.

    Returns the counts and the id of the last entry consumed, or
    since_watermark unchanged when there is nothing to consume.
    """
    stats: list[DailyCommandCount] = []
    anchor: datetime | None = None
    commands: Counter = Counter()
    last_id = since_watermark

    for entry in entries:
        if anchor is None:
            anchor = entry.timestamp
        elif not same_day(anchor, entry.timestamp):
            _flush(stats, commands, anchor)
            anchor = entry.timestamp
            commands = Counter()
        commands[entry.command] += 1
        last_id = entry.id

    if anchor is not None:
        _flush(stats, commands, anchor)
    return stats, last_id
