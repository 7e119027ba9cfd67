"""Month lines, year labels and day numbers along the compressed axis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .models import Segment

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass(frozen=True)
class MonthLine:
    x: float
    year: int
    month: int

    @property
    def is_year_start(self) -> bool:
        return self.month == 1

    @property
    def label(self) -> str:
        return str(self.year) if self.is_year_start else MONTH_NAMES[self.month - 1]

    @property
    def line_width(self) -> float:
        return 2.0 if self.is_year_start else 1.0

    @property
    def color(self) -> str:
        return "#000000" if self.is_year_start else "#dddddd"


@dataclass(frozen=True)
class DayTick:
    x: float        # centre of the day's segment
    day: int


def month_lines(segments: List[Segment]) -> List[MonthLine]:
    """One line at the first covered day of every month present."""
    seen = set()
    lines = []
    for seg in segments:
        key = (seg.calendar_year, seg.calendar_month)
        if key in seen:
            continue
        seen.add(key)
        lines.append(MonthLine(seg.x_start, seg.calendar_year, seg.calendar_month))
    return lines


def day_ticks(segments: List[Segment]) -> List[DayTick]:
    return [DayTick(seg.x_start + seg.width / 2, seg.calendar_day) for seg in segments]


def axis_grid(segments: List[Segment]) -> Tuple[List[MonthLine], List[DayTick]]:
    return month_lines(segments), day_ticks(segments)
