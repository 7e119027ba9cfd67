"""Timestamp to x-coordinate mapping over a segment list."""

from __future__ import annotations

from bisect import bisect_right
from typing import Any, List, Optional

import pandas as pd

from .models import Segment, parse_timestamp


def _as_timestamp(value: Any) -> Optional[pd.Timestamp]:
    if isinstance(value, pd.Timestamp):
        return value.tz_convert(None) if value.tzinfo is not None else value
    return parse_timestamp(value)


class CoordinateMapper:
    """Maps timestamps onto the horizontal axis built by ``build_segments``.

    Inside a segment the position is linear in the time of day. Timestamps
    that fall on a day without events map to the edge shared by the
    neighbouring segments, those before the first segment to its start and
    those after the last one to its end. The mapping is therefore
    non-decreasing over all timestamps, not only the covered ones.
    """

    def __init__(self, segments: List[Segment]):
        self.segments = segments
        self._starts = [s.day_start for s in segments]

    @property
    def total_width(self) -> float:
        if not self.segments:
            return 0.0
        return self.segments[-1].x_end

    @property
    def px_per_day(self) -> float:
        """Average pixels per day, treating one segment as roughly a month.

        Used only for approximate decorations such as uncertainty margins.
        """
        if not self.segments:
            return 0.0
        avg = sum(s.width for s in self.segments) / len(self.segments)
        return avg / 30.0

    def date_to_x(self, value: Any) -> float:
        ts = _as_timestamp(value)
        if ts is None or not self.segments:
            return 0.0
        i = bisect_right(self._starts, ts) - 1
        if i < 0:
            return self.segments[0].x_start
        seg = self.segments[i]
        if ts < seg.day_end:
            ratio = (ts - seg.day_start) / (seg.day_end - seg.day_start)
            return seg.x_start + ratio * seg.width
        return seg.x_end

    def segment_for(self, value: Any) -> Optional[Segment]:
        ts = _as_timestamp(value)
        if ts is None:
            return None
        i = bisect_right(self._starts, ts) - 1
        if i >= 0 and ts < self.segments[i].day_end:
            return self.segments[i]
        return None


def date_to_x(value: Any, segments: List[Segment]) -> float:
    return CoordinateMapper(segments).date_to_x(value)
