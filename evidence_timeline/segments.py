"""Day-granularity segmentation of the time axis.

Every calendar day that holds at least one event becomes one segment.
Busy days get wider segments, sparse days a fixed minimum, and the whole
axis is then rescaled to a width chosen from the viewport.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from .config import LayoutSettings
from .models import Segment

logger = logging.getLogger(__name__)


def count_events_per_day(timestamps: Iterable) -> pd.Series:
    """Count timestamps per calendar day, sorted by day.

    Unparseable or missing values are dropped.
    """
    parsed = pd.to_datetime(pd.Series(list(timestamps), dtype="object"), errors="coerce")
    parsed = parsed.dropna()
    if parsed.empty:
        return pd.Series(dtype="int64")
    if getattr(parsed.dt, "tz", None) is not None:
        parsed = parsed.dt.tz_convert(None)
    days = parsed.dt.normalize()
    return days.value_counts().sort_index()


def base_width_for(count: int, max_count: int, settings: Optional[LayoutSettings] = None) -> float:
    """Density width of one day before compression and rescaling."""
    settings = settings or LayoutSettings()
    if count <= settings.sparse_day_threshold:
        return settings.min_width
    ratio = count / max(max_count, 1)
    return settings.base_width * (1 + settings.density_factor * ratio)


def _base_widths(counts: np.ndarray, settings: LayoutSettings) -> np.ndarray:
    max_count = max(int(counts.max()), 1)
    density = settings.base_width * (1 + settings.density_factor * counts / max_count)
    return np.where(counts <= settings.sparse_day_threshold, settings.min_width, density)


def _compression_factors(days: pd.DatetimeIndex, settings: LayoutSettings) -> np.ndarray:
    factors = np.ones(len(days))
    for policy in settings.compressions:
        mask = np.array([policy.applies_to(d.date()) for d in days], dtype=bool)
        if mask.any():
            logger.debug("Compression %s applies to %d day(s)", policy.name, int(mask.sum()))
        factors[mask] *= policy.factor
    return factors


def build_segments(
    timestamps: Iterable,
    viewport_width: float,
    settings: Optional[LayoutSettings] = None,
) -> List[Segment]:
    """Build the ordered, contiguous segment list for a viewport.

    Segment edges are rounded to whole pixels on the cumulative positions,
    so the widths always sum to the rounded target width and neighbouring
    segments share their edge exactly.
    """
    settings = settings or LayoutSettings()
    counts = count_events_per_day(timestamps)
    if counts.empty:
        logger.info("No dated events; nothing to segment")
        return []

    days = pd.DatetimeIndex(counts.index)
    values = counts.to_numpy(dtype=float)

    base = _base_widths(values, settings)
    widths = base * _compression_factors(days, settings)

    target = settings.target_total_width(viewport_width)
    scale = target / widths.sum()
    edges = np.concatenate(([0.0], np.round(np.cumsum(widths * scale))))
    edges[-1] = round(target)

    segments: List[Segment] = []
    for i, day in enumerate(days):
        segments.append(
            Segment(
                day_start=day,
                day_end=day + pd.Timedelta(days=1),
                width=float(edges[i + 1] - edges[i]),
                x_start=float(edges[i]),
                event_count=int(values[i]),
                calendar_year=day.year,
                calendar_month=day.month,
                calendar_day=day.day,
                base_width=float(base[i]),
            )
        )

    logger.debug(
        "Built %d segments, target width %.0f (scale %.3f)", len(segments), target, scale
    )
    return segments


def total_width(segments: List[Segment]) -> float:
    return float(sum(s.width for s in segments))
