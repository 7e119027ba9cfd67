"""Information gaps drawn as translucent vertical bands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd

from .config import LayoutSettings, RenderConfig
from .mapping import CoordinateMapper
from .models import GapSeverity, InformationGap

logger = logging.getLogger(__name__)

GAP_FILL = "#d8bfd8"
GAP_OPACITY = 0.25

SEVERITY_TITLES = {
    GapSeverity.HIGH: ("Critical information gap", "#e74c3c"),
    GapSeverity.MODERATE: ("Moderate information gap", "#f39c12"),
}


@dataclass(frozen=True)
class GapBand:
    gap: InformationGap
    x0: float
    x1: float
    collapsed: bool = False
    fill: str = GAP_FILL
    opacity: float = GAP_OPACITY

    @property
    def width(self) -> float:
        return self.x1 - self.x0


@dataclass(frozen=True)
class GapDescription:
    title: str
    color: str
    period: str
    duration: str


def format_day(ts: Optional[pd.Timestamp]) -> str:
    if ts is None:
        return "n/c"
    return f"{ts.day} {ts.strftime('%B %Y')}"


def describe_gap(gap: InformationGap) -> GapDescription:
    title, color = SEVERITY_TITLES.get(gap.severity, SEVERITY_TITLES[GapSeverity.MODERATE])
    duration = f"{gap.duration_days} days" if gap.duration_days is not None else "n/c"
    return GapDescription(
        title=title,
        color=color,
        period=f"{format_day(gap.start)} → {format_day(gap.end)}",
        duration=duration,
    )


def build_gap_bands(
    gaps: Iterable[InformationGap],
    mapper: CoordinateMapper,
    config: RenderConfig,
    settings: Optional[LayoutSettings] = None,
) -> List[GapBand]:
    """Map each gap onto the axis.

    Gaps lying entirely in days without events map to a single boundary;
    they are widened to ``gap_min_width`` around it and flagged collapsed.
    """
    if not config.highlight_gaps:
        return []
    settings = settings or LayoutSettings()

    bands = []
    for i, gap in enumerate(gaps):
        if gap.start is None or gap.end is None:
            logger.info("Skipping information gap %d: invalid dates", i)
            continue
        x0 = mapper.date_to_x(gap.start)
        x1 = mapper.date_to_x(gap.end)
        if x1 - x0 > 0:
            bands.append(GapBand(gap, x0, x1))
            continue
        half = settings.gap_min_width / 2
        centre = (x0 + x1) / 2
        logger.debug("Information gap %d collapses to x=%.1f", i, centre)
        bands.append(GapBand(gap, centre - half, centre + half, collapsed=True))
    return bands
