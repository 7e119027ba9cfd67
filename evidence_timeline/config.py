"""Render options, layout constants and host settings.

``RenderConfig`` is the single immutable value passed to every component
on a render. ``LayoutSettings`` gathers the numeric policy (widths,
breakpoints, row limits, period compression) so it can be overridden as a
whole or field by field via ``from_dict``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .models import Precision, Track

logger = logging.getLogger(__name__)


# -----------------------
# Toggles
# -----------------------

@dataclass(frozen=True)
class RenderConfig:
    show_t1: bool = True
    show_t2: bool = True
    show_t3: bool = True
    expand_sources: bool = False
    show_chains: bool = True
    show_postwar: bool = False
    highlight_gaps: bool = False
    show_uncertainty: bool = True

    def shows(self, track: Track) -> bool:
        return {
            Track.PRIMARY: self.show_t1,
            Track.SECONDARY: self.show_t2,
            Track.ACTIONS: self.show_t3,
        }[track]

    def with_options(self, **changes: bool) -> "RenderConfig":
        return replace(self, **changes)


# -----------------------
# Viewport classes
# -----------------------

class ViewportClass(str, Enum):
    NARROW = "narrow"
    MEDIUM = "medium"
    WIDE = "wide"


@dataclass(frozen=True)
class PeriodCompression:
    """Scale the width of every day inside ``[start, end]`` by ``factor``.

    The default instance compresses a known dense, low-information stretch
    of the source corpus. It is editorial policy, so it is named and can be
    replaced or removed through ``LayoutSettings.compressions``.
    """

    name: str
    start: date
    end: date
    factor: float

    def applies_to(self, day: date) -> bool:
        return self.start <= day <= self.end


DEFAULT_COMPRESSIONS: Tuple[PeriodCompression, ...] = (
    PeriodCompression(
        name="occupation-1940-mid-1941",
        start=date(1940, 1, 1),
        end=date(1941, 7, 31),
        factor=0.6,
    ),
)


@dataclass(frozen=True)
class LabelRowLimits:
    above: int
    below: int


@dataclass(frozen=True)
class LayoutSettings:
    # segments
    base_width: float = 28.0
    min_width: float = 21.0
    sparse_day_threshold: int = 2
    density_factor: float = 3.0
    compressions: Tuple[PeriodCompression, ...] = DEFAULT_COMPRESSIONS

    # viewport breakpoints and target widths
    narrow_breakpoint: int = 768
    wide_breakpoint: int = 1024
    narrow_scale: float = 2.5
    narrow_min_total: float = 800.0
    medium_min_total: float = 1000.0
    wide_min_total: float = 1200.0
    viewport_margin: float = 40.0

    # tracks
    header_offset: float = 60.0
    track_offsets: Tuple[float, ...] = (0.0, 100.0, 220.0)
    expanded_track_margin: float = 30.0
    marker_top: float = 30.0
    marker_size: float = 10.0
    slot_height: float = 13.0
    track_margin: float = 60.0
    track_min_height: float = 70.0
    uncertainty_margin_days: Dict[Precision, float] = field(
        default_factory=lambda: {
            Precision.EXACT: 0.0,
            Precision.INTERVAL: 30.0,
            Precision.OPEN_START: 60.0,
            Precision.OPEN_END: 60.0,
            Precision.UNKNOWN: 90.0,
        }
    )
    default_margin_days: float = 15.0
    announcement_days: float = 3.0

    # labels
    label_widths: Dict[ViewportClass, float] = field(
        default_factory=lambda: {
            ViewportClass.NARROW: 200.0,
            ViewportClass.MEDIUM: 240.0,
            ViewportClass.WIDE: 280.0,
        }
    )
    label_height: float = 25.0
    label_offset: float = 5.0
    label_row_height: float = 30.0
    label_min_visible_width: float = 800.0
    narrow_label_gap: float = 15.0
    label_gap: float = 25.0
    label_rows: Dict[Track, LabelRowLimits] = field(
        default_factory=lambda: {
            Track.PRIMARY: LabelRowLimits(above=2, below=1),
            Track.SECONDARY: LabelRowLimits(above=2, below=2),
        }
    )
    override_min_distance: float = 20.0
    drag_click_threshold: float = 5.0

    # gaps
    gap_min_width: float = 4.0

    # interaction
    resize_debounce_seconds: float = 0.3

    def viewport_class(self, viewport_width: float) -> ViewportClass:
        if viewport_width < self.narrow_breakpoint:
            return ViewportClass.NARROW
        if viewport_width < self.wide_breakpoint:
            return ViewportClass.MEDIUM
        return ViewportClass.WIDE

    def target_total_width(self, viewport_width: float) -> float:
        """Total axis width for a viewport; narrow screens scroll."""
        vclass = self.viewport_class(viewport_width)
        if vclass is ViewportClass.NARROW:
            return max(viewport_width * self.narrow_scale, self.narrow_min_total)
        if vclass is ViewportClass.MEDIUM:
            return max(viewport_width - self.viewport_margin, self.medium_min_total)
        return max(viewport_width - self.viewport_margin, self.wide_min_total)

    def label_width(self, viewport_width: float) -> float:
        return self.label_widths[self.viewport_class(viewport_width)]

    def label_min_gap(self, viewport_width: float) -> float:
        if self.viewport_class(viewport_width) is ViewportClass.NARROW:
            return self.narrow_label_gap
        return self.label_gap

    def visible_width(self, viewport_width: float) -> float:
        return max(viewport_width - self.viewport_margin, self.label_min_visible_width)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutSettings":
        """Build settings from a partial mapping; unknown keys are ignored.

        ``compressions`` may be given as a list of
        ``{"name", "start", "end", "factor"}`` mappings with ISO dates.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {k: v for k, v in data.items() if k in known}
        if "compressions" in values:
            values["compressions"] = tuple(
                c if isinstance(c, PeriodCompression) else PeriodCompression(
                    name=c.get("name", "custom"),
                    start=date.fromisoformat(str(c["start"])),
                    end=date.fromisoformat(str(c["end"])),
                    factor=float(c.get("factor", 1.0)),
                )
                for c in values["compressions"]
            )
        if "track_offsets" in values:
            values["track_offsets"] = tuple(float(v) for v in values["track_offsets"])
        return cls(**values)


# -----------------------
# Host settings
# -----------------------

@dataclass
class AppSettings:
    """Settings for the Streamlit host, read from the environment."""

    data_path: Optional[Path] = None
    override_store_path: Path = Path(".timeline_state") / "label_positions.json"
    log_level: str = "INFO"
    default_viewport_width: int = 1400

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> "AppSettings":
        env = dict(os.environ) if env is None else env
        settings = cls()
        if env.get("TIMELINE_DATA_PATH"):
            settings.data_path = Path(env["TIMELINE_DATA_PATH"])
        if env.get("TIMELINE_OVERRIDE_STORE"):
            settings.override_store_path = Path(env["TIMELINE_OVERRIDE_STORE"])
        if env.get("TIMELINE_LOG_LEVEL"):
            settings.log_level = env["TIMELINE_LOG_LEVEL"].upper()
        if env.get("TIMELINE_VIEWPORT_WIDTH"):
            try:
                settings.default_viewport_width = int(env["TIMELINE_VIEWPORT_WIDTH"])
            except ValueError:
                logger.warning(
                    "Ignoring non-integer TIMELINE_VIEWPORT_WIDTH=%r", env["TIMELINE_VIEWPORT_WIDTH"]
                )
        return settings
