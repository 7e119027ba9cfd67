"""Floating annotation labels for the primary and secondary tracks.

Labels are laid out in rows above and below the track's anchor line.
Candidates are taken left to right and alternate their preferred side
(even above, odd below). Each one takes the first row on its preferred
side where it does not collide with an already placed label, then tries
the other side, and as a last resort is forced into row 0 of its
preferred side. Only forced labels may overlap.

Positions the user dragged by hand are loaded from the override store
and replace the computed position.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .config import LayoutSettings, RenderConfig
from .models import Event, Track
from .overrides import Point
from .stacking import TrackLayout
from .surface import BBox

logger = logging.getLogger(__name__)

LABELLED_TRACKS = (Track.PRIMARY, Track.SECONDARY)
NOT_COMMUNICATED = "n.c."


class Side(str, Enum):
    ABOVE = "above"
    BELOW = "below"

    @property
    def opposite(self) -> "Side":
        return Side.BELOW if self is Side.ABOVE else Side.ABOVE


@dataclass(frozen=True)
class LabelCandidate:
    event: Event
    anchor_x: float
    anchor_y: float
    text: str


@dataclass(frozen=True)
class LabelPlacement:
    event_ref: Event
    anchor_x: float
    anchor_y: float
    resolved_x: float
    resolved_y: float
    row_index: int
    side: Side
    user_overridden: bool = False
    forced: bool = False
    text: str = ""
    width: float = 0.0
    height: float = 0.0

    @property
    def track(self) -> Track:
        return self.event_ref.track

    @property
    def index(self) -> int:
        return self.event_ref.index

    @property
    def interval(self) -> Tuple[float, float]:
        return (self.resolved_x, self.resolved_x + self.width)

    @property
    def box(self) -> BBox:
        return BBox(self.resolved_x, self.resolved_y, self.width, self.height)


# -----------------------
# Candidates
# -----------------------

def label_text(event: Event) -> str:
    place = event.place if event.place and event.place != NOT_COMMUNICATED else None
    if place:
        return f"{event.type_label} - {place}"
    return f"{event.type_label} {NOT_COMMUNICATED}"


def candidates_for(
    track: Track,
    layouts: Dict[Track, TrackLayout],
    config: RenderConfig,
    primary_ids: Optional[Set[str]] = None,
) -> List[LabelCandidate]:
    """Events of a rendered track that get a floating label.

    The secondary track only labels events the primary track does not
    already cover (``primary_ids``) and never postwar reconstructions.
    """
    if config.expand_sources or track not in LABELLED_TRACKS or track not in layouts:
        return []
    layout = layouts[track]

    found: List[LabelCandidate] = []
    seen: Set[str] = set()
    for item in layout.items:
        event = item.event
        if track is Track.PRIMARY:
            if item.is_span:
                continue
            if event.id is not None:
                if event.id in seen:
                    continue
                seen.add(event.id)
        else:
            if primary_ids and event.id in primary_ids:
                continue
            if event.is_postwar_reconstruction:
                continue
        found.append(LabelCandidate(event, item.x, layout.baseline_y, label_text(event)))
    return found


# -----------------------
# Placement
# -----------------------

def _collides(row: List[Tuple[float, float]], start: float, end: float, gap: float) -> bool:
    return any(start < max_x + gap and end > min_x - gap for min_x, max_x in row)


class LabelPlacer:
    def __init__(self, viewport_width: float, settings: Optional[LayoutSettings] = None):
        self.settings = settings or LayoutSettings()
        self.viewport_width = viewport_width
        self.label_width = self.settings.label_width(viewport_width)
        self.min_gap = self.settings.label_min_gap(viewport_width)
        self.visible_width = self.settings.visible_width(viewport_width)

    def horizontal_extent(self, anchor_x: float) -> Tuple[float, float]:
        """Right of the anchor, flipped left when it would leave the view."""
        offset = self.settings.label_offset
        start = anchor_x + offset
        end = start + self.label_width
        if end > self.visible_width:
            end = anchor_x - offset
            start = end - self.label_width
        if start < 0:
            start, end = 0.0, self.label_width
        return start, end

    def _row_offset(self, row: int) -> float:
        s = self.settings
        return s.label_row_height + row * s.label_row_height

    def place(self, track: Track, candidates: Iterable[LabelCandidate]) -> List[LabelPlacement]:
        limits = self.settings.label_rows.get(track, self.settings.label_rows[Track.PRIMARY])
        max_rows = {Side.ABOVE: limits.above, Side.BELOW: limits.below}
        rows: Dict[Side, List[List[Tuple[float, float]]]] = {
            Side.ABOVE: [[] for _ in range(max(limits.above, 1))],
            Side.BELOW: [[] for _ in range(max(limits.below, 1))],
        }

        placements: List[LabelPlacement] = []
        ordered = sorted(candidates, key=lambda c: c.anchor_x)
        for i, cand in enumerate(ordered):
            start, end = self.horizontal_extent(cand.anchor_x)
            preferred = Side.ABOVE if i % 2 == 0 else Side.BELOW

            chosen: Optional[Tuple[Side, int]] = None
            for side in (preferred, preferred.opposite):
                for row_index in range(max_rows[side]):
                    if not _collides(rows[side][row_index], start, end, self.min_gap):
                        chosen = (side, row_index)
                        break
                if chosen is not None:
                    break

            forced = chosen is None
            if forced:
                chosen = (preferred, 0)
                logger.warning(
                    "All label rows full for %s; forcing %s into row 0 %s",
                    track.value, cand.event.key, preferred.value,
                )
            side, row_index = chosen
            rows[side][row_index].append((start, end))

            offset = self._row_offset(row_index)
            y = cand.anchor_y - offset if side is Side.ABOVE else cand.anchor_y + offset
            placements.append(
                LabelPlacement(
                    event_ref=cand.event,
                    anchor_x=cand.anchor_x,
                    anchor_y=cand.anchor_y,
                    resolved_x=start,
                    resolved_y=y,
                    row_index=row_index,
                    side=side,
                    forced=forced,
                    text=cand.text,
                    width=end - start,
                    height=self.settings.label_height,
                )
            )
        return placements

    def apply_overrides(
        self,
        placements: List[LabelPlacement],
        saved: Dict[int, Point],
    ) -> List[LabelPlacement]:
        """Swap in saved positions that are far enough from the anchor line.

        A saved position within ``override_min_distance`` of the anchor is
        treated as stale and ignored.
        """
        merged = []
        for placement in placements:
            pos = saved.get(placement.index)
            if pos is not None and abs(pos.y - placement.anchor_y) > self.settings.override_min_distance:
                placement = replace(
                    placement, resolved_x=pos.x, resolved_y=pos.y, user_overridden=True
                )
            merged.append(placement)
        return merged


# -----------------------
# Connectors
# -----------------------

def connector_path(anchor_x: float, anchor_y: float, box: BBox) -> str:
    """Quadratic curve from the anchor to the label's current box.

    Ends on the top edge of a label below the anchor line and on the
    bottom edge of a label above it.
    """
    end_x = box.center_x
    end_y = box.y if box.y > anchor_y else box.bottom
    control_y = (anchor_y + end_y) / 2
    return (
        f"M {anchor_x:.1f} {anchor_y:.1f} "
        f"Q {anchor_x:.1f} {control_y:.1f}, {end_x:.1f} {end_y:.1f}"
    )
