"""Per-track event selection, stacking and decoration.

Each track has its own selection rule:

- primary sources keep the first entry per identifier,
- the secondary view merges same-day reports of the same event and keeps
  the best-attested one,
- fine-grained actions keep everything.

Selected events are grouped by their pixel position and stacked upwards
in arrival order. The result is an explicit ``TrackLayout`` that the label
placer and the chain layout consume directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import LayoutSettings, RenderConfig
from .derived import DerivedTable
from .encoding import MarkerStyle, encode_event
from .mapping import CoordinateMapper
from .models import (
    Confidence,
    Event,
    Precision,
    TRACK_COLORS,
    TRACK_LABELS,
    TimelineDataset,
    Track,
)
from .semantics import are_similar_events, is_postwar_evidence

logger = logging.getLogger(__name__)

CONFIDENCE_RANK = {
    Confidence.HIGH: 3,
    Confidence.MEDIUM: 2,
    Confidence.LOW: 1,
    Confidence.UNKNOWN: 0,
}

PRECISION_RANK = {
    Precision.EXACT: 4,
    Precision.CIRCA: 3,
    Precision.OPEN_END: 2,
    Precision.OPEN_START: 2,
    Precision.INTERVAL: 1,
    Precision.UNKNOWN: 0,
}


# -----------------------
# Layout types
# -----------------------

@dataclass
class StackedItem:
    event: Event
    x: float
    slot: int
    y: float                        # marker centre
    style: MarkerStyle
    x_end: Optional[float] = None   # right edge for interval spans

    @property
    def key(self) -> str:
        return self.event.key

    @property
    def is_span(self) -> bool:
        return self.x_end is not None


@dataclass
class Decoration:
    """A horizontal bar drawn behind the markers of a track."""

    kind: str                   # "epistemic", "announcement" or "margin"
    x0: float
    x1: float
    y: float
    event_key: str

    @property
    def width(self) -> float:
        return abs(self.x1 - self.x0)


@dataclass
class TrackLayout:
    track: Track
    label: str
    color: str
    top: float
    height: float
    baseline_y: float
    max_stack: int = 0
    items: List[StackedItem] = field(default_factory=list)
    decorations: List[Decoration] = field(default_factory=list)

    def markers(self) -> List[StackedItem]:
        return [item for item in self.items if not item.is_span]


# -----------------------
# Selection
# -----------------------

def dedupe_by_id(events: List[Event]) -> List[Event]:
    """First occurrence per identifier; entries without one are all kept."""
    seen = set()
    kept = []
    for event in events:
        if event.id is None:
            kept.append(event)
        elif event.id not in seen:
            seen.add(event.id)
            kept.append(event)
    return kept


def rank_key(event: Event):
    return (-CONFIDENCE_RANK[event.confidence], -PRECISION_RANK[event.precision])


def equivalence_classes(group: List[Event]) -> List[List[Event]]:
    """Split a same-day group into classes of reports about the same event."""
    assigned = set()
    classes = []
    for i, event in enumerate(group):
        if i in assigned:
            continue
        members = [event]
        assigned.add(i)
        for j, other in enumerate(group):
            if j != i and j not in assigned and are_similar_events(event, other):
                members.append(other)
                assigned.add(j)
        classes.append(members)
    return classes


def merge_secondary(events: List[Event]) -> List[Event]:
    by_date: Dict[str, List[Event]] = {}
    for event in events:
        by_date.setdefault(event.date_key, []).append(event)

    survivors = []
    for date_key, group in by_date.items():
        for members in equivalence_classes(group):
            best = sorted(members, key=rank_key)[0]
            survivors.append(best)
            if len(members) > 1:
                logger.debug(
                    "Merged %d reports on %s into %s", len(members), date_key, best.key
                )
    return survivors


def select_events(track: Track, events: List[Event], config: RenderConfig) -> List[Event]:
    if config.expand_sources and track in (Track.PRIMARY, Track.SECONDARY):
        return list(events)

    if track is Track.PRIMARY:
        selected = dedupe_by_id(events)
    elif track is Track.SECONDARY:
        selected = merge_secondary(events)
    else:
        return list(events)

    if not config.show_postwar:
        before = len(selected)
        selected = [e for e in selected if not e.is_postwar_reconstruction]
        if before != len(selected):
            logger.debug("%s: hid %d postwar event(s)", track.value, before - len(selected))
    return selected


# -----------------------
# Stacking
# -----------------------

class TrackStacker:
    def __init__(
        self,
        mapper: CoordinateMapper,
        derived: DerivedTable,
        config: RenderConfig,
        settings: Optional[LayoutSettings] = None,
    ):
        self.mapper = mapper
        self.derived = derived
        self.config = config
        self.settings = settings or LayoutSettings()

    # ---- placement of the lanes ----

    def track_top(self, track: Track, dataset: TimelineDataset) -> float:
        s = self.settings
        if not self.config.expand_sources:
            offsets = s.track_offsets
            offset = offsets[track.position] if track.position < len(offsets) else offsets[-1]
            return s.header_offset + offset

        offset = 0.0
        for previous in list(Track)[: track.position]:
            count = len(dataset.events(previous))
            offset += max(s.track_min_height, count * s.slot_height) + s.expanded_track_margin
        return s.header_offset + offset

    # ---- visibility rules ----

    def _visible_in_group(self, track: Track, group: List[Event]) -> List[Event]:
        if track is not Track.SECONDARY:
            return group
        # postwar evidence goes last, i.e. stacked on top
        ordered = sorted(group, key=lambda e: is_postwar_evidence(e.evidence_class))
        visible = []
        for event in ordered:
            if self.derived.get(event).is_synthesis:
                logger.debug("Hiding synthesis event %s", event.key)
                continue
            if not self.config.show_postwar and is_postwar_evidence(event.evidence_class):
                continue
            visible.append(event)
        return visible

    def _renders(self, event: Event) -> bool:
        if event.precision is not Precision.INTERVAL:
            return True
        if event.track is not Track.SECONDARY:
            return False
        return self.config.show_uncertainty and event.end is not None

    # ---- layout ----

    def layout(self, track: Track, events: List[Event], top: float) -> TrackLayout:
        s = self.settings
        selected = select_events(track, events, self.config)

        groups: Dict[int, List[Event]] = {}
        for event in selected:
            if event.start is None:
                logger.debug("Skipping undated event %s", event.key)
                continue
            x = int(round(self.mapper.date_to_x(event.start)))
            groups.setdefault(x, []).append(event)

        items: List[StackedItem] = []
        decorations: List[Decoration] = []
        max_stack = 0
        for x in sorted(groups):
            visible = [e for e in self._visible_in_group(track, groups[x]) if self._renders(e)]
            max_stack = max(max_stack, len(visible))
            for slot, event in enumerate(visible):
                y = top + s.marker_top + s.marker_size / 2 + slot * s.slot_height
                item = StackedItem(event=event, x=float(x), slot=slot, y=y, style=encode_event(event))
                if event.precision is Precision.INTERVAL:
                    item.x = self.mapper.date_to_x(event.start)
                    item.x_end = self.mapper.date_to_x(event.end)
                else:
                    decorations.extend(self._decorations(item))
                items.append(item)

        height = max(s.track_min_height, max_stack * s.slot_height + s.track_margin)
        layout = TrackLayout(
            track=track,
            label=TRACK_LABELS[track],
            color=TRACK_COLORS[track],
            top=top,
            height=height,
            baseline_y=top + s.marker_top + s.marker_size / 2,
            max_stack=max_stack,
            items=items,
            decorations=decorations,
        )
        logger.debug(
            "%s: %d of %d event(s) placed, max stack %d",
            track.value, len(items), len(events), max_stack,
        )
        return layout

    def _decorations(self, item: StackedItem) -> List[Decoration]:
        s = self.settings
        event = item.event
        attrs = self.derived.get(event)
        found: List[Decoration] = []

        if event.track is Track.SECONDARY:
            if not self.config.show_uncertainty:
                return found
            if attrs.has_announcement and item.slot == 0:
                width = s.announcement_days * self.mapper.px_per_day
                found.append(Decoration("announcement", item.x - width, item.x, item.y, event.key))
            if attrs.is_first_confirmation and attrs.uncertainty_start is not None:
                start_x = self.mapper.date_to_x(attrs.uncertainty_start)
                found.append(Decoration("epistemic", start_x, item.x, item.y, event.key))
            return found

        if (
            item.slot == 0
            and event.precision is not Precision.EXACT
            and not is_postwar_evidence(event.evidence_class)
            and not attrs.has_announcement
        ):
            days = s.uncertainty_margin_days.get(event.precision, s.default_margin_days)
            margin = days * self.mapper.px_per_day
            if margin > 0:
                found.append(Decoration("margin", item.x - margin, item.x + margin, item.y, event.key))
        return found

    def layout_all(self, dataset: TimelineDataset) -> Dict[Track, TrackLayout]:
        layouts: Dict[Track, TrackLayout] = {}
        for track in Track:
            if not self.config.shows(track):
                continue
            layouts[track] = self.layout(track, dataset.events(track), self.track_top(track, dataset))
        return layouts
