"""One render cycle: segments, mapping, stacking, labels, chains, gaps.

``TimelineRenderer.render`` places every primitive on the surface, then
defers the geometry that depends on realized boxes (label connectors and
chain curves) to ``after_layout`` callbacks and settles the surface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .chains import NO_HIGHLIGHT, ChainCurve, ChainGraph, ChainHighlight, chain_curves
from .config import LayoutSettings, RenderConfig
from .derived import DerivedTable, derive_attributes
from .encoding import brighten
from .gaps import GapBand, build_gap_bands, describe_gap
from .grid import DayTick, MonthLine, axis_grid
from .labels import LABELLED_TRACKS, LabelPlacement, LabelPlacer, candidates_for, connector_path
from .mapping import CoordinateMapper
from .models import Event, Segment, TimelineDataset, Track
from .overrides import LabelOverrideStore
from .segments import build_segments
from .stacking import StackedItem, TrackLayout, TrackStacker
from .surface import Surface

logger = logging.getLogger(__name__)

BOTTOM_PADDING = 20

DECORATION_STYLES = {
    "margin": ("rgba(0, 0, 0, 0.15)", 4.0),
    "announcement": ("rgba(230, 126, 34, 0.8)", 10.0),
    "epistemic": ("rgba(230, 126, 34, 0.6)", 10.0),
}

LABEL_STYLES = {
    Track.PRIMARY: ("rgba(231, 76, 60, 0.85)", "#e74c3c"),
    Track.SECONDARY: ("rgba(102, 126, 234, 0.85)", "#667eea"),
}


def default_hover(event: Event) -> str:
    date = event.raw_start or "n/c"
    return f"{event.type_label}<br>{date}<br>{event.description}"


def item_id(event: Event) -> str:
    return f"item:{event.key}"


def label_id(event: Event) -> str:
    return f"label:{event.key}"


def connector_id(event: Event) -> str:
    return f"connector:{event.key}"


@dataclass
class RenderResult:
    segments: List[Segment] = field(default_factory=list)
    layouts: Dict[Track, TrackLayout] = field(default_factory=dict)
    labels: Dict[Track, List[LabelPlacement]] = field(default_factory=dict)
    gap_bands: List[GapBand] = field(default_factory=list)
    month_lines: List[MonthLine] = field(default_factory=list)
    day_ticks: List[DayTick] = field(default_factory=list)
    chain_curves: List[ChainCurve] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0

    def all_labels(self) -> List[LabelPlacement]:
        return [p for track in LABELLED_TRACKS for p in self.labels.get(track, [])]

    def placement_for(self, track: Track, index: int) -> Optional[LabelPlacement]:
        return next((p for p in self.labels.get(track, []) if p.index == index), None)


def move_label(surface: Surface, placement: LabelPlacement) -> None:
    """Redraw a label and its connector at the placement's current position."""
    event = placement.event_ref
    surface.update(label_id(event), x=placement.resolved_x, y=placement.resolved_y)
    if not surface.settled:
        return
    box = surface.measure(label_id(event))
    surface.update(connector_id(event), path=connector_path(placement.anchor_x, placement.anchor_y, box))


class TimelineRenderer:
    def __init__(
        self,
        settings: Optional[LayoutSettings] = None,
        store: Optional[LabelOverrideStore] = None,
        hover_text: Callable[[Event], str] = default_hover,
    ):
        self.settings = settings or LayoutSettings()
        self.store = store or LabelOverrideStore()
        self.hover_text = hover_text

    def render(
        self,
        dataset: TimelineDataset,
        config: RenderConfig,
        viewport_width: float,
        surface: Optional[Surface] = None,
        derived: Optional[DerivedTable] = None,
        highlight: ChainHighlight = NO_HIGHLIGHT,
    ) -> RenderResult:
        surface = surface if surface is not None else Surface()
        surface.clear()
        derived = derived if derived is not None else derive_attributes(dataset)
        s = self.settings

        segments = build_segments(dataset.all_timestamps(), viewport_width, s)
        result = RenderResult(segments=segments)
        if not segments:
            surface.resize(s.visible_width(viewport_width), s.header_offset)
            surface.settle()
            result.width, result.height = surface.width, surface.height
            return result

        mapper = CoordinateMapper(segments)
        stacker = TrackStacker(mapper, derived, config, s)
        result.layouts = stacker.layout_all(dataset)
        result.labels = self._place_labels(dataset, config, viewport_width, result.layouts)
        result.gap_bands = build_gap_bands(dataset.gaps, mapper, config, s)
        result.month_lines, result.day_ticks = axis_grid(segments)

        result.width = mapper.total_width
        result.height = self._height(result)
        surface.resize(result.width, result.height)

        self._draw_grid(surface, result)
        self._draw_gaps(surface, result)
        for layout in result.layouts.values():
            self._draw_track(surface, layout, highlight)
        for placement in result.all_labels():
            self._draw_label(surface, placement)

        if config.show_chains and Track.ACTIONS in result.layouts:
            graph = ChainGraph(dataset.chain_links)
            actions = result.layouts[Track.ACTIONS]
            surface.after_layout(lambda surf: self._draw_chains(surf, graph, actions, highlight, result))

        surface.settle()
        logger.info(
            "Rendered %d segment(s), %d track(s), %d label(s), %d gap(s), %d chain link(s)",
            len(segments), len(result.layouts), len(result.all_labels()),
            len(result.gap_bands), len(result.chain_curves),
        )
        return result

    # ---- layout steps ----

    def _place_labels(
        self,
        dataset: TimelineDataset,
        config: RenderConfig,
        viewport_width: float,
        layouts: Dict[Track, TrackLayout],
    ) -> Dict[Track, List[LabelPlacement]]:
        placer = LabelPlacer(viewport_width, self.settings)
        primary_ids = {e.id for e in dataset.events(Track.PRIMARY) if e.id}
        labels: Dict[Track, List[LabelPlacement]] = {}
        for track in LABELLED_TRACKS:
            candidates = candidates_for(track, layouts, config, primary_ids)
            if not candidates:
                continue
            placements = placer.place(track, candidates)
            labels[track] = placer.apply_overrides(placements, self.store.load(track))
        return labels

    def _height(self, result: RenderResult) -> float:
        bottoms = [layout.top + layout.height for layout in result.layouts.values()]
        bottoms.extend(p.resolved_y + p.height for p in result.all_labels())
        return max(bottoms, default=self.settings.header_offset) + BOTTOM_PADDING

    # ---- drawing ----

    def _draw_grid(self, surface: Surface, result: RenderResult) -> None:
        for line in result.month_lines:
            surface.add_rect(
                f"month:{line.year}-{line.month:02d}",
                line.x, 30, line.line_width, result.height - 30, line.color,
                layer="below", group="grid",
            )
            surface.add_text(
                f"month-label:{line.year}-{line.month:02d}",
                line.x + 5, 5, line.label,
                size=18 if line.is_year_start else 12,
                color="#000000" if line.is_year_start else "#666666",
                bold=line.is_year_start,
                group="grid",
            )
        for i, tick in enumerate(result.day_ticks):
            surface.add_text(
                f"day:{i}", tick.x - 10, 25, str(tick.day),
                size=9, color="#999999", width=20, group="grid",
            )

    def _draw_gaps(self, surface: Surface, result: RenderResult) -> None:
        for i, band in enumerate(result.gap_bands):
            info = describe_gap(band.gap)
            surface.add_rect(
                f"gap:{i}", band.x0, 0, band.width, result.height, band.fill,
                opacity=band.opacity, layer="below", group="gap",
                hover=f"<b>{info.title}</b><br>Period: {info.period}<br>Duration: {info.duration}",
            )

    def _draw_track(self, surface: Surface, layout: TrackLayout, highlight: ChainHighlight) -> None:
        surface.add_text(
            f"track:{layout.track.value}", 5, layout.top, layout.label,
            size=11, color=layout.color, bold=True, group="track",
        )
        for i, deco in enumerate(layout.decorations):
            fill, height = DECORATION_STYLES[deco.kind]
            surface.add_rect(
                f"deco:{deco.event_key}:{deco.kind}:{i}",
                min(deco.x0, deco.x1), deco.y - height / 2, deco.width, height, fill,
                layer="below", group="decoration",
            )
        for item in layout.items:
            self._draw_item(surface, item, highlight)

    def _draw_item(self, surface: Surface, item: StackedItem, highlight: ChainHighlight) -> None:
        s = self.settings
        style = item.style
        hover = self.hover_text(item.event)
        if item.is_span:
            x0, x1 = sorted((item.x, item.x_end))
            surface.add_rect(
                item_id(item.event), x0, item.y - 4, x1 - x0, 8, style.color,
                opacity=style.opacity, hover=hover, group="span",
            )
            return

        radius = s.marker_size / 2
        color = style.color
        opacity = style.opacity
        if item.event.track is Track.ACTIONS:
            emphasis = highlight.item_emphasis(item.event.id)
            radius *= emphasis.scale
            color = brighten(color, emphasis.brightness)
            if emphasis.opacity is not None:
                opacity = emphasis.opacity
        surface.add_circle(
            item_id(item.event), item.x, item.y, radius, color,
            opacity=opacity,
            line_color=style.border_color,
            line_width=1.5 if style.border_color else 0.0,
            line_dash="2,2" if style.border_dashed else None,
            hover=hover,
            group="marker",
        )

    def _draw_label(self, surface: Surface, placement: LabelPlacement) -> None:
        text_color, line_color = LABEL_STYLES[placement.track]
        event = placement.event_ref
        surface.add_text(
            label_id(event), placement.resolved_x, placement.resolved_y, placement.text,
            size=8, color=text_color,
            background="rgba(255, 255, 255, 0.75)", border="rgba(0, 0, 0, 0.08)",
            width=placement.width, height=placement.height,
            group="label",
        )

        def connect(surf: Surface) -> None:
            box = surf.measure(label_id(event))
            surf.add_path(
                connector_id(event),
                connector_path(placement.anchor_x, placement.anchor_y, box),
                line_color, width=1.0, opacity=0.25, dash="2,2", group="connector",
            )

        surface.after_layout(connect)

    def _draw_chains(
        self,
        surface: Surface,
        graph: ChainGraph,
        actions: TrackLayout,
        highlight: ChainHighlight,
        result: RenderResult,
    ) -> None:
        centres = {}
        for item in actions.markers():
            if item.event.id is None or item.event.id in centres:
                continue
            box = surface.measure(item_id(item.event))
            if box is not None:
                centres[item.event.id] = (box.center_x, box.center_y)

        result.chain_curves = chain_curves(graph.links, centres)
        for i, curve in enumerate(result.chain_curves):
            style = highlight.link_style(curve.link)
            surface.add_path(
                f"chain:{i}", curve.path, style.color,
                width=style.width, opacity=style.opacity, dash=style.dash, group="chain",
            )
