"""State that outlives a single render: dataset, toggles, hover and drag."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .chains import NO_HIGHLIGHT, ChainGraph, ChainHighlight
from .config import LayoutSettings, RenderConfig
from .derived import DerivedTable, derive_attributes
from .interaction import DragSession, DragState, ResizeDebouncer
from .labels import LabelPlacement
from .models import ChainLink, Event, TimelineDataset, Track
from .overrides import LabelOverrideStore, Point
from .pipeline import RenderResult, TimelineRenderer, default_hover, move_label
from .surface import PlotlySurface, Surface

logger = logging.getLogger(__name__)


class TimelineController:
    """Owns the loaded dataset and drives re-renders.

    The derived-attribute table is computed once per dataset load. Every
    toggle change, settled resize, chain hover or committed drag leads to
    a full re-render from the dataset.
    """

    def __init__(
        self,
        dataset: TimelineDataset,
        config: Optional[RenderConfig] = None,
        viewport_width: float = 1400,
        settings: Optional[LayoutSettings] = None,
        store: Optional[LabelOverrideStore] = None,
        surface_factory: Callable[[], Surface] = PlotlySurface,
        hover_text: Callable[[Event], str] = default_hover,
        on_click: Optional[Callable[[LabelPlacement], None]] = None,
        debouncer: Optional[ResizeDebouncer] = None,
    ):
        self.settings = settings or LayoutSettings()
        self.store = store or LabelOverrideStore()
        self.config = config or RenderConfig()
        self.viewport_width = viewport_width
        self.surface_factory = surface_factory
        self.renderer = TimelineRenderer(self.settings, self.store, hover_text)
        self.debouncer = debouncer or ResizeDebouncer(self.settings.resize_debounce_seconds)
        self.drag = DragSession(
            self.store,
            threshold=self.settings.drag_click_threshold,
            on_click=on_click,
            on_move=self._on_drag_move,
        )
        self.highlight: ChainHighlight = NO_HIGHLIGHT
        self.surface: Optional[Surface] = None
        self.result: Optional[RenderResult] = None
        self.load(dataset)

    def load(self, dataset: TimelineDataset) -> None:
        self.dataset = dataset
        self.derived: DerivedTable = derive_attributes(dataset)
        self.chains = ChainGraph(dataset.chain_links)
        self.highlight = NO_HIGHLIGHT
        self.drag.cancel()
        logger.debug("Controller loaded dataset; %d derived attribute(s)", len(self.derived))

    # ---- rendering ----

    def render(self) -> RenderResult:
        self.surface = self.surface_factory()
        self.result = self.renderer.render(
            self.dataset,
            self.config,
            self.viewport_width,
            surface=self.surface,
            derived=self.derived,
            highlight=self.highlight,
        )
        return self.result

    def set_config(self, config: RenderConfig) -> RenderResult:
        self.config = config
        return self.render()

    def toggle(self, **changes: bool) -> RenderResult:
        return self.set_config(self.config.with_options(**changes))

    def resize(self, width: float) -> None:
        self.debouncer.notify(width)

    def poll_resize(self) -> Optional[RenderResult]:
        """Re-render once the resize burst has settled."""
        width = self.debouncer.poll()
        if width is None:
            return None
        self.viewport_width = width
        return self.render()

    # ---- chains ----

    def hover_link(self, link: ChainLink) -> RenderResult:
        self.highlight = self.chains.highlight(link.from_id, link.to_id)
        return self.render()

    def leave_link(self) -> RenderResult:
        self.highlight = NO_HIGHLIGHT
        return self.render()

    # ---- label dragging ----

    def _on_drag_move(self, placement: LabelPlacement) -> None:
        if self.surface is not None:
            move_label(self.surface, placement)

    def begin_drag(self, track: Track, index: int, pointer: Point) -> bool:
        if self.result is None:
            return False
        placement = self.result.placement_for(track, index)
        if placement is None:
            logger.debug("No label for %s[%d]", track.value, index)
            return False
        return self.drag.begin(placement, pointer)

    def drag_to(self, pointer: Point) -> Optional[LabelPlacement]:
        return self.drag.move(pointer)

    def end_drag(self, pointer: Optional[Point] = None) -> Optional[DragState]:
        outcome = self.drag.release(pointer)
        if outcome is DragState.COMMITTED:
            self.render()
        return outcome

    def move_label_to(self, track: Track, index: int, position: Point) -> Optional[DragState]:
        """Drag a label from its current position straight to ``position``."""
        placement = self.result.placement_for(track, index) if self.result else None
        if placement is None:
            return None
        start = Point(placement.resolved_x, placement.resolved_y)
        if not self.begin_drag(track, index, start):
            return None
        return self.end_drag(position)

    def reset_labels(self, track: Track) -> RenderResult:
        self.store.clear(track)
        return self.render()
