"""Pointer and viewport interaction: label dragging and resize debouncing."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional

from .labels import LabelPlacement
from .overrides import LabelOverrideStore, Point

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    CANCELLED_AS_CLICK = "cancelled_as_click"


# -----------------------
# Label dragging
# -----------------------

@dataclass
class DragSession:
    """One label drag at a time.

    ``begin`` captures the pointer and the label's position, ``move``
    updates the provisional position (and the connector via ``on_move``),
    ``release`` either commits the new position to the store or, when the
    pointer moved less than ``threshold`` pixels, reports a click.
    After release the session is idle again and ``outcome`` holds how the
    last drag ended.
    """

    store: LabelOverrideStore
    threshold: float = 5.0
    on_click: Optional[Callable[[LabelPlacement], None]] = None
    on_move: Optional[Callable[[LabelPlacement], None]] = None

    state: DragState = DragState.IDLE
    outcome: Optional[DragState] = None
    placement: Optional[LabelPlacement] = None
    _pointer_start: Optional[Point] = field(default=None, repr=False)
    _label_start: Optional[Point] = field(default=None, repr=False)
    _pointer: Optional[Point] = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self.state is DragState.DRAGGING

    def begin(self, placement: LabelPlacement, pointer: Point) -> bool:
        if self.active:
            logger.debug("Ignoring drag start on %s: a drag is in progress", placement.event_ref.key)
            return False
        self.state = DragState.DRAGGING
        self.placement = placement
        self._pointer_start = pointer
        self._pointer = pointer
        self._label_start = Point(placement.resolved_x, placement.resolved_y)
        return True

    def move(self, pointer: Point) -> Optional[LabelPlacement]:
        if not self.active:
            return None
        self._pointer = pointer
        dx = pointer.x - self._pointer_start.x
        dy = pointer.y - self._pointer_start.y
        self.placement = replace(
            self.placement,
            resolved_x=self._label_start.x + dx,
            resolved_y=self._label_start.y + dy,
        )
        if self.on_move is not None:
            self.on_move(self.placement)
        return self.placement

    def displacement(self) -> float:
        if self._pointer_start is None or self._pointer is None:
            return 0.0
        return math.hypot(self._pointer.x - self._pointer_start.x, self._pointer.y - self._pointer_start.y)

    def release(self, pointer: Optional[Point] = None) -> Optional[DragState]:
        if not self.active:
            return None
        if pointer is not None:
            self.move(pointer)

        placement = self.placement
        if self.displacement() >= self.threshold:
            self.store.save(
                placement.track,
                placement.index,
                Point(placement.resolved_x, placement.resolved_y),
            )
            self.outcome = DragState.COMMITTED
        else:
            self.outcome = DragState.CANCELLED_AS_CLICK
            if self.on_click is not None:
                self.on_click(placement)

        self.state = DragState.IDLE
        self._pointer_start = self._label_start = self._pointer = None
        return self.outcome

    def cancel(self) -> None:
        self.state = DragState.IDLE
        self.placement = None
        self._pointer_start = self._label_start = self._pointer = None


# -----------------------
# Resize debouncing
# -----------------------

class ResizeDebouncer:
    """Collapse a burst of resizes into one re-render.

    Each ``notify`` restarts the quiet window. ``poll`` returns the last
    width once the window has passed without a new resize, and ``None``
    otherwise. The clock is injectable for tests.
    """

    def __init__(self, delay: float = 0.3, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self.clock = clock
        self._pending: Optional[float] = None
        self._last_event: Optional[float] = None
        self.history: List[float] = []

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def notify(self, width: float) -> None:
        self._pending = width
        self._last_event = self.clock()

    def poll(self) -> Optional[float]:
        if self._pending is None:
            return None
        if self.clock() - self._last_event < self.delay:
            return None
        return self.flush()

    def flush(self) -> Optional[float]:
        width, self._pending = self._pending, None
        if width is not None:
            self.history.append(width)
            logger.debug("Resize settled at width %.0f", width)
        return width
