"""Drawing surface contract and its Plotly implementation.

Rendering is two-phase. Layout code adds primitives, then registers
callbacks with ``after_layout``. ``settle`` realizes every primitive's
bounding box and runs the callbacks, which may ``measure`` boxes and add
dependent geometry (label connectors, chain curves). Measuring before the
surface has settled raises ``SurfaceNotSettledError``.

All coordinates are pixels with y growing downwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Union

import plotly.graph_objects as go

from .errors import SurfaceNotSettledError

logger = logging.getLogger(__name__)

CHAR_WIDTH_RATIO = 0.6
LINE_HEIGHT_RATIO = 1.4


@dataclass(frozen=True)
class BBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass
class RectPrimitive:
    id: str
    x: float
    y: float
    width: float
    height: float
    fill: str
    opacity: float = 1.0
    shape: str = "rect"                 # "rect" or "circle"
    line_color: Optional[str] = None
    line_width: float = 0.0
    line_dash: Optional[str] = None
    layer: str = "above"
    hover: Optional[str] = None
    group: str = ""


@dataclass
class PathPrimitive:
    id: str
    path: str
    color: str
    width: float = 1.0
    opacity: float = 1.0
    dash: Optional[str] = None
    group: str = ""


@dataclass
class TextPrimitive:
    id: str
    x: float
    y: float
    text: str
    size: float = 12.0
    color: str = "#222222"
    bold: bool = False
    background: Optional[str] = None
    border: Optional[str] = None
    width: Optional[float] = None       # fixed box width; estimated otherwise
    height: Optional[float] = None
    hover: Optional[str] = None
    group: str = ""


Primitive = Union[RectPrimitive, PathPrimitive, TextPrimitive]


class Surface:
    """Records primitives and realizes their boxes on ``settle``.

    Text boxes are estimated from the character count and font size.
    Subclasses turn the recorded primitives into a concrete output.
    """

    def __init__(self, width: float = 0.0, height: float = 0.0):
        self.width = width
        self.height = height
        self.primitives: Dict[str, Primitive] = {}
        self._callbacks: List[Callable[["Surface"], None]] = []
        self._boxes: Dict[str, BBox] = {}
        self.settled = False

    # ---- drawing ----

    def _add(self, primitive: Primitive) -> str:
        if primitive.id in self.primitives:
            logger.debug("Replacing primitive %s", primitive.id)
        self.primitives[primitive.id] = primitive
        if self.settled:
            self._boxes[primitive.id] = self.realize(primitive)
        return primitive.id

    def add_rect(self, id: str, x: float, y: float, width: float, height: float, fill: str, **style) -> str:
        return self._add(RectPrimitive(id, x, y, width, height, fill, **style))

    def add_circle(self, id: str, cx: float, cy: float, radius: float, fill: str, **style) -> str:
        return self._add(
            RectPrimitive(id, cx - radius, cy - radius, 2 * radius, 2 * radius, fill, shape="circle", **style)
        )

    def add_path(self, id: str, path: str, color: str, **style) -> str:
        return self._add(PathPrimitive(id, path, color, **style))

    def add_text(self, id: str, x: float, y: float, text: str, **style) -> str:
        return self._add(TextPrimitive(id, x, y, text, **style))

    def update(self, id: str, **changes) -> Primitive:
        """Change a primitive in place, e.g. to move a label being dragged."""
        primitive = replace(self.primitives[id], **changes)
        self.primitives[id] = primitive
        if self.settled:
            self._boxes[id] = self.realize(primitive)
        return primitive

    def ids(self, group: str) -> List[str]:
        return [pid for pid, p in self.primitives.items() if p.group == group]

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    # ---- two-phase layout ----

    def after_layout(self, callback: Callable[["Surface"], None]) -> None:
        if self.settled:
            callback(self)
        else:
            self._callbacks.append(callback)

    def settle(self) -> None:
        if self.settled:
            return
        self._boxes = {pid: self.realize(p) for pid, p in self.primitives.items()}
        self.settled = True
        pending, self._callbacks = self._callbacks, []
        for callback in pending:
            callback(self)

    def measure(self, id: str) -> Optional[BBox]:
        if not self.settled:
            raise SurfaceNotSettledError(f"cannot measure {id!r} before settle()")
        return self._boxes.get(id)

    def realize(self, primitive: Primitive) -> Optional[BBox]:
        if isinstance(primitive, RectPrimitive):
            return BBox(primitive.x, primitive.y, primitive.width, primitive.height)
        if isinstance(primitive, TextPrimitive):
            lines = primitive.text.split("<br>")
            width = primitive.width
            if width is None:
                width = max(len(line) for line in lines) * primitive.size * CHAR_WIDTH_RATIO
            height = primitive.height
            if height is None:
                height = len(lines) * primitive.size * LINE_HEIGHT_RATIO
            return BBox(primitive.x, primitive.y, width, height)
        return None

    def clear(self) -> None:
        self.primitives.clear()
        self._callbacks.clear()
        self._boxes.clear()
        self.settled = False


# -----------------------
# Plotly
# -----------------------

def plotly_dash(dash: Optional[str]) -> str:
    """SVG dash array ("3,3") to Plotly's pixel list ("3px,3px")."""
    if not dash:
        return "solid"
    return ",".join(f"{part.strip()}px" for part in dash.split(","))


@dataclass
class HoverPoints:
    x: List[float] = field(default_factory=list)
    y: List[float] = field(default_factory=list)
    text: List[str] = field(default_factory=list)
    ids: List[str] = field(default_factory=list)


class PlotlySurface(Surface):
    """Builds a ``go.Figure`` in pixel coordinates from the primitives."""

    def __init__(self, width: float = 0.0, height: float = 0.0, font_family: str = "sans-serif"):
        super().__init__(width, height)
        self.font_family = font_family

    def _shape(self, fig: go.Figure, p: Primitive) -> None:
        if isinstance(p, RectPrimitive):
            fig.add_shape(
                type=p.shape,
                x0=p.x, x1=p.x + p.width,
                y0=p.y, y1=p.y + p.height,
                fillcolor=p.fill,
                opacity=p.opacity,
                line=dict(
                    color=p.line_color or p.fill,
                    width=p.line_width,
                    dash=plotly_dash(p.line_dash),
                ),
                layer=p.layer,
            )
        elif isinstance(p, PathPrimitive):
            fig.add_shape(
                type="path",
                path=p.path,
                opacity=p.opacity,
                line=dict(color=p.color, width=p.width, dash=plotly_dash(p.dash)),
                layer="above",
            )

    def _annotation(self, fig: go.Figure, p: TextPrimitive) -> None:
        box = self._boxes.get(p.id) if self.settled else self.realize(p)
        text = f"<b>{p.text}</b>" if p.bold else p.text
        fig.add_annotation(
            x=p.x,
            y=p.y,
            xref="x",
            yref="y",
            xanchor="left",
            yanchor="top",
            showarrow=False,
            text=text,
            width=box.width if p.background else None,
            align="left",
            bgcolor=p.background,
            bordercolor=p.border,
            borderwidth=1 if p.border else 0,
            font=dict(size=p.size, color=p.color, family=self.font_family),
            hovertext=p.hover,
        )

    def to_figure(self) -> go.Figure:
        self.settle()
        fig = go.Figure()
        hover = HoverPoints()

        for p in self.primitives.values():
            if isinstance(p, TextPrimitive):
                self._annotation(fig, p)
                continue
            self._shape(fig, p)
            if isinstance(p, RectPrimitive) and p.hover:
                hover.x.append(p.x + p.width / 2)
                hover.y.append(p.y + p.height / 2)
                hover.text.append(p.hover)
                hover.ids.append(p.id)

        # shapes carry no hover, so an invisible marker sits on each one
        fig.add_trace(
            go.Scatter(
                x=hover.x,
                y=hover.y,
                mode="markers",
                marker=dict(size=12, opacity=0),
                hovertext=hover.text,
                hoverinfo="text",
                customdata=hover.ids,
                showlegend=False,
                cliponaxis=False,
            )
        )

        fig.update_xaxes(range=[0, max(self.width, 1)], visible=False, fixedrange=True)
        fig.update_yaxes(range=[max(self.height, 1), 0], visible=False, fixedrange=True)
        fig.update_layout(
            width=int(self.width) or None,
            height=int(self.height) or None,
            margin=dict(l=0, r=0, t=0, b=0),
            plot_bgcolor="#ffffff",
            paper_bgcolor="#ffffff",
            showlegend=False,
            hovermode="closest",
        )
        logger.debug("Built figure with %d primitive(s)", len(self.primitives))
        return fig
