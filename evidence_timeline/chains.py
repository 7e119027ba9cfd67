"""Communication chains between fine-grained actions.

Links are treated as undirected for highlighting: hovering one link lights
up the whole connected component it belongs to. Traversal is an explicit
queue with a visited set, so cyclic chains terminate.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .models import ChainLink, LinkType

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]

CURVE_LIFT = 20
CURVE_CONTROL_FRACTIONS = (0.3, 0.7)


@dataclass(frozen=True)
class LinkStyle:
    color: str
    opacity: float
    width: float
    dash: str


DEFAULT_LINK_STYLES = {
    LinkType.REPLY: LinkStyle(color="#9b59b6", opacity=0.4, width=1.0, dash="3,3"),
    LinkType.FOLLOWS: LinkStyle(color="#95a5a6", opacity=0.4, width=1.0, dash="4,2"),
}

HIGHLIGHT_COLORS = {
    LinkType.REPLY: "#8e44ad",
    LinkType.FOLLOWS: "#2c3e50",
}

DIMMED_LINK_OPACITY = 0.1


@dataclass(frozen=True)
class ItemEmphasis:
    scale: float = 1.0
    brightness: float = 1.0
    opacity: Optional[float] = None     # None keeps the encoded opacity


NORMAL = ItemEmphasis()
EMPHASISED = ItemEmphasis(scale=1.2, brightness=1.2)
DIMMED = ItemEmphasis(opacity=0.3)


# -----------------------
# Highlight state
# -----------------------

@dataclass(frozen=True)
class ChainHighlight:
    nodes: FrozenSet[str] = frozenset()
    pairs: FrozenSet[Pair] = frozenset()

    @property
    def active(self) -> bool:
        return bool(self.nodes or self.pairs)

    def link_style(self, link: ChainLink) -> LinkStyle:
        base = DEFAULT_LINK_STYLES[link.link_type]
        if not self.active:
            return base
        if link.pair in self.pairs:
            return replace(base, color=HIGHLIGHT_COLORS[link.link_type], opacity=1.0, width=2.5)
        return replace(base, opacity=DIMMED_LINK_OPACITY)

    def item_emphasis(self, event_id: Optional[str]) -> ItemEmphasis:
        if not self.active:
            return NORMAL
        return EMPHASISED if event_id in self.nodes else DIMMED


NO_HIGHLIGHT = ChainHighlight()


# -----------------------
# Graph
# -----------------------

class ChainGraph:
    def __init__(self, links: Iterable[ChainLink]):
        self.links: List[ChainLink] = list(links)
        self._adjacency: Dict[str, List[ChainLink]] = {}
        for link in self.links:
            self._adjacency.setdefault(link.from_id, []).append(link)
            if link.to_id != link.from_id:
                self._adjacency.setdefault(link.to_id, []).append(link)

    def __len__(self) -> int:
        return len(self.links)

    def incident(self, node: str) -> List[ChainLink]:
        return list(self._adjacency.get(node, []))

    def component(self, from_id: str, to_id: str) -> Tuple[Set[str], Set[Pair]]:
        """Nodes and link pairs reachable from either endpoint."""
        nodes: Set[str] = set()
        pairs: Set[Pair] = set()
        queue = deque([from_id, to_id])
        while queue:
            node = queue.popleft()
            if node in nodes:
                continue
            nodes.add(node)
            for link in self._adjacency.get(node, ()):
                pairs.add(link.pair)
                other = link.to_id if link.from_id == node else link.from_id
                if other not in nodes:
                    queue.append(other)
        return nodes, pairs

    def highlight(self, from_id: str, to_id: str) -> ChainHighlight:
        nodes, pairs = self.component(from_id, to_id)
        logger.debug(
            "Chain through %s -> %s: %d action(s), %d link(s)",
            from_id, to_id, len(nodes), len(pairs),
        )
        return ChainHighlight(frozenset(nodes), frozenset(pairs))


# -----------------------
# Geometry
# -----------------------

@dataclass(frozen=True)
class ChainCurve:
    link: ChainLink
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def control_points(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        lo, hi = CURVE_CONTROL_FRACTIONS
        cy = min(self.y0, self.y1) - CURVE_LIFT
        span = self.x1 - self.x0
        return (self.x0 + span * lo, cy), (self.x0 + span * hi, cy)

    @property
    def path(self) -> str:
        (c1x, c1y), (c2x, c2y) = self.control_points
        return (
            f"M {self.x0:.1f} {self.y0:.1f} "
            f"C {c1x:.1f} {c1y:.1f}, {c2x:.1f} {c2y:.1f}, {self.x1:.1f} {self.y1:.1f}"
        )


def chain_curves(
    links: Iterable[ChainLink],
    centres: Dict[str, Tuple[float, float]],
) -> List[ChainCurve]:
    """Arc each link between the realized centres of its two endpoints."""
    curves = []
    for i, link in enumerate(links):
        start = centres.get(link.from_id)
        end = centres.get(link.to_id)
        if start is None or end is None:
            logger.info(
                "Skipping chain link %d: missing endpoint (from=%s, to=%s)",
                i, link.from_id if start is None else "ok", link.to_id if end is None else "ok",
            )
            continue
        curves.append(ChainCurve(link, start[0], start[1], end[0], end[1]))
    return curves
