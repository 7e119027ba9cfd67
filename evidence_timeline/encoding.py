"""Visual encoding of evidentiary confidence, precision and provenance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import Confidence, Event, Precision, TRACK_COLORS, Track
from .semantics import has_semantic_uncertainty, is_postwar_evidence

POSTWAR_COLOR = "#2c3e50"
UNCERTAIN_COLOR = "#e67e22"
UNCERTAIN_BORDER = "#d35400"
RELIABLE_COLOR = "#3498db"
INTERVAL_COLOR = "#85c1e9"
INTERVAL_OPACITY = 0.4

OPACITY_BY_CONFIDENCE = {
    Confidence.HIGH: 1.0,
    Confidence.MEDIUM: 0.7,
    Confidence.LOW: 0.4,
    Confidence.UNKNOWN: 1.0,
}


@dataclass(frozen=True)
class MarkerStyle:
    color: str
    opacity: float
    border_color: Optional[str] = None
    border_dashed: bool = False
    is_span: bool = False


def encode(
    confidence: Confidence,
    precision: Precision,
    evidence_class: str,
    uncertain_wording: bool,
    track: Track,
) -> MarkerStyle:
    """Style for one event marker.

    Retrospective (postwar) evidence on the secondary track always renders
    in the neutral color at reduced opacity, whatever its confidence.
    """
    is_span = precision is Precision.INTERVAL
    if is_span:
        return MarkerStyle(color=INTERVAL_COLOR, opacity=INTERVAL_OPACITY, is_span=True)

    if track is not Track.SECONDARY:
        return MarkerStyle(color=TRACK_COLORS[track], opacity=OPACITY_BY_CONFIDENCE[confidence])

    if is_postwar_evidence(evidence_class):
        return MarkerStyle(color=POSTWAR_COLOR, opacity=0.6)
    if confidence in (Confidence.MEDIUM, Confidence.LOW) or uncertain_wording:
        return MarkerStyle(
            color=UNCERTAIN_COLOR,
            opacity=0.5 if confidence is Confidence.LOW else 0.7,
            border_color=UNCERTAIN_BORDER if uncertain_wording else None,
            border_dashed=uncertain_wording,
        )
    if confidence is Confidence.HIGH:
        return MarkerStyle(color=RELIABLE_COLOR, opacity=0.9)
    return MarkerStyle(color=TRACK_COLORS[track], opacity=1.0)


def encode_event(event: Event) -> MarkerStyle:
    uncertain = event.track is Track.SECONDARY and has_semantic_uncertainty(event)
    return encode(event.confidence, event.precision, event.evidence_class, uncertain, event.track)


def brighten(color: str, factor: float) -> str:
    """Scale each channel of a ``#rrggbb`` color by ``factor``, capped at white.

    Anything that is not a six-digit hex color comes back unchanged.
    """
    if factor == 1.0 or not (color.startswith("#") and len(color) == 7):
        return color
    try:
        channels = [int(color[i:i + 2], 16) for i in (1, 3, 5)]
    except ValueError:
        return color
    return "#" + "".join(f"{min(255, round(c * factor)):02x}" for c in channels)
