"""Typed records for the evidence timeline.

Events are immutable once loaded. Everything the renderer derives from
them (segments, stack slots, label placements) lives in its own types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)


# -----------------------
# Enumerations
# -----------------------

class Track(str, Enum):
    """The three rendering lanes."""

    PRIMARY = "t1"      # direct primary sources
    SECONDARY = "t2"    # indirect / secondary view
    ACTIONS = "t3"      # fine-grained actions (chain endpoints)

    @property
    def position(self) -> int:
        return list(Track).index(self)


TRACK_LABELS: Dict[Track, str] = {
    Track.PRIMARY: "T1: Direct sources",
    Track.SECONDARY: "T2: Secondary view",
    Track.ACTIONS: "T3: Micro-actions",
}

TRACK_COLORS: Dict[Track, str] = {
    Track.PRIMARY: "#e74c3c",
    Track.SECONDARY: "#3498db",
    Track.ACTIONS: "#2ecc71",
}


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "Confidence":
        """Accept both ``high`` and the tagged ``#confidence/high`` form."""
        if not value:
            return cls.UNKNOWN
        text = str(value).strip().lower()
        if "/" in text:
            text = text.rsplit("/", 1)[-1]
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


class Precision(str, Enum):
    EXACT = "exact"
    CIRCA = "circa"
    INTERVAL = "interval"
    OPEN_START = "open_start"
    OPEN_END = "open_end"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "Precision":
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class LinkType(str, Enum):
    REPLY = "REPLY"
    FOLLOWS = "FOLLOWS"

    @classmethod
    def parse(cls, value: Any) -> "LinkType":
        text = str(value or "").strip().upper()
        if text in ("REPLY", "REPLIES_TO", "REPLIES"):
            return cls.REPLY
        return cls.FOLLOWS


class GapSeverity(str, Enum):
    HIGH = "HIGH"
    MODERATE = "MODERATE"

    @classmethod
    def parse(cls, value: Any) -> "GapSeverity":
        if str(value or "").strip().upper() == "HIGH":
            return cls.HIGH
        return cls.MODERATE


# -----------------------
# Helpers
# -----------------------

def clean(val: Any) -> Optional[str]:
    if val is None:
        return None
    if isinstance(val, float) and pd.isna(val):
        return None
    text = str(val).strip()
    return text or None


def parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """Parse a date-ish value to a naive ``pd.Timestamp`` or ``None``."""
    if value is None or value == "":
        return None
    ts = pd.to_datetime(str(value), errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


def parse_int(value: Any) -> Optional[int]:
    """Whole number from a number or numeric string; ``None`` otherwise."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.debug("Ignoring non-numeric value %r", value)
        return None


TRUE_STRINGS = {"true", "yes", "1", "y", "oui"}


def parse_bool(value: Any) -> bool:
    """JSON flags arrive as booleans, numbers or strings like ``"false"``."""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    if isinstance(value, float) and pd.isna(value):
        return False
    return bool(value)


# -----------------------
# Data model
# -----------------------

@dataclass(frozen=True)
class Event:
    track: Track
    index: int                      # position in the track's source array
    id: Optional[str]
    start: Optional[pd.Timestamp]
    end: Optional[pd.Timestamp] = None
    type: str = ""
    type_label: str = ""
    confidence: Confidence = Confidence.UNKNOWN
    precision: Precision = Precision.UNKNOWN
    evidence_class: str = ""
    description: str = ""
    source_quote: str = ""
    place: Optional[str] = None
    is_postwar_reconstruction: bool = False
    raw_start: Optional[str] = None

    @property
    def key(self) -> str:
        """Unique per loaded event, unlike ``id`` which tracks may repeat."""
        return f"{self.track.value}:{self.index}"

    @property
    def date_key(self) -> str:
        return self.raw_start or "unknown"

    @staticmethod
    def from_row(row: Dict[str, Any], track: Track, index: int) -> "Event":
        identifier = clean(row.get("event_id")) or clean(row.get("micro_id")) or clean(row.get("id"))
        event_type = clean(row.get("event_type")) or clean(row.get("action_type")) or ""
        type_label = (
            clean(row.get("event_type_label"))
            or clean(row.get("event_type_fr"))
            or (event_type.replace("_", " ").capitalize() if event_type else "Event")
        )
        return Event(
            track=track,
            index=index,
            id=identifier,
            start=parse_timestamp(row.get("date_start")),
            end=parse_timestamp(row.get("date_end")),
            type=event_type,
            type_label=type_label,
            confidence=Confidence.parse(row.get("confidence")),
            precision=Precision.parse(row.get("date_precision")),
            evidence_class=clean(row.get("evidence_type")) or "",
            description=clean(row.get("description")) or "",
            source_quote=clean(row.get("source_quote")) or "",
            place=clean(row.get("place_name")),
            is_postwar_reconstruction=parse_bool(row.get("is_postwar_reconstruction", False)),
            raw_start=clean(row.get("date_start")),
        )


@dataclass(frozen=True)
class ChainLink:
    from_id: str
    to_id: str
    link_type: LinkType = LinkType.FOLLOWS

    @property
    def pair(self) -> tuple:
        return (self.from_id, self.to_id)

    @staticmethod
    def from_row(row: Dict[str, Any]) -> "ChainLink":
        return ChainLink(
            from_id=clean(row.get("from_id")) or "",
            to_id=clean(row.get("to_id")) or "",
            link_type=LinkType.parse(row.get("link_type")),
        )


@dataclass(frozen=True)
class InformationGap:
    start: Optional[pd.Timestamp]
    end: Optional[pd.Timestamp]
    severity: GapSeverity
    duration_days: Optional[int] = None

    @staticmethod
    def from_row(row: Dict[str, Any]) -> "InformationGap":
        start = parse_timestamp(row.get("start_date"))
        end = parse_timestamp(row.get("end_date"))
        duration = parse_int(row.get("duration_days"))
        if duration is None and start is not None and end is not None:
            duration = (end - start).days
        return InformationGap(
            start=start,
            end=end,
            severity=GapSeverity.parse(row.get("severity")),
            duration_days=duration,
        )


@dataclass
class Segment:
    """One calendar day on the horizontal axis."""

    day_start: pd.Timestamp
    day_end: pd.Timestamp
    width: float
    x_start: float
    event_count: int
    calendar_year: int
    calendar_month: int
    calendar_day: int
    base_width: float = 0.0

    @property
    def x_end(self) -> float:
        return self.x_start + self.width


@dataclass
class TimelineDataset:
    tracks: Dict[Track, List[Event]] = field(default_factory=dict)
    chain_links: List[ChainLink] = field(default_factory=list)
    gaps: List[InformationGap] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)

    def events(self, track: Track) -> List[Event]:
        return self.tracks.get(track, [])

    def all_events(self) -> List[Event]:
        return [e for track in Track for e in self.events(track)]

    def all_timestamps(self) -> List[pd.Timestamp]:
        return [e.start for e in self.all_events() if e.start is not None]
