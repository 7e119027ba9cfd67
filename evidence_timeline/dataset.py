"""Loading the evidence dataset into typed records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Any, Dict, List, Union

from .errors import DatasetLoadError
from .models import ChainLink, Event, InformationGap, TimelineDataset, Track

logger = logging.getLogger(__name__)

TRACK_KEYS = {
    Track.PRIMARY: "timeline_1_events",
    Track.SECONDARY: "timeline_2_swiss_view",
    Track.ACTIONS: "timeline_3_microactions",
}
CHAIN_LINKS_KEY = "timeline_3_chain_links"
GAPS_KEY = "information_gaps"
STATISTICS_KEY = "statistics"

Source = Union[str, Path, IO, Dict[str, Any]]


def _records(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Ignoring %s: expected a list, got %s", key, type(raw).__name__)
        return []
    return raw


def _read(source: Source) -> Any:
    if isinstance(source, dict):
        return source
    name = getattr(source, "name", None) or str(source)
    try:
        if isinstance(source, (str, Path)):
            with open(source, encoding="utf-8") as f:
                return json.load(f)
        return json.load(source)
    except OSError as e:
        raise DatasetLoadError(f"Cannot read dataset: {e.strerror or e}", source=name) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DatasetLoadError(f"Dataset is not valid JSON: {e}", source=name) from e


def dataset_from_dict(data: Dict[str, Any]) -> TimelineDataset:
    """Typed dataset; missing arrays are empty and bad records are dropped."""
    tracks: Dict[Track, List[Event]] = {}
    for track, key in TRACK_KEYS.items():
        events = []
        for index, row in enumerate(_records(data, key)):
            if not isinstance(row, dict):
                logger.debug("Dropping %s[%d]: not an object", key, index)
                continue
            event = Event.from_row(row, track, index)
            if event.start is None and event.end is None:
                logger.debug("Dropping %s[%d]: no parseable date", key, index)
                continue
            events.append(event)
        tracks[track] = events

    links = []
    for i, row in enumerate(_records(data, CHAIN_LINKS_KEY)):
        if not isinstance(row, dict):
            logger.debug("Dropping chain link %d: not an object", i)
            continue
        link = ChainLink.from_row(row)
        if not link.from_id or not link.to_id:
            logger.debug("Dropping chain link %d: missing endpoint id", i)
            continue
        links.append(link)

    gaps = [InformationGap.from_row(row) for row in _records(data, GAPS_KEY) if isinstance(row, dict)]

    statistics = data.get(STATISTICS_KEY) or {}
    if not isinstance(statistics, dict):
        statistics = {}

    dataset = TimelineDataset(tracks=tracks, chain_links=links, gaps=gaps, statistics=statistics)
    logger.info(
        "Loaded dataset: %s, %d chain link(s), %d gap(s)",
        ", ".join(f"{t.value}={len(e)}" for t, e in tracks.items()),
        len(links),
        len(gaps),
    )
    return dataset


def load_dataset(source: Source) -> TimelineDataset:
    """Load a dataset from a path, an open file or an already parsed object.

    Raises ``DatasetLoadError`` when the source cannot be read, is not
    JSON, or does not hold a JSON object.
    """
    data = _read(source)
    if not isinstance(data, dict):
        raise DatasetLoadError(
            f"Dataset must be a JSON object, got {type(data).__name__}",
            source=getattr(source, "name", None) if not isinstance(source, (str, Path)) else str(source),
        )
    return dataset_from_dict(data)
