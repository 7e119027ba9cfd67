"""Shared fixtures for the evidence timeline tests."""
from __future__ import annotations

import copy
from typing import Any, Dict, List

import pandas as pd
import pytest

from evidence_timeline.config import LayoutSettings, RenderConfig
from evidence_timeline.dataset import dataset_from_dict
from evidence_timeline.mapping import CoordinateMapper
from evidence_timeline.models import Event, TimelineDataset, Track
from evidence_timeline.overrides import LabelOverrideStore, MemoryStore
from evidence_timeline.segments import build_segments

SAMPLE_DATA: Dict[str, Any] = {
    "timeline_1_events": [
        {
            "event_id": "E1",
            "date_start": "1941-03-29",
            "event_type": "arrest",
            "event_type_label": "Arrest",
            "place_name": "Paris",
            "confidence": "high",
            "date_precision": "exact",
            "description": "Arrestation à Paris",
        },
        {
            "event_id": "E1",
            "date_start": "1941-03-29",
            "event_type": "arrest",
            "event_type_label": "Arrest",
            "place_name": "Paris",
            "confidence": "medium",
            "date_precision": "exact",
            "description": "Arrestation à Paris (second source)",
        },
        {
            "event_id": "E2",
            "date_start": "1941-08-04",
            "event_type": "imprisonment",
            "place_name": "n.c.",
            "confidence": "medium",
            "date_precision": "exact",
            "description": "Emprisonnement",
        },
        {
            "event_id": "E3",
            "date_start": "1942-01-15",
            "event_type": "trial",
            "event_type_label": "Trial",
            "place_name": "Paris",
            "confidence": "high",
            "date_precision": "circa",
            "description": "Procès devant le tribunal",
        },
    ],
    "timeline_2_swiss_view": [
        {
            "event_id": "E1",
            "date_start": "1941-03-29",
            "event_type": "arrest",
            "confidence": "high",
            "date_precision": "exact",
            "evidence_type": "diplomatic_note",
            "description": "Arrestation confirmée",
        },
        {
            "event_id": "S1",
            "date_start": "1942-01-15",
            "event_type": "sentence",
            "confidence": "medium",
            "date_precision": "exact",
            "evidence_type": "diplomatic_note",
            "description": "Condamnation à mort prononcée",
        },
        {
            "event_id": "S2",
            "date_start": "1942-01-15",
            "event_type": "sentence",
            "event_type_label": "Death sentence",
            "place_name": "Paris",
            "confidence": "high",
            "date_precision": "exact",
            "evidence_type": "diplomatic_note",
            "description": "Condamné à mort par le tribunal",
        },
        {
            "event_id": "S3",
            "date_start": "1946-05-01",
            "event_type": "summary",
            "confidence": "high",
            "date_precision": "exact",
            "evidence_type": "postwar_summary",
            "is_postwar_reconstruction": True,
            "description": "Résumé d'après-guerre",
        },
    ],
    "timeline_3_microactions": [
        {"micro_id": "A", "date_start": "1941-09-01", "action_type": "letter", "date_precision": "exact"},
        {"micro_id": "B", "date_start": "1941-09-05", "action_type": "reply", "date_precision": "exact"},
        {"micro_id": "C", "date_start": "1941-09-10", "action_type": "note", "date_precision": "exact"},
        {"micro_id": "D", "date_start": "1941-10-01", "action_type": "visit", "date_precision": "exact"},
    ],
    "timeline_3_chain_links": [
        {"from_id": "A", "to_id": "B", "link_type": "REPLIES_TO"},
        {"from_id": "B", "to_id": "C", "link_type": "FOLLOWS"},
        {"from_id": "C", "to_id": "Z", "link_type": "FOLLOWS"},
    ],
    "information_gaps": [
        {"start_date": "1941-10-02", "end_date": "1941-12-31", "severity": "HIGH", "duration_days": 90},
    ],
    "statistics": {"total_events": 12},
}


def make_event(
    track: Track = Track.ACTIONS,
    index: int = 0,
    start: str = "2020-01-01",
    **fields: Any,
) -> Event:
    """Event built the way the dataset loader builds it."""
    row = {"date_start": start}
    row.update(fields)
    return Event.from_row(row, track, index)


def mapper_for(events: List[Event], viewport_width: float = 1400) -> CoordinateMapper:
    timestamps = [e.start for e in events if e.start is not None]
    return CoordinateMapper(build_segments(timestamps, viewport_width))


@pytest.fixture
def sample_data() -> Dict[str, Any]:
    """A fresh copy of the sample dataset object."""
    return copy.deepcopy(SAMPLE_DATA)


@pytest.fixture
def sample_dataset(sample_data: Dict[str, Any]) -> TimelineDataset:
    return dataset_from_dict(sample_data)


@pytest.fixture
def settings() -> LayoutSettings:
    return LayoutSettings()


@pytest.fixture
def config() -> RenderConfig:
    return RenderConfig()


@pytest.fixture
def store() -> LabelOverrideStore:
    return LabelOverrideStore(MemoryStore())


@pytest.fixture
def two_day_mapper() -> CoordinateMapper:
    """Events on 2020-01-01 and 2020-01-10 only."""
    stamps = [pd.Timestamp("2020-01-01"), pd.Timestamp("2020-01-10")]
    return CoordinateMapper(build_segments(stamps, 1400))
