"""Tests for the derived-attribute table."""
from __future__ import annotations

import re

import pandas as pd

from conftest import make_event
from evidence_timeline.derived import (
    ConfirmationRule,
    DerivedTable,
    EMPTY,
    derive_attributes,
    detect_synthesis,
)
from evidence_timeline.models import TimelineDataset, Track


def dataset_of(*secondary, primary=()):
    return TimelineDataset(
        tracks={Track.PRIMARY: list(primary), Track.SECONDARY: list(secondary), Track.ACTIONS: []}
    )


class TestSynthesis:
    def test_long_interval(self) -> None:
        event = make_event(
            Track.SECONDARY, 0, "1941-01-01", date_end="1941-12-01", date_precision="interval"
        )
        assert detect_synthesis(event) is not None

    def test_short_interval_is_not_synthesis(self) -> None:
        event = make_event(
            Track.SECONDARY, 0, "1941-01-01", date_end="1941-03-01", date_precision="interval"
        )
        assert detect_synthesis(event) is None

    def test_postwar_description_with_long_duration(self) -> None:
        event = make_event(
            Track.SECONDARY, 0, "1945-06-01",
            evidence_type="postwar_summary", description="Détenu pendant 18 mois",
        )
        assert "18" in detect_synthesis(event)

    def test_postwar_description_with_multi_year_period(self) -> None:
        event = make_event(
            Track.SECONDARY, 0, "1945-02-01",
            evidence_type="postwar_testimony", description="Captivité entre 1941 et 1944",
        )
        assert detect_synthesis(event) == "period 1941-1944"

    def test_period_far_from_event_year(self) -> None:
        event = make_event(
            Track.SECONDARY, 0, "1950-02-01",
            evidence_type="postwar_testimony", description="Captivité entre 1941 et 1944",
        )
        assert detect_synthesis(event) is None

    def test_contemporary_description_is_ignored(self) -> None:
        event = make_event(Track.SECONDARY, 0, "1945-06-01", description="Détenu pendant 18 mois")
        assert detect_synthesis(event) is None


class TestAnnouncements:
    def test_prospective_medium_report_announces_high_report(self) -> None:
        announcement = make_event(
            Track.SECONDARY, 0, "1941-09-01", confidence="medium", description="Transfert prévu"
        )
        confirmed = make_event(
            Track.SECONDARY, 1, "1941-09-01", confidence="high", description="Transfert effectué"
        )
        table = derive_attributes(dataset_of(announcement, confirmed))
        attrs = table.get(confirmed)
        assert attrs.has_announcement
        assert attrs.announcement_key == announcement.key
        assert table.get(announcement) is EMPTY

    def test_needs_both_confidences_on_the_same_day(self) -> None:
        announcement = make_event(
            Track.SECONDARY, 0, "1941-09-01", confidence="medium", description="Transfert prévu"
        )
        confirmed = make_event(
            Track.SECONDARY, 1, "1941-09-02", confidence="high", description="Transfert effectué"
        )
        table = derive_attributes(dataset_of(announcement, confirmed))
        assert not table.get(confirmed).has_announcement


class TestFirstConfirmation:
    def test_band_from_arrest_to_first_contemporaneous_report(self) -> None:
        arrest = make_event(Track.SECONDARY, 0, "1941-03-29", description="Arrestation à Paris")
        postwar = make_event(
            Track.SECONDARY, 1, "1941-04-15",
            evidence_type="postwar_testimony", description="Incarcéré à la Santé",
        )
        first = make_event(Track.SECONDARY, 2, "1941-06-01", description="Détenu à la Santé")
        later = make_event(Track.SECONDARY, 3, "1941-07-01", description="Toujours à la Santé")

        table = derive_attributes(dataset_of(arrest, postwar, first, later))
        attrs = table.get(first)
        assert attrs.is_first_confirmation
        assert attrs.uncertainty_start == pd.Timestamp("1941-03-29")
        assert attrs.uncertainty_start_key == arrest.key
        assert not table.get(later).is_first_confirmation
        assert not table.get(postwar).is_first_confirmation

    def test_no_band_when_confirmation_precedes_initiator(self) -> None:
        first = make_event(Track.SECONDARY, 0, "1941-01-01", description="Détenu à la Santé")
        arrest = make_event(Track.SECONDARY, 1, "1941-03-29", description="Arrestation")
        table = derive_attributes(dataset_of(first, arrest))
        assert not table.get(first).is_first_confirmation

    def test_custom_rule(self) -> None:
        rule = ConfirmationRule("visit", subject=re.compile(r"visite"), initiator=re.compile(r"demande"))
        request = make_event(Track.SECONDARY, 0, "1942-01-01", description="Demande d'accès consulaire")
        visit = make_event(Track.SECONDARY, 1, "1942-02-01", description="Visite du consul")
        table = derive_attributes(dataset_of(request, visit), rules=(rule,))
        assert table.get(visit).is_first_confirmation
        assert table.get(visit).uncertainty_start_key == request.key
        assert not table.get(request).is_first_confirmation


class TestDerivedTable:
    def test_plain_events_have_no_entry(self, sample_dataset) -> None:
        table = derive_attributes(sample_dataset)
        e2 = sample_dataset.events(Track.PRIMARY)[2]
        assert table.get(e2) is EMPTY

    def test_empty_table(self) -> None:
        assert len(DerivedTable()) == 0
        assert DerivedTable().get(make_event()) is EMPTY
