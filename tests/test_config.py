"""Tests for render options, layout settings and host settings."""
from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from evidence_timeline.config import (
    DEFAULT_COMPRESSIONS,
    AppSettings,
    LayoutSettings,
    PeriodCompression,
    RenderConfig,
    ViewportClass,
)
from evidence_timeline.models import Track


class TestRenderConfig:
    def test_defaults(self) -> None:
        config = RenderConfig()
        assert all(config.shows(t) for t in Track)
        assert not config.expand_sources
        assert config.show_chains
        assert not config.show_postwar
        assert not config.highlight_gaps

    def test_with_options_is_a_copy(self) -> None:
        config = RenderConfig()
        changed = config.with_options(show_t2=False, highlight_gaps=True)
        assert not changed.shows(Track.SECONDARY)
        assert changed.highlight_gaps
        assert config.shows(Track.SECONDARY)

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            RenderConfig().show_t1 = False  # type: ignore[misc]


class TestLayoutSettings:
    @pytest.mark.parametrize(
        "width,expected",
        [(500, ViewportClass.NARROW), (767, ViewportClass.NARROW), (768, ViewportClass.MEDIUM),
         (1023, ViewportClass.MEDIUM), (1024, ViewportClass.WIDE)],
    )
    def test_viewport_class(self, width, expected) -> None:
        assert LayoutSettings().viewport_class(width) is expected

    def test_visible_width_floor(self) -> None:
        assert LayoutSettings().visible_width(600) == 800
        assert LayoutSettings().visible_width(1400) == 1360

    def test_from_dict(self) -> None:
        settings = LayoutSettings.from_dict({
            "base_width": 30,
            "track_offsets": [0, 120, 260],
            "compressions": [{"name": "q", "start": "2020-01-01", "end": "2020-02-01", "factor": 0.5}],
            "unknown_key": 1,
        })
        assert settings.base_width == 30
        assert settings.track_offsets == (0.0, 120.0, 260.0)
        assert settings.compressions == (PeriodCompression("q", date(2020, 1, 1), date(2020, 2, 1), 0.5),)
        assert settings.min_width == LayoutSettings().min_width

    def test_compression_can_be_disabled(self) -> None:
        assert LayoutSettings.from_dict({"compressions": []}).compressions == ()
        assert LayoutSettings().compressions == DEFAULT_COMPRESSIONS

    def test_compression_range_is_inclusive(self) -> None:
        policy = DEFAULT_COMPRESSIONS[0]
        assert policy.applies_to(date(1940, 1, 1))
        assert policy.applies_to(date(1941, 7, 31))
        assert not policy.applies_to(date(1941, 8, 1))


class TestAppSettings:
    def test_defaults(self) -> None:
        settings = AppSettings.from_env({})
        assert settings.data_path is None
        assert settings.log_level == "INFO"
        assert settings.default_viewport_width == 1400
        assert settings.override_store_path == Path(".timeline_state") / "label_positions.json"

    def test_from_env(self) -> None:
        settings = AppSettings.from_env({
            "TIMELINE_DATA_PATH": "/data/timeline.json",
            "TIMELINE_OVERRIDE_STORE": "/tmp/labels.json",
            "TIMELINE_LOG_LEVEL": "debug",
            "TIMELINE_VIEWPORT_WIDTH": "1024",
        })
        assert settings.data_path == Path("/data/timeline.json")
        assert settings.override_store_path == Path("/tmp/labels.json")
        assert settings.log_level == "DEBUG"
        assert settings.default_viewport_width == 1024

    def test_bad_width_is_ignored(self, caplog) -> None:
        settings = AppSettings.from_env({"TIMELINE_VIEWPORT_WIDTH": "wide"})
        assert settings.default_viewport_width == 1400
        assert "TIMELINE_VIEWPORT_WIDTH" in caplog.text
