"""Exceptions raised by the timeline engine.

Only whole-dataset problems are raised. Problems with a single record
(an event without a date, a link to an event that is not rendered) are
logged and the record is skipped.
"""

from __future__ import annotations

from typing import Optional


class TimelineError(Exception):
    """Base class for all engine errors."""


class DatasetLoadError(TimelineError):
    """The dataset could not be retrieved or parsed.

    ``reason`` is the short, user-facing explanation the host shows in its
    error state.
    """

    def __init__(self, reason: str, source: Optional[str] = None):
        self.reason = reason
        self.source = source
        message = reason if source is None else f"{reason} ({source})"
        super().__init__(message)


class OverrideStoreError(TimelineError):
    """The persisted label positions could not be read or written."""


class SurfaceNotSettledError(TimelineError):
    """A bounding box was requested before the surface settled its layout."""
