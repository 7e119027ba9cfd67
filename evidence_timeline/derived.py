"""Per-event attributes derived once per dataset load.

The table is built from the loaded dataset and never modified by
rendering code. It answers three questions about an event:

- is it a retrospective synthesis spanning an implausibly long period,
- was it preceded on the same day by a prospective announcement,
- is it the first contemporaneous confirmation after an initiating event
  (the start of an epistemic uncertainty band).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern

import pandas as pd

from .models import Confidence, Event, Precision, TimelineDataset, Track
from .semantics import is_postwar_evidence, is_prospective

logger = logging.getLogger(__name__)

SYNTHESIS_MIN_MONTHS = 6
DAYS_PER_MONTH = 30
LONG_PERIOD_MONTHS = 12
LONG_PERIOD_YEARS = 2

MONTHS_MENTION = re.compile(r"(\d{2,3})\s*(?:mois|months?|monate?)")
YEARS_MENTION = re.compile(r"(1[89]\d{2}|20\d{2})\D*?(1[89]\d{2}|20\d{2})")


@dataclass(frozen=True)
class DerivedAttributes:
    is_synthesis: bool = False
    synthesis_reason: Optional[str] = None
    has_announcement: bool = False
    announcement_key: Optional[str] = None
    is_first_confirmation: bool = False
    uncertainty_start: Optional[pd.Timestamp] = None
    uncertainty_start_key: Optional[str] = None


EMPTY = DerivedAttributes()


@dataclass(frozen=True)
class ConfirmationRule:
    """Which reports open and which close an epistemic uncertainty band.

    The band runs from the earliest event matching ``initiator`` to the
    earliest contemporaneous event matching ``subject`` that follows it.
    """

    name: str
    subject: Pattern
    initiator: Pattern


DEFAULT_CONFIRMATION_RULES = (
    ConfirmationRule(
        name="detention-la-sante",
        subject=re.compile(r"santé|sante"),
        initiator=re.compile(r"arrest|arrêt"),
    ),
)


@dataclass
class DerivedTable:
    attributes: Dict[str, DerivedAttributes] = field(default_factory=dict)

    def get(self, event: Event) -> DerivedAttributes:
        return self.attributes.get(event.key, EMPTY)

    def __len__(self) -> int:
        return len(self.attributes)


# -----------------------
# Synthesis detection
# -----------------------

def interval_months(event: Event) -> Optional[float]:
    if event.start is None or event.end is None:
        return None
    return (event.end - event.start).days / DAYS_PER_MONTH


def detect_synthesis(event: Event) -> Optional[str]:
    """Return the reason the event looks like a long-span reconstruction."""
    if event.precision is Precision.INTERVAL:
        months = interval_months(event)
        if months is not None and months > SYNTHESIS_MIN_MONTHS:
            return f"interval of {months:.1f} months"

    if not is_postwar_evidence(event.evidence_class):
        return None

    desc = event.description.lower()
    months_match = MONTHS_MENTION.search(desc)
    if months_match and int(months_match.group(1)) >= LONG_PERIOD_MONTHS:
        return f"description mentions {months_match.group(1)} months"

    years_match = YEARS_MENTION.search(desc)
    if years_match and event.start is not None:
        first, last = int(years_match.group(1)), int(years_match.group(2))
        if last - first >= LONG_PERIOD_YEARS and abs(event.start.year - last) <= 1:
            return f"period {first}-{last}"
    return None


# -----------------------
# Announcement / confirmation
# -----------------------

def _announcements(events: List[Event]) -> Dict[str, str]:
    """Map high-confidence event keys to the same-day announcement key."""
    by_date: Dict[str, List[Event]] = {}
    for event in events:
        by_date.setdefault(event.date_key, []).append(event)

    found: Dict[str, str] = {}
    for group in by_date.values():
        medium = [e for e in group if e.confidence is Confidence.MEDIUM]
        high = [e for e in group if e.confidence is Confidence.HIGH]
        if not medium or not high:
            continue
        announcement = next((e for e in medium if is_prospective(e)), None)
        if announcement is None:
            continue
        for event in high:
            found[event.key] = announcement.key
    return found


def _reference_date(event: Event) -> Optional[pd.Timestamp]:
    return event.start if event.start is not None else event.end


def _first_confirmation(events: List[Event], rule: ConfirmationRule):
    def contemporaneous(e: Event) -> bool:
        if is_postwar_evidence(e.evidence_class):
            return False
        months = interval_months(e) if e.precision is Precision.INTERVAL else None
        return months is None or months <= SYNTHESIS_MIN_MONTHS

    dated = [e for e in events if _reference_date(e) is not None]
    subjects = sorted(
        (e for e in dated if rule.subject.search(e.description.lower()) and contemporaneous(e)),
        key=_reference_date,
    )
    initiators = sorted(
        (e for e in dated if rule.initiator.search(e.description.lower())),
        key=_reference_date,
    )
    if not subjects or not initiators:
        logger.debug(
            "Rule %s: %d subject, %d initiator event(s); no band",
            rule.name, len(subjects), len(initiators),
        )
        return None

    confirmation, initiator = subjects[0], initiators[0]
    if _reference_date(initiator) < _reference_date(confirmation):
        return confirmation, initiator
    logger.debug("Rule %s: initiator does not precede confirmation; no band", rule.name)
    return None


# -----------------------
# Table construction
# -----------------------

def derive_attributes(
    dataset: TimelineDataset,
    rules=DEFAULT_CONFIRMATION_RULES,
) -> DerivedTable:
    """Compute the derived-attribute table for a freshly loaded dataset.

    Synthesis detection covers every event; announcement and
    confirmation detection look at the secondary-view track, the only
    one that mixes prospective and confirming reports.
    """
    secondary = dataset.events(Track.SECONDARY)
    announcements = _announcements(secondary)

    confirmations: Dict[str, Event] = {}
    for rule in rules:
        pair = _first_confirmation(secondary, rule)
        if pair is not None:
            confirmation, initiator = pair
            confirmations.setdefault(confirmation.key, initiator)

    table = DerivedTable()
    for event in dataset.all_events():
        reason = detect_synthesis(event)
        initiator = confirmations.get(event.key)
        attrs = DerivedAttributes(
            is_synthesis=reason is not None,
            synthesis_reason=reason,
            has_announcement=event.key in announcements,
            announcement_key=announcements.get(event.key),
            is_first_confirmation=initiator is not None,
            uncertainty_start=_reference_date(initiator) if initiator is not None else None,
            uncertainty_start_key=initiator.key if initiator is not None else None,
        )
        if attrs != EMPTY:
            table.attributes[event.key] = attrs
        if reason:
            logger.debug("Synthesis event %s: %s", event.key, reason)
    return table
