"""Text heuristics over event descriptions and source quotes.

The vocabularies are bilingual (French/German) with English fallbacks,
matching the corpus the timeline was built for.
"""

from __future__ import annotations

import re
from typing import Dict, Pattern

from .models import Event

# -----------------------
# Concept vocabulary
# -----------------------

CONCEPTS: Dict[str, Pattern] = {
    "death_sentence": re.compile(r"condamn.*mort|mort|death sentence|zum tode verurteilt|todesstrafe"),
    "execution": re.compile(r"exécut|vollstreckung|execution"),
    "suspension": re.compile(r"suspen|aussetz|sursis"),
    "pardon": re.compile(r"grâce|gnade|pardon|recours"),
    "transfer": re.compile(r"transfert|transfér|verbracht|überstell|transfer"),
    "arrest": re.compile(r"arrêt|arrest|verhaft"),
    "espionage": re.compile(r"espion|spionage"),
    "trial": re.compile(r"tribunal|procès|trial|gericht|jugement"),
    "detention": re.compile(r"détention|prison|gefängnis|haft|incarcér|emprisonn"),
    "cherche_midi": re.compile(r"cherche-midi"),
    "la_sante": re.compile(r"la santé|santé"),
    "paris": re.compile(r"paris"),
    "inculpation": re.compile(r"inculp|anklage|charge"),
    "liberation": re.compile(r"libér|befreit|freed|released"),
    "commutation": re.compile(r"commut|begnad"),
}

DEPORTATION = re.compile(r"transfert|transfér|déport|verbracht")
GERMANY = re.compile(r"allemagne|deutschland|germany")

SIMILARITY_THRESHOLD = 0.6
TRANSFER_BONUS = 0.5

UNCERTAINTY_WORDS = (
    # fr
    "vraisemblable", "probable", "possible", "devrait", "pourrait",
    "serait", "aurait", "peut-être", "sans doute",
    # de
    "wahrscheinlich", "möglich", "vermutlich", "könnte", "sollte",
    "wäre", "vielleicht", "eventuell",
)

POSTWAR_EVIDENCE = ("postwar_summary", "postwar_testimony", "administrative_review")

PROSPECTIVE_QUOTE_WORDS = ("soll", "devrait")
PROSPECTIVE_DESCRIPTION_WORDS = ("prévu", "prévue")


def extract_keywords(text: str) -> Dict[str, bool]:
    desc = (text or "").lower()
    return {name: bool(pattern.search(desc)) for name, pattern in CONCEPTS.items()}


def keyword_similarity(first: str, second: str) -> float:
    """Share of concepts present in both texts among those present in either."""
    kw1 = extract_keywords(first)
    kw2 = extract_keywords(second)
    total = sum(1 for k in CONCEPTS if kw1[k] or kw2[k])
    if total == 0:
        return 0.0
    common = float(sum(1 for k in CONCEPTS if kw1[k] and kw2[k]))

    d1 = (first or "").lower()
    d2 = (second or "").lower()
    if DEPORTATION.search(d1) and DEPORTATION.search(d2) and GERMANY.search(d1) and GERMANY.search(d2):
        common += TRANSFER_BONUS
    return common / total


def are_similar_events(first: Event, second: Event) -> bool:
    """Whether two same-day reports describe the same historical event.

    Two death-sentence reports are always the same event.
    """
    kw1 = extract_keywords(first.description)
    kw2 = extract_keywords(second.description)
    if kw1["death_sentence"] and kw2["death_sentence"]:
        return True
    return keyword_similarity(first.description, second.description) > SIMILARITY_THRESHOLD


def has_semantic_uncertainty(event: Event) -> bool:
    quote = event.source_quote.lower()
    desc = event.description.lower()
    return any(word in quote or word in desc for word in UNCERTAINTY_WORDS)


def is_postwar_evidence(evidence_class: str) -> bool:
    return any(marker in (evidence_class or "") for marker in POSTWAR_EVIDENCE)


def is_prospective(event: Event) -> bool:
    """Report announces something planned rather than something done."""
    quote = event.source_quote.lower()
    desc = event.description.lower()
    return any(w in quote for w in PROSPECTIVE_QUOTE_WORDS) or any(
        w in desc for w in PROSPECTIVE_DESCRIPTION_WORDS
    )
