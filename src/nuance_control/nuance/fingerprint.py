"""Structural fingerprints and repetition risk across recent outputs."""

from __future__ import annotations

import re
from collections import Counter
from typing import Sequence

from nuance_control.constants import CausalGrammar, ConflictMode, Lane, StoryEngine
from nuance_control.nuance.defaults import get_default_conflict_mode, normalize_lane
from nuance_control.schemas.nuance import DiversificationHints, NuanceFingerprint

# First matching pattern wins; the label after the list is the fallback.
STAKES_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(world|global|humanity|civilization|nation|country|war)\b"), "global"),
    (re.compile(r"\b(systemic|institution|policy|government|corporate|structural)\b"), "systemic"),
    (re.compile(r"\b(community|social|group|family|neighborhood|town)\b"), "social"),
)
ANTAGONIST_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(inner|internal|self-?destruct\w*|own worst|addiction|denial)\b"), "self"),
    (re.compile(r"\b(system|institution|bureaucra\w*|corporate|government|structural)\b"), "system"),
    (re.compile(r"\b(relationship|marriage|partner|family dynamic|toxic)\b"), "relationship"),
)
ENDING_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(reconcil\w*|reunite\w*|forgive\w*|heal\w*|together again)\b"), "reconciliation"),
    (re.compile(r"\b(accept\w*|come to terms|peace with|letting go)\b"), "acceptance"),
    (re.compile(r"\b(escape\w*|flee\w*|leave|run away|freedom)\b"), "escape"),
    (re.compile(r"\b(justice|punish\w*|convict\w*|verdict|sentence)\b"), "justice"),
    (re.compile(r"\b(tragic|death|loss|destroy\w*|downfall)\b"), "tragedy"),
)
INCITING_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(loss|death|funeral|fired|bankrupt|divorce)\b"), "loss"),
    (re.compile(r"\b(offer|opportunity|invitation|proposal|chance)\b"), "offer"),
    (re.compile(r"\b(mistake|accident|error|blunder|slip)\b"), "mistake"),
    (re.compile(r"\b(arrives?|moves? to|new town|stranger|newcomer)\b"), "arrival"),
    (re.compile(r"\b(accus\w*|allegation|charged|suspect|blame)\b"), "accusation"),
)
SETTING_TAGS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(urban|city|metropolis)\b"), "urban"),
    (re.compile(r"\b(rural|countryside|village|farm)\b"), "rural"),
    (re.compile(r"\b(office|corporate|workplace)\b"), "workplace"),
    (re.compile(r"\b(domestic|home|apartment|house)\b"), "domestic"),
    (re.compile(r"\b(hospital|medical|clinic)\b"), "medical"),
    (re.compile(r"\b(school|university|campus)\b"), "educational"),
    (re.compile(r"\b(court|legal|prison|jail)\b"), "legal"),
)
TWIST_RE = re.compile(r"\b(reveals?|turns? out|twist|secretly|all along)\b")
MAX_SETTING_TAGS = 5

_DEFAULT_FIELDS = (
    "story_engine",
    "causal_grammar",
    "conflict_mode",
    "stakes_type",
    "twist_count_bucket",
    "antagonist_type",
    "ending_type",
    "inciting_incident_category",
)
LANE_FIELD_WEIGHTS: dict[Lane, tuple[tuple[str, int], ...]] = {
    Lane.VERTICAL_DRAMA: (
        ("conflict_mode", 3),
        ("inciting_incident_category", 3),
        ("story_engine", 1),
        ("causal_grammar", 1),
        ("stakes_type", 1),
        ("antagonist_type", 1),
        ("ending_type", 1),
    ),
    Lane.FEATURE_FILM: (
        ("story_engine", 3),
        ("causal_grammar", 3),
        ("conflict_mode", 1),
        ("inciting_incident_category", 1),
        ("stakes_type", 1),
        ("antagonist_type", 1),
        ("ending_type", 1),
    ),
}

HINT_SHARE = 0.4
VERTICAL_HINT_SHARE = 0.3


def _first_match(text: str, rules: tuple[tuple[re.Pattern[str], str], ...], fallback: str) -> str:
    for pattern, label in rules:
        if pattern.search(text):
            return label
    return fallback


def compute_fingerprint(
    text: str,
    lane: str,
    story_engine: StoryEngine | str,
    causal_grammar: CausalGrammar | str,
    conflict_mode: ConflictMode | str | None = None,
) -> NuanceFingerprint:
    lower = text.lower()
    twists = len(TWIST_RE.findall(lower))
    tags = [label for pattern, label in SETTING_TAGS if pattern.search(lower)]

    return NuanceFingerprint(
        lane=lane,
        story_engine=StoryEngine(story_engine),
        causal_grammar=CausalGrammar(causal_grammar),
        conflict_mode=ConflictMode(conflict_mode) if conflict_mode else get_default_conflict_mode(lane),
        stakes_type=_first_match(lower, STAKES_RULES, "personal"),
        twist_count_bucket="0" if twists == 0 else "1" if twists == 1 else "2+",
        antagonist_type=_first_match(lower, ANTAGONIST_RULES, "person"),
        ending_type=_first_match(lower, ENDING_RULES, "ambiguous"),
        inciting_incident_category=_first_match(lower, INCITING_RULES, "discovery"),
        setting_texture_tags=tags[:MAX_SETTING_TAGS],
    )


def _field_weights(lane: str | None) -> tuple[tuple[str, int], ...]:
    if lane:
        weights = LANE_FIELD_WEIGHTS.get(normalize_lane(lane))
        if weights:
            return weights
    return tuple((name, 1) for name in _DEFAULT_FIELDS)


def compute_similarity_risk(
    current: NuanceFingerprint,
    recent: Sequence[NuanceFingerprint],
    lane: str | None = None,
) -> float:
    """Weighted share of matching fields, averaged over the recent window (0-1)."""
    if not recent:
        return 0.0

    weights = _field_weights(lane or current.lane)
    total_weight = sum(weight for _, weight in weights)
    overlap = 0.0
    for previous in recent:
        matched = sum(weight for name, weight in weights if getattr(current, name) == getattr(previous, name))
        overlap += matched / total_weight
    return round(min(1.0, overlap / len(recent)), 4)


def _frequent(counts: Counter, floor: float) -> list[str]:
    return [key for key, count in counts.items() if count >= floor]


def get_diversification_hints(
    recent: Sequence[NuanceFingerprint],
    lane: str | None = None,
) -> DiversificationHints:
    if not recent:
        return DiversificationHints()

    engines = Counter(fp.story_engine for fp in recent)
    grammars = Counter(fp.causal_grammar for fp in recent)
    stakes = Counter(fp.stakes_type for fp in recent)
    conflicts = Counter(fp.conflict_mode for fp in recent)
    inciting = Counter(fp.inciting_incident_category for fp in recent)

    floor = len(recent) * HINT_SHARE
    focus_floor = floor
    if lane and normalize_lane(lane) is Lane.VERTICAL_DRAMA:
        focus_floor = len(recent) * VERTICAL_HINT_SHARE

    return DiversificationHints(
        avoid_engines=_frequent(engines, floor),
        avoid_grammars=_frequent(grammars, floor),
        avoid_stakes_types=_frequent(stakes, floor),
        avoid_conflict_modes=_frequent(conflicts, focus_floor),
        avoid_inciting_categories=_frequent(inciting, focus_floor),
    )
