from __future__ import annotations

import pytest

from nuance_control.constants import CausalGrammar, ConflictMode, StoryEngine
from nuance_control.nuance.fingerprint import (
    compute_fingerprint,
    compute_similarity_risk,
    get_diversification_hints,
)
from nuance_control.schemas.nuance import NuanceFingerprint


def _fp(engine: StoryEngine = StoryEngine.PRESSURE_COOKER, **fields) -> NuanceFingerprint:
    base = {
        "lane": "series",
        "story_engine": engine,
        "causal_grammar": CausalGrammar.ACCUMULATION,
        "conflict_mode": ConflictMode.INSTITUTIONAL_PRESSURE,
    }
    base.update(fields)
    return NuanceFingerprint(**base)


def test_compute_fingerprint_classifies_text() -> None:
    text = "They arrive in the city. It turns out he was lying all along. The family reconciles."
    fingerprint = compute_fingerprint(text, "series", "pressure_cooker", "accumulation")

    assert fingerprint.conflict_mode is ConflictMode.INSTITUTIONAL_PRESSURE
    assert fingerprint.stakes_type == "social"
    assert fingerprint.twist_count_bucket == "2+"
    assert fingerprint.antagonist_type == "person"
    assert fingerprint.ending_type == "reconciliation"
    assert fingerprint.inciting_incident_category == "arrival"
    assert fingerprint.setting_texture_tags == ["urban"]


def test_compute_fingerprint_defaults() -> None:
    fingerprint = compute_fingerprint("A quiet afternoon.", "feature_film", "two_hander", "mirror", "family_obligation")

    assert fingerprint.story_engine is StoryEngine.TWO_HANDER
    assert fingerprint.conflict_mode is ConflictMode.FAMILY_OBLIGATION
    assert fingerprint.stakes_type == "personal"
    assert fingerprint.twist_count_bucket == "0"
    assert fingerprint.ending_type == "ambiguous"
    assert fingerprint.inciting_incident_category == "discovery"
    assert fingerprint.setting_texture_tags == []


def test_similarity_risk_bounds() -> None:
    current = _fp()
    assert compute_similarity_risk(current, []) == 0.0
    assert compute_similarity_risk(current, [_fp(), _fp()]) == 1.0


def test_similarity_risk_is_lane_weighted() -> None:
    current = _fp()
    previous = [_fp(StoryEngine.RASHOMON)]

    assert compute_similarity_risk(current, previous, "series") == pytest.approx(0.875)
    assert compute_similarity_risk(current, previous, "vertical_drama") == pytest.approx(0.9091, abs=1e-4)
    assert compute_similarity_risk(current, previous, "feature_film") == pytest.approx(0.7273, abs=1e-4)


def test_similarity_risk_averages_window() -> None:
    current = _fp()
    window = [_fp(), _fp(StoryEngine.RASHOMON)]
    assert compute_similarity_risk(current, window) == pytest.approx((1.0 + 0.875) / 2, abs=1e-4)


def test_diversification_hints() -> None:
    recent = [
        _fp(StoryEngine.PRESSURE_COOKER),
        _fp(StoryEngine.PRESSURE_COOKER),
        _fp(StoryEngine.RASHOMON),
        _fp(StoryEngine.ANTI_PLOT),
        _fp(StoryEngine.TWO_HANDER),
    ]
    hints = get_diversification_hints(recent)

    assert hints.avoid_engines == [StoryEngine.PRESSURE_COOKER]
    assert hints.avoid_grammars == [CausalGrammar.ACCUMULATION]
    assert hints.avoid_conflict_modes == [ConflictMode.INSTITUTIONAL_PRESSURE]
    assert get_diversification_hints([]).avoid_engines == []


def test_vertical_hints_are_more_sensitive_to_conflict_mode() -> None:
    modes = [
        ConflictMode.STATUS_REPUTATION,
        ConflictMode.STATUS_REPUTATION,
        ConflictMode.MORAL_TRAP,
        ConflictMode.RESOURCE_SCARCITY,
        ConflictMode.IDENTITY_CONCEALMENT,
        ConflictMode.LEGAL_PROCEDURAL,
    ]
    recent = [_fp(conflict_mode=mode) for mode in modes]

    assert get_diversification_hints(recent, "series").avoid_conflict_modes == []
    assert get_diversification_hints(recent, "vertical_drama").avoid_conflict_modes == [
        ConflictMode.STATUS_REPUTATION
    ]
