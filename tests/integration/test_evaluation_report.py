from __future__ import annotations

from pathlib import Path

from nuance_control.config import PolicyConfig, load_config
from nuance_control.constants import FailureCode, VoiceSource
from nuance_control.io.json_io import load_json
from nuance_control.nuance.fingerprint import compute_fingerprint
from nuance_control.reporting import build_evaluation_report, write_report
from nuance_control.schemas.style import StyleTarget
from tests.helpers import NUANCED_PROSE, PLAIN_PROSE, write_policy


def _gates(report) -> dict:
    return {gate_report.gate: gate_report for gate_report in report.gate_reports}


def test_plain_text_fails_nuance_with_repair(tmp_path: Path) -> None:
    config = load_config(write_policy(tmp_path))
    report = build_evaluation_report(PLAIN_PROSE, config, lane="series", attempt=1)
    gates = _gates(report)

    assert report.passed is False
    assert report.lane == "series"
    assert list(gates) == ["nuance", "similarity"]
    assert gates["nuance"].attempt == 1
    assert FailureCode.SUBTEXT_MISSING.value in gates["nuance"].reasons
    assert gates["nuance"].fix_instructions
    assert gates["similarity"].passed is True
    assert report.repair_instruction is not None
    assert report.repair_instruction.startswith("SERIES REPAIR PRIORITIES:")
    assert "1. No secret organization." in report.repair_instruction
    assert len(report.text_sha256) == 64


def test_nuanced_text_passes_all_gates() -> None:
    target = StyleTarget(voice_source=VoiceSource.NONE)
    report = build_evaluation_report(NUANCED_PROSE, PolicyConfig(restraint=50), lane="series", style_target=target)

    assert [gate_report.gate for gate_report in report.gate_reports] == ["nuance", "style", "similarity"]
    assert report.passed is True
    assert report.repair_instruction is None
    assert report.style_repair_instruction is None


def test_style_drift_adds_style_repair() -> None:
    target = StyleTarget(voice_source=VoiceSource.WRITING_VOICE, dialogue_ratio=0.9, pace="punchy", subtext_level="low")
    report = build_evaluation_report(NUANCED_PROSE, PolicyConfig(restraint=50), style_target=target)
    style = _gates(report)["style"]

    assert style.passed is False
    assert style.metrics["score"] < 0.6
    assert style.reasons
    assert report.style_repair_instruction is not None
    assert "Target dialogue ratio: 0.9" in report.style_repair_instruction


def test_repeated_structure_trips_similarity() -> None:
    config = PolicyConfig(restraint=50)
    current = compute_fingerprint(NUANCED_PROSE, "feature_film", config.story_engine, config.causal_grammar)
    report = build_evaluation_report(
        NUANCED_PROSE,
        config,
        lane="feature_film",
        recent_fingerprints=[current, current],
    )
    gates = _gates(report)

    assert gates["similarity"].passed is False
    assert gates["similarity"].metrics["similarity_risk"] == 1.0
    assert any(line.startswith("Avoid story engines") for line in gates["similarity"].fix_instructions)
    assert FailureCode.TEMPLATE_SIMILARITY.value in gates["nuance"].reasons


def test_diversify_off_skips_similarity_failure() -> None:
    config = PolicyConfig(restraint=50, diversify=False)
    current = compute_fingerprint(NUANCED_PROSE, "series", config.story_engine, config.causal_grammar)
    report = build_evaluation_report(NUANCED_PROSE, config, recent_fingerprints=[current])

    assert _gates(report)["similarity"].passed is True


def test_policy_hash_tracks_policy() -> None:
    a = build_evaluation_report(PLAIN_PROSE, PolicyConfig())
    b = build_evaluation_report(PLAIN_PROSE, PolicyConfig())
    c = build_evaluation_report(PLAIN_PROSE, PolicyConfig(restraint=10))

    assert a.policy_sha256 == b.policy_sha256
    assert a.policy_sha256 != c.policy_sha256
    assert a.text_sha256 == c.text_sha256


def test_write_report_round_trips(tmp_path: Path) -> None:
    report = build_evaluation_report(PLAIN_PROSE, lane="documentary")
    out = write_report(tmp_path / "reports" / "attempt0.json", report)

    data = load_json(out)
    assert data["lane"] == "documentary"
    assert data["passed"] is False
    assert data["gate_reports"][0]["gate"] == "nuance"
