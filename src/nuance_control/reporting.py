"""Evaluation reports combining the nuance, style and similarity gates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from nuance_control.config import PolicyConfig, config_dict_for_hash
from nuance_control.constants import Lane
from nuance_control.io.hashing import sha256_bytes, sha256_json
from nuance_control.io.json_io import dump_canonical_json
from nuance_control.nuance.defaults import get_similarity_threshold, normalize_lane
from nuance_control.nuance.fingerprint import (
    compute_fingerprint,
    compute_similarity_risk,
    get_diversification_hints,
)
from nuance_control.nuance.gate import run_nuance_gate
from nuance_control.nuance.repair import build_repair_instruction, failure_directives
from nuance_control.nuance.scoring import compute_nuance_metrics
from nuance_control.schemas.nuance import GateOptions, NuanceCaps, NuanceFingerprint, NuanceGateResult
from nuance_control.schemas.reports import EvaluationReport, GateReport
from nuance_control.schemas.style import StyleDeviation, StyleEvalResult, StyleTarget
from nuance_control.style.deviation import build_style_repair_prompt, evaluate_style

logger = logging.getLogger(__name__)


def _nuance_report(result: NuanceGateResult, caps: NuanceCaps, attempt: int) -> GateReport:
    fixes: list[str] = []
    for failure in result.failures:
        fixes.extend(line for line in failure_directives(failure, caps) if line.startswith("- "))
    return GateReport(
        gate="nuance",
        passed=result.passed,
        attempt=attempt,
        metrics={
            **result.metrics.model_dump(mode="json"),
            "melodrama_score": result.melodrama_score,
            "nuance_score": result.nuance_score,
            "melodrama_threshold": result.melodrama_threshold,
        },
        reasons=[failure.value for failure in result.failures],
        fix_instructions=[line[2:] for line in fixes],
    )


def _similarity_report(
    current: NuanceFingerprint,
    recent: Sequence[NuanceFingerprint],
    lane: Lane,
    threshold: float,
    diversify: bool,
    attempt: int,
) -> tuple[GateReport, float]:
    risk = compute_similarity_risk(current, recent, lane.value) if recent else 0.0
    hints = get_diversification_hints(recent, lane.value)
    passed = not (diversify and risk > threshold)

    reasons: list[str] = []
    fixes: list[str] = []
    if not passed:
        reasons.append(f"Similarity risk {risk} exceeds {threshold} over the last {len(recent)} outputs.")
        if hints.avoid_engines:
            fixes.append(f"Avoid story engines: {', '.join(hints.avoid_engines)}.")
        if hints.avoid_grammars:
            fixes.append(f"Avoid causal grammars: {', '.join(hints.avoid_grammars)}.")
        if hints.avoid_conflict_modes:
            fixes.append(f"Avoid conflict modes: {', '.join(hints.avoid_conflict_modes)}.")
        if hints.avoid_inciting_categories:
            fixes.append(f"Avoid inciting incidents: {', '.join(hints.avoid_inciting_categories)}.")
        if hints.avoid_stakes_types:
            fixes.append(f"Avoid stakes types: {', '.join(hints.avoid_stakes_types)}.")

    report = GateReport(
        gate="similarity",
        passed=passed,
        attempt=attempt,
        metrics={
            "similarity_risk": risk,
            "similarity_threshold": threshold,
            "window_size": len(recent),
            "diversify_enabled": diversify,
            "fingerprint": current.model_dump(mode="json"),
            "hints": hints.model_dump(mode="json"),
        },
        reasons=reasons,
        fix_instructions=fixes,
    )
    return report, risk


def _style_report(result: StyleEvalResult, acceptable: float, attempt: int) -> GateReport:
    passed = result.score >= acceptable
    drivers = [] if passed else list(result.top_3_drivers)
    return GateReport(
        gate="style",
        passed=passed,
        attempt=attempt,
        metrics={
            "score": result.score,
            "drift_level": result.drift_level,
            "acceptable_score": acceptable,
            "voice_source": result.voice_source.value,
            "engine_version": result.engine_version,
            "deltas": {name: delta.model_dump(mode="json") for name, delta in result.deltas.items()},
        },
        reasons=drivers,
        fix_instructions=[f"Bring {driver.split(':')[0]} back to target." for driver in drivers],
    )


def build_evaluation_report(
    text: str,
    config: PolicyConfig | None = None,
    lane: str | Lane | None = None,
    style_target: StyleTarget | None = None,
    recent_fingerprints: Sequence[NuanceFingerprint] = (),
    attempt: int = 0,
) -> EvaluationReport:
    config = config or PolicyConfig()
    lane_key = normalize_lane(lane or config.default_lane)
    caps = config.caps_for(lane_key)
    recent = list(recent_fingerprints)

    current = compute_fingerprint(
        text,
        lane_key.value,
        config.story_engine,
        config.causal_grammar,
        config.conflict_mode,
    )
    similarity_threshold = config.similarity_threshold_for(lane_key)
    if similarity_threshold is None:
        similarity_threshold = get_similarity_threshold(lane_key)
    diversify = config.diversify and bool(recent)
    similarity_report, risk = _similarity_report(current, recent, lane_key, similarity_threshold, diversify, attempt)

    gate_result = run_nuance_gate(
        compute_nuance_metrics(text),
        GateOptions(
            lane=lane_key.value,
            caps=caps,
            diversify_enabled=diversify,
            similarity_risk=risk,
            restraint=config.restraint,
            melodrama_threshold=config.melodrama_threshold_for(lane_key),
            similarity_threshold=similarity_threshold,
        ),
    )
    reports = [_nuance_report(gate_result, caps, attempt)]

    repair_instruction = None
    if not gate_result.passed:
        repair_instruction = build_repair_instruction(gate_result.failures, caps, config.anti_tropes, lane=lane_key)

    style_repair_instruction = None
    if style_target is not None:
        thresholds = config.thresholds
        style_result = evaluate_style(
            text,
            style_target,
            thresholds.style_low_drift_floor,
            thresholds.style_medium_drift_floor,
        )
        style_report = _style_report(style_result, thresholds.acceptable_style_score, attempt)
        reports.append(style_report)
        if not style_report.passed:
            deviation = StyleDeviation(
                score=style_result.score,
                drift_level=style_result.drift_level,
                deltas=style_result.deltas,
                top_3_drivers=style_result.top_3_drivers,
            )
            style_repair_instruction = build_style_repair_prompt(style_target, deviation)

    reports.append(similarity_report)
    passed = all(report.passed for report in reports)
    if not passed:
        failed = [report.gate for report in reports if not report.passed]
        logger.info(f"Evaluation attempt {attempt} failed gates {failed} for lane {lane_key.value}")

    return EvaluationReport(
        lane=lane_key.value,
        attempt=attempt,
        text_sha256=sha256_bytes(text.encode("utf-8")),
        policy_sha256=sha256_json(config_dict_for_hash(config)),
        passed=passed,
        gate_reports=reports,
        repair_instruction=repair_instruction,
        style_repair_instruction=style_repair_instruction,
    )


def write_report(out: Path, report: EvaluationReport) -> Path:
    dump_canonical_json(out, report.model_dump(mode="json"))
    return out
