"""Nuance gate: lane-aware pass/fail policy over narrative metrics."""

from __future__ import annotations

import logging

from nuance_control.constants import FailureCode
from nuance_control.nuance.defaults import get_melodrama_threshold, get_similarity_threshold, normalize_lane
from nuance_control.nuance.scoring import compute_melodrama_score, compute_nuance_score
from nuance_control.schemas.nuance import GateOptions, NuanceMetrics, NuanceGateResult

logger = logging.getLogger(__name__)

COMPLEXITY_MARGIN = 2
NEW_CHARACTER_DENSITY_CEILING = 5.0
EARLY_SHOCK_LIMIT = 2
MEANING_SHIFTS_MIN = 1


def restraint_adjusted_threshold(base: float, restraint: int) -> float:
    """Higher restraint lowers the melodrama ceiling; 50 leaves it unchanged."""
    return base * (1 - (restraint - 50) / 200)


def run_nuance_gate(metrics: NuanceMetrics, options: GateOptions) -> NuanceGateResult:
    lane = normalize_lane(options.lane)
    caps = options.caps
    failures: list[FailureCode] = []

    melodrama = compute_melodrama_score(metrics)
    nuance = compute_nuance_score(metrics)

    base_melodrama = (
        options.melodrama_threshold if options.melodrama_threshold is not None else get_melodrama_threshold(lane)
    )
    melodrama_threshold = restraint_adjusted_threshold(base_melodrama, options.restraint)
    similarity_threshold = (
        options.similarity_threshold if options.similarity_threshold is not None else get_similarity_threshold(lane)
    )

    if melodrama > melodrama_threshold:
        failures.append(FailureCode.MELODRAMA)
    if (
        metrics.named_factions >= caps.faction_cap + COMPLEXITY_MARGIN
        or metrics.plot_thread_count >= caps.plot_thread_cap + COMPLEXITY_MARGIN
        or metrics.new_character_density > NEW_CHARACTER_DENSITY_CEILING
    ):
        failures.append(FailureCode.OVERCOMPLEXITY)
    if options.diversify_enabled and options.similarity_risk > similarity_threshold:
        failures.append(FailureCode.TEMPLATE_SIMILARITY)
    if caps.stakes_escalation and metrics.shock_events_early > EARLY_SHOCK_LIMIT:
        failures.append(FailureCode.STAKES_TOO_BIG_TOO_EARLY)
    if metrics.twist_keyword_rate > caps.twist_cap:
        failures.append(FailureCode.TWIST_OVERUSE)
    if metrics.subtext_scene_count < caps.subtext_scenes_min:
        failures.append(FailureCode.SUBTEXT_MISSING)
    if metrics.quiet_beats_count < caps.quiet_beats_min:
        failures.append(FailureCode.QUIET_BEATS_MISSING)
    if metrics.meaning_shift_count < MEANING_SHIFTS_MIN:
        failures.append(FailureCode.MEANING_SHIFT_MISSING)

    if failures:
        logger.debug(f"Nuance gate failed for lane {lane.value}: {[f.value for f in failures]}")

    return NuanceGateResult(
        passed=not failures,
        failures=failures,
        metrics=metrics,
        melodrama_score=melodrama,
        nuance_score=nuance,
        melodrama_threshold=round(melodrama_threshold, 4),
        similarity_threshold=similarity_threshold,
    )
