"""Style deviation scoring against a target voice profile."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from nuance_control.constants import ACCEPTABLE_STYLE_SCORE, VoiceSource
from nuance_control.schemas.style import (
    DriftLevel,
    HumorTemperature,
    Pace,
    StyleDelta,
    StyleDeviation,
    StyleEvalResult,
    StyleFingerprint,
    StyleTarget,
    SubtextLevel,
)
from nuance_control.style.extractor import extract_fingerprint

DIALOGUE_RATIO_WEIGHT = 0.25
DIALOGUE_RATIO_SPAN = 0.25
SENTENCE_LEN_WEIGHT = 0.20
SENTENCE_LEN_SPAN = 10.0
DESCRIPTION_DENSITY_PENALTY = 0.12
PACE_PENALTY = 0.12
HUMOR_PENALTY = 0.08
SUBTEXT_PENALTY = 0.08
MIN_CONTINUOUS_PENALTY = 0.01

LOW_DRIFT_FLOOR = 0.80
MEDIUM_DRIFT_FLOOR = 0.60

# (exclusive upper bound, label); the final entry catches everything above.
HUMOR_BANDS: tuple[tuple[float, HumorTemperature], ...] = (
    (0.5, "none"),
    (2.0, "light"),
    (5.0, "witty"),
    (float("inf"), "high"),
)
SUBTEXT_BANDS: tuple[tuple[float, SubtextLevel], ...] = (
    (1.0, "low"),
    (4.0, "medium"),
    (float("inf"), "high"),
)


@dataclass(frozen=True)
class PaceRule:
    label: Pace
    sentence_above: float | None = None
    sentence_below: float | None = None
    dialogue_above: float | None = None
    dialogue_below: float | None = None

    def matches(self, fingerprint: StyleFingerprint) -> bool:
        avg = fingerprint.avg_sentence_len
        ratio = fingerprint.dialogue_ratio
        if self.sentence_above is not None and not avg > self.sentence_above:
            return False
        if self.sentence_below is not None and not avg < self.sentence_below:
            return False
        if self.dialogue_above is not None and not ratio > self.dialogue_above:
            return False
        if self.dialogue_below is not None and not ratio < self.dialogue_below:
            return False
        return True


PACE_RULES: tuple[PaceRule, ...] = (
    PaceRule("punchy", sentence_below=10, dialogue_above=0.35),
    PaceRule("calm", sentence_above=16, dialogue_below=0.25),
)
DEFAULT_PACE: Pace = "standard"


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def _band_label(value: float, bands: tuple[tuple[float, Any], ...]) -> Any:
    for upper, label in bands:
        if value < upper:
            return label
    return bands[-1][1]


def infer_humor(humor_per_1k: float) -> HumorTemperature:
    return _band_label(humor_per_1k, HUMOR_BANDS)


def infer_subtext(subtext_per_1k: float) -> SubtextLevel:
    return _band_label(subtext_per_1k, SUBTEXT_BANDS)


def infer_pace(fingerprint: StyleFingerprint) -> Pace:
    for rule in PACE_RULES:
        if rule.matches(fingerprint):
            return rule.label
    return DEFAULT_PACE


def drift_level_for(
    score: float,
    low_floor: float = LOW_DRIFT_FLOOR,
    medium_floor: float = MEDIUM_DRIFT_FLOOR,
) -> DriftLevel:
    if score >= low_floor:
        return "low"
    if score >= medium_floor:
        return "medium"
    return "high"


def _fmt(value: float) -> str:
    return f"{value:g}"


def compute_deviation(
    fingerprint: StyleFingerprint,
    target: StyleTarget,
    low_floor: float = LOW_DRIFT_FLOOR,
    medium_floor: float = MEDIUM_DRIFT_FLOOR,
) -> StyleDeviation:
    if target.voice_source == VoiceSource.NONE:
        return StyleDeviation(score=1.0, drift_level="low")

    penalties: list[tuple[str, float, str]] = []

    if target.dialogue_ratio is not None:
        diff = abs(fingerprint.dialogue_ratio - target.dialogue_ratio)
        penalty = clamp(diff / DIALOGUE_RATIO_SPAN) * DIALOGUE_RATIO_WEIGHT
        if penalty > MIN_CONTINUOUS_PENALTY:
            penalties.append(
                (
                    "dialogue_ratio",
                    penalty,
                    f"target={_fmt(target.dialogue_ratio)}, actual={_fmt(fingerprint.dialogue_ratio)}",
                )
            )

    if target.sentence_len_band is not None:
        lo, hi = target.sentence_len_band
        avg = fingerprint.avg_sentence_len
        distance = 0.0
        if avg < lo:
            distance = lo - avg
        elif avg > hi:
            distance = avg - hi
        penalty = clamp(distance / SENTENCE_LEN_SPAN) * SENTENCE_LEN_WEIGHT
        if penalty > MIN_CONTINUOUS_PENALTY:
            penalties.append(("sentence_len", penalty, f"target=[{_fmt(lo)},{_fmt(hi)}], actual={_fmt(avg)}"))

    if target.description_density and target.description_density != fingerprint.description_density:
        penalties.append(
            (
                "description_density",
                DESCRIPTION_DENSITY_PENALTY,
                f"target={target.description_density}, actual={fingerprint.description_density}",
            )
        )

    if target.pace:
        actual_pace = infer_pace(fingerprint)
        if actual_pace != target.pace:
            penalties.append(("pace", PACE_PENALTY, f"target={target.pace}, actual={actual_pace}"))

    if target.humor_temperature:
        actual_humor = infer_humor(fingerprint.humor_markers_per_1k)
        if actual_humor != target.humor_temperature:
            penalties.append(
                (
                    "humor_temperature",
                    HUMOR_PENALTY,
                    f"target={target.humor_temperature}, actual={actual_humor}",
                )
            )

    if target.subtext_level:
        actual_subtext = infer_subtext(fingerprint.subtext_markers_per_1k)
        if actual_subtext != target.subtext_level:
            penalties.append(
                ("subtext_level", SUBTEXT_PENALTY, f"target={target.subtext_level}, actual={actual_subtext}")
            )

    total = sum(penalty for _, penalty, _ in penalties)
    score = round(clamp(1 - total), 2)

    ranked = sorted(penalties, key=lambda item: item[1], reverse=True)
    drivers = [f"{name}: {detail}" for name, _, detail in ranked[:3]]

    return StyleDeviation(
        score=score,
        drift_level=drift_level_for(score, low_floor, medium_floor),
        deltas={name: StyleDelta(penalty=round(penalty, 4), detail=detail) for name, penalty, detail in penalties},
        top_3_drivers=drivers,
    )


def select_best_attempt(
    attempt0_score: float,
    attempt1_score: float,
    acceptable: float = ACCEPTABLE_STYLE_SCORE,
) -> Literal[0, 1]:
    """Pick the attempt to keep: the retry wins if it improved or crossed the acceptable line."""
    if attempt1_score > attempt0_score:
        return 1
    if attempt0_score < acceptable and attempt1_score >= acceptable:
        return 1
    return 0


def _knob_bucket(value: Any, high: str, mid: str, low: str) -> str | None:
    if not isinstance(value, (int, float)):
        return None
    if value > 7:
        return high
    if value < 4:
        return low
    return mid


def build_target_from_team_voice(profile: dict[str, Any] | None, voice_id: str, voice_label: str) -> StyleTarget:
    knobs = (profile or {}).get("knobs") or {}
    band = knobs.get("sentence_len_band")
    ratio = knobs.get("dialogue_ratio")
    return StyleTarget(
        voice_source=VoiceSource.TEAM_VOICE,
        dialogue_ratio=ratio if isinstance(ratio, (int, float)) else None,
        sentence_len_band=tuple(band) if isinstance(band, (list, tuple)) and len(band) == 2 else None,
        description_density=knobs.get("description_density") or None,
        subtext_level=knobs.get("subtext_level") or None,
        humor_temperature=knobs.get("humor_temperature") or None,
        pace=knobs.get("pace") or None,
        tone_tags=list(knobs.get("tone_tags") or []),
        voice_id=voice_id,
        voice_label=voice_label,
    )


def build_target_from_writing_voice(preset: dict[str, Any] | None) -> StyleTarget:
    preset = preset or {}
    knobs = preset.get("knobs") or {}
    constraints = preset.get("constraints") or {}
    ratio_band = constraints.get("dialogue_ratio_band")
    sentence_band = constraints.get("sentence_len_band")
    return StyleTarget(
        voice_source=VoiceSource.WRITING_VOICE,
        dialogue_ratio=(ratio_band[0] + ratio_band[1]) / 2 if ratio_band else None,
        sentence_len_band=tuple(sentence_band) if sentence_band else None,
        description_density=_knob_bucket(knobs.get("prose_density"), "high", "medium", "low"),
        subtext_level=_knob_bucket(knobs.get("subtext"), "high", "medium", "low"),
        pace=_knob_bucket(knobs.get("hook_intensity"), "punchy", "standard", "calm"),
        voice_id=preset.get("id"),
        voice_label=preset.get("label"),
    )


def build_style_repair_prompt(target: StyleTarget, deviation: StyleDeviation) -> str:
    lines = [
        "=== STYLE REPAIR INSTRUCTIONS ===",
        "The generated text drifts from the target writing style. Adjust expression ONLY, preserve story meaning.",
        "",
    ]
    if target.dialogue_ratio is not None:
        lines.append(f"Target dialogue ratio: {_fmt(target.dialogue_ratio)}")
    if target.sentence_len_band is not None:
        lo, hi = target.sentence_len_band
        lines.append(f"Target sentence length band: {_fmt(lo)}-{_fmt(hi)} words")
    if target.description_density:
        lines.append(f"Target description density: {target.description_density}")
    if target.pace:
        lines.append(f"Target pace: {target.pace}")
    if target.humor_temperature:
        lines.append(f"Target humor level: {target.humor_temperature}")
    if target.subtext_level:
        lines.append(f"Target subtext level: {target.subtext_level}")

    if deviation.top_3_drivers:
        lines.append("")
        lines.append("Top deviations to fix:")
        lines.extend(f"  - {driver}" for driver in deviation.top_3_drivers)

    lines.append("")
    lines.append("Rewrite the text to match these targets. Do NOT change plot, characters, or story events.")
    lines.append("=== END STYLE REPAIR ===")
    return "\n".join(lines)


def evaluate_style(
    text: str,
    target: StyleTarget,
    low_floor: float = LOW_DRIFT_FLOOR,
    medium_floor: float = MEDIUM_DRIFT_FLOOR,
) -> StyleEvalResult:
    fingerprint = extract_fingerprint(text)
    deviation = compute_deviation(fingerprint, target, low_floor, medium_floor)
    return StyleEvalResult(
        score=deviation.score,
        drift_level=deviation.drift_level,
        fingerprint=fingerprint,
        target=target,
        deltas=deviation.deltas,
        top_3_drivers=deviation.top_3_drivers,
        voice_source=target.voice_source,
    )


def build_style_eval_meta(result: StyleEvalResult) -> dict[str, Any]:
    return {
        "style_eval_summary": {
            "score": result.score,
            "drift_level": result.drift_level,
            "voice_source": result.voice_source.value,
            "evaluated_at": result.evaluated_at,
            "engine_version": result.engine_version,
        },
        "style_eval": result.model_dump(mode="json"),
    }
