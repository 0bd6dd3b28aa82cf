"""Canonical qualification resolver.

Resolution precedence, per field:
  1. project explicit values
  2. overrides.qualifications
  3. guardrails_config.overrides.qualifications
  4. format defaults (FORMAT_DEFAULTS)

A value of 0 is treated as absent at every explicit tier. That rule holds for
the duration/count/runtime fields defined here; review it before adding a
field where zero is meaningful.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from nuance_control.constants import MIN_DURATION_SECONDS, RESOLVER_VERSION, SourceTag
from nuance_control.io.hashing import string_hash32, to_base36
from nuance_control.io.json_io import compact_json
from nuance_control.schemas.qualifications import (
    QUALIFICATION_FIELDS,
    QualificationError,
    QualificationInput,
    QualificationSources,
    QualificationWarning,
    ResolvedQualifications,
    ResolveResult,
)

logger = logging.getLogger(__name__)

FORMAT_DEFAULTS: Mapping[str, Mapping[str, int]] = MappingProxyType(
    {
        "vertical-drama": {
            "episode_target_duration_seconds": 60,
            "episode_target_duration_min_seconds": 45,
            "episode_target_duration_max_seconds": 90,
            "season_episode_count": 30,
        },
        "limited-series": {
            "episode_target_duration_seconds": 3300,
            "episode_target_duration_min_seconds": 2700,
            "episode_target_duration_max_seconds": 3600,
            "season_episode_count": 8,
        },
        "tv-series": {
            "episode_target_duration_seconds": 2700,
            "episode_target_duration_min_seconds": 2400,
            "episode_target_duration_max_seconds": 3000,
            "season_episode_count": 10,
        },
        "anim-series": {
            "episode_target_duration_seconds": 1320,
            "episode_target_duration_min_seconds": 1200,
            "episode_target_duration_max_seconds": 1500,
            "season_episode_count": 10,
        },
        "documentary-series": {
            "episode_target_duration_seconds": 2700,
            "episode_target_duration_min_seconds": 2400,
            "episode_target_duration_max_seconds": 3300,
            "season_episode_count": 6,
        },
        "digital-series": {
            "episode_target_duration_seconds": 600,
            "episode_target_duration_min_seconds": 420,
            "episode_target_duration_max_seconds": 900,
            "season_episode_count": 10,
        },
        "reality": {
            "episode_target_duration_seconds": 2700,
            "episode_target_duration_min_seconds": 2400,
            "episode_target_duration_max_seconds": 3000,
            "season_episode_count": 10,
        },
        "film": {"target_runtime_min_low": 85, "target_runtime_min_high": 110},
        "anim-feature": {"target_runtime_min_low": 80, "target_runtime_min_high": 100},
        "short-film": {"target_runtime_min_low": 5, "target_runtime_min_high": 20},
    }
)

SERIES_FORMATS = frozenset(
    {
        "vertical-drama",
        "tv-series",
        "limited-series",
        "anim-series",
        "documentary-series",
        "digital-series",
        "reality",
    }
)

EPISODE_FIELDS = (
    "episode_target_duration_seconds",
    "episode_target_duration_min_seconds",
    "episode_target_duration_max_seconds",
    "season_episode_count",
)
DEFAULTED_WARNING_FIELDS = (
    "episode_target_duration_seconds",
    "season_episode_count",
    "target_runtime_min_low",
)

_FORMAT_SEPARATORS_RE = re.compile(r"[_ ]+")


def normalize_format(value: str | None) -> str:
    return _FORMAT_SEPARATORS_RE.sub("-", (value or "film").strip().lower()) or "film"


@dataclass(frozen=True)
class FieldResolution:
    value: float | None
    source: SourceTag | None
    notes: tuple[str, ...] = ()


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, OverflowError):
            return None
        return number if math.isfinite(number) else None
    return None


def _is_set(value: float | None) -> bool:
    return value is not None and value != 0


def resolve_field(
    project: Any,
    override: Any,
    guardrail: Any,
    default: Any,
    locked: bool = False,
) -> FieldResolution:
    """Resolve one field through project -> overrides -> guardrails -> defaults."""
    project_value = _as_number(project)
    override_value = _as_number(override)
    guardrail_value = _as_number(guardrail)
    default_value = _as_number(default)

    notes: tuple[str, ...] = ()
    if locked:
        if _is_set(project_value):
            if _is_set(override_value) or _is_set(guardrail_value):
                notes = ("Field is locked; override ignored in favor of project value",)
            return FieldResolution(project_value, SourceTag.PROJECT, notes)
        notes = ("Field is locked but project has no value; falling back to normal precedence",)

    tiers = (
        (project_value, SourceTag.PROJECT),
        (override_value, SourceTag.OVERRIDES),
        (guardrail_value, SourceTag.GUARDRAILS),
    )
    for value, source in tiers:
        if _is_set(value):
            return FieldResolution(value, source, notes)
    if default_value is not None:
        return FieldResolution(default_value, SourceTag.DEFAULTS, notes)
    return FieldResolution(None, None, notes)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _guardrail_qualifications(guardrails_config: Mapping[str, Any] | None) -> Mapping[str, Any]:
    overrides = (guardrails_config or {}).get("overrides") or {}
    if not isinstance(overrides, Mapping):
        return {}
    quals = overrides.get("qualifications") or {}
    return quals if isinstance(quals, Mapping) else {}


def compute_resolver_hash(resolved: ResolvedQualifications) -> str:
    """Stable hash over resolved values only; timestamps and sources never enter it."""
    canonical = compact_json(
        {
            "d": resolved.episode_target_duration_seconds,
            "dmin": resolved.episode_target_duration_min_seconds,
            "dmax": resolved.episode_target_duration_max_seconds,
            "c": resolved.season_episode_count,
            "rl": resolved.target_runtime_min_low,
            "rh": resolved.target_runtime_min_high,
            "f": resolved.format,
        }
    )
    return f"qr-{RESOLVER_VERSION}-{to_base36(abs(string_hash32(canonical)))}"


def resolve_qualifications(payload: QualificationInput | Mapping[str, Any]) -> ResolveResult:
    data = payload if isinstance(payload, QualificationInput) else QualificationInput.model_validate(payload)
    warnings: list[QualificationWarning] = []
    errors: list[QualificationError] = []

    project = data.project_qualification_fields
    raw_format = data.format_subtype or project.format or data.production_type or "film"
    fmt = normalize_format(raw_format)
    is_series = fmt in SERIES_FORMATS
    defaults = FORMAT_DEFAULTS.get(fmt, {})
    override_quals = data.overrides.qualifications
    guardrail_quals = _guardrail_qualifications(data.guardrails_config)
    locked = set(data.locked_fields)

    fields: dict[str, FieldResolution] = {}
    for name in QUALIFICATION_FIELDS:
        if name in EPISODE_FIELDS and not is_series:
            fields[name] = FieldResolution(None, None)
            continue
        fields[name] = resolve_field(
            getattr(project, name),
            override_quals.get(name),
            guardrail_quals.get(name),
            defaults.get(name),
            locked=name in locked,
        )
        warnings.extend(QualificationWarning(field=name, message=note) for note in fields[name].notes)

    sources = {name: res.source for name, res in fields.items()}
    values: dict[str, int | None] = {
        name: _round_half_up(res.value) if res.value is not None else None for name, res in fields.items()
    }

    duration = values["episode_target_duration_seconds"]
    if duration is not None and duration < MIN_DURATION_SECONDS:
        errors.append(
            QualificationError(
                field="episode_target_duration_seconds",
                message=f"Must be >= {MIN_DURATION_SECONDS}s, got {duration}",
            )
        )
        duration = values["episode_target_duration_seconds"] = None

    count = values["season_episode_count"]
    if count is not None and count < 1:
        errors.append(QualificationError(field="season_episode_count", message=f"Must be >= 1, got {count}"))
        count = values["season_episode_count"] = None

    min_name = "episode_target_duration_min_seconds"
    max_name = "episode_target_duration_max_seconds"
    if duration is not None and values[min_name] is None and values[max_name] is None:
        values[min_name] = values[max_name] = duration
        sources[min_name] = sources[max_name] = sources["episode_target_duration_seconds"]
    if values[min_name] is not None and values[max_name] is None:
        values[max_name] = values[min_name]
        sources[max_name] = sources[min_name]
    if values[max_name] is not None and values[min_name] is None:
        values[min_name] = values[max_name]
        sources[min_name] = sources[max_name]

    for name in (min_name, max_name):
        bound = values[name]
        if bound is not None and bound < MIN_DURATION_SECONDS:
            errors.append(QualificationError(field=name, message=f"Must be >= {MIN_DURATION_SECONDS}s, got {bound}"))
            values[name] = None

    band_min, band_max = values[min_name], values[max_name]
    if band_min is not None and band_max is not None and band_min > band_max:
        errors.append(QualificationError(field=min_name, message=f"Min ({band_min}) must be <= max ({band_max})"))

    if is_series:
        if (
            duration is None
            and band_min is None
            and band_max is None
            and defaults.get("episode_target_duration_seconds") is None
        ):
            errors.append(
                QualificationError(field="episode_target_duration_seconds", message="Required for series format")
            )
        if count is None and defaults.get("season_episode_count") is None:
            errors.append(QualificationError(field="season_episode_count", message="Required for series format"))

    if band_min is not None and band_max is not None:
        per_episode = _round_half_up((band_min + band_max) / 2)
    else:
        per_episode = duration
    season_runtime = per_episode * count if per_episode is not None and count is not None else None

    for name in DEFAULTED_WARNING_FIELDS:
        if sources[name] == SourceTag.DEFAULTS and values[name] is not None:
            warnings.append(QualificationWarning(field=name, message="Using global default"))

    resolved = ResolvedQualifications(
        episode_target_duration_seconds=duration,
        episode_target_duration_min_seconds=band_min,
        episode_target_duration_max_seconds=band_max,
        season_episode_count=count,
        season_target_runtime_seconds=season_runtime,
        target_runtime_min_low=values["target_runtime_min_low"],
        target_runtime_min_high=values["target_runtime_min_high"],
        format=fmt,
        is_series=is_series,
    )

    for error in errors:
        logger.warning(f"Qualification error for {data.project_id or fmt}: {error.field}: {error.message}")
    for warning in warnings:
        logger.debug(f"Qualification warning for {data.project_id or fmt}: {warning.field}: {warning.message}")

    return ResolveResult(
        resolved_qualifications=resolved,
        sources=QualificationSources(**sources),
        warnings=warnings,
        errors=errors,
        resolver_version=RESOLVER_VERSION,
        resolver_hash=compute_resolver_hash(resolved),
    )


def compute_criteria_hash(payload: QualificationInput | Mapping[str, Any]) -> str:
    """Hash of what an input resolves to; metadata and null-vs-absent fields do not change it."""
    return resolve_qualifications(payload).resolver_hash


def is_stale(stored_hash: str | None, payload: QualificationInput | Mapping[str, Any]) -> bool:
    if not stored_hash:
        return True
    return stored_hash != compute_criteria_hash(payload)
