"""Lane-aware caps and thresholds for the nuance gate."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from nuance_control.constants import ConflictMode, Lane
from nuance_control.schemas.nuance import NuanceCaps

DEFAULT_LANE = Lane.SERIES

_LANE_CAPS: Mapping[Lane, dict] = MappingProxyType(
    {
        Lane.VERTICAL_DRAMA: {
            "drama_budget": 3,
            "twist_cap": 2,
            "new_character_cap": 4,
            "plot_thread_cap": 4,
            "faction_cap": 2,
            "subtext_scenes_min": 2,
            "quiet_beats_min": 1,
            "stakes_escalation": False,
            "stakes_late_threshold": 0.75,
        },
        Lane.SERIES: {
            "drama_budget": 2,
            "twist_cap": 1,
            "new_character_cap": 3,
            "plot_thread_cap": 3,
            "faction_cap": 2,
            "subtext_scenes_min": 3,
            "quiet_beats_min": 2,
            "stakes_escalation": True,
            "stakes_late_threshold": 0.80,
        },
        Lane.FEATURE_FILM: {
            "drama_budget": 2,
            "twist_cap": 1,
            "new_character_cap": 3,
            "plot_thread_cap": 2,
            "faction_cap": 1,
            "subtext_scenes_min": 4,
            "quiet_beats_min": 3,
            "stakes_escalation": True,
            "stakes_late_threshold": 0.80,
        },
        Lane.DOCUMENTARY: {
            "drama_budget": 1,
            "twist_cap": 0,
            "new_character_cap": 2,
            "plot_thread_cap": 2,
            "faction_cap": 1,
            "subtext_scenes_min": 3,
            "quiet_beats_min": 3,
            "stakes_escalation": True,
            "stakes_late_threshold": 0.85,
        },
    }
)

MELODRAMA_THRESHOLDS: Mapping[Lane, float] = MappingProxyType(
    {
        Lane.VERTICAL_DRAMA: 0.62,
        Lane.SERIES: 0.55,
        Lane.FEATURE_FILM: 0.50,
        Lane.DOCUMENTARY: 0.15,
    }
)

SIMILARITY_THRESHOLDS: Mapping[Lane, float] = MappingProxyType(
    {
        Lane.VERTICAL_DRAMA: 0.70,
        Lane.SERIES: 0.65,
        Lane.FEATURE_FILM: 0.60,
        Lane.DOCUMENTARY: 0.55,
    }
)

DEFAULT_CONFLICT_MODES: Mapping[Lane, ConflictMode] = MappingProxyType(
    {
        Lane.VERTICAL_DRAMA: ConflictMode.STATUS_REPUTATION,
        Lane.SERIES: ConflictMode.INSTITUTIONAL_PRESSURE,
        Lane.FEATURE_FILM: ConflictMode.MORAL_TRAP,
        Lane.DOCUMENTARY: ConflictMode.LEGAL_PROCEDURAL,
    }
)

# Substring probes checked in order; "documentary-series" resolves to documentary.
_LANE_PROBES: tuple[tuple[str, Lane], ...] = (
    ("documentary", Lane.DOCUMENTARY),
    ("vertical", Lane.VERTICAL_DRAMA),
    ("series", Lane.SERIES),
    ("feature", Lane.FEATURE_FILM),
    ("film", Lane.FEATURE_FILM),
)


def normalize_lane(lane: str | Lane | None) -> Lane:
    if isinstance(lane, Lane):
        return lane
    key = (lane or "").strip().lower().replace("-", "_").replace(" ", "_")
    if not key:
        return DEFAULT_LANE
    try:
        return Lane(key)
    except ValueError:
        pass
    for probe, resolved in _LANE_PROBES:
        if probe in key:
            return resolved
    return DEFAULT_LANE


def get_default_caps(lane: str | Lane | None = None) -> NuanceCaps:
    return NuanceCaps(**_LANE_CAPS[normalize_lane(lane)])


def get_melodrama_threshold(lane: str | Lane | None) -> float:
    return MELODRAMA_THRESHOLDS[normalize_lane(lane)]


def get_similarity_threshold(lane: str | Lane | None) -> float:
    return SIMILARITY_THRESHOLDS[normalize_lane(lane)]


def get_default_conflict_mode(lane: str | Lane | None) -> ConflictMode:
    return DEFAULT_CONFLICT_MODES[normalize_lane(lane)]
