"""Policy configuration loading."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from nuance_control.constants import ACCEPTABLE_STYLE_SCORE, CausalGrammar, ConflictMode, Lane, StoryEngine
from nuance_control.nuance.defaults import get_default_caps, normalize_lane
from nuance_control.schemas.nuance import NuanceCaps, NuanceParams

logger = logging.getLogger(__name__)


class Thresholds(BaseModel):
    acceptable_style_score: float = Field(default=ACCEPTABLE_STYLE_SCORE, ge=0, le=1)
    style_low_drift_floor: float = Field(default=0.80, ge=0, le=1)
    style_medium_drift_floor: float = Field(default=0.60, ge=0, le=1)


class LaneCapOverrides(BaseModel):
    """Partial caps; unset fields keep the lane default."""

    drama_budget: int | None = Field(default=None, ge=0)
    twist_cap: int | None = Field(default=None, ge=0)
    new_character_cap: int | None = Field(default=None, ge=0)
    plot_thread_cap: int | None = Field(default=None, ge=0)
    faction_cap: int | None = Field(default=None, ge=0)
    subtext_scenes_min: int | None = Field(default=None, ge=0)
    quiet_beats_min: int | None = Field(default=None, ge=0)
    stakes_escalation: bool | None = None
    stakes_late_threshold: float | None = Field(default=None, ge=0, le=1)


def _lane_keyed(value: dict[str, Any] | None) -> dict[str, Any]:
    return {normalize_lane(key).value: item for key, item in (value or {}).items()}


class PolicyConfig(BaseModel):
    project_name: str = "nuance-control"
    default_lane: Lane = Lane.SERIES
    restraint: int = 70
    diversify: bool = True
    anti_tropes: list[str] = Field(default_factory=list)
    story_engine: StoryEngine = StoryEngine.PRESSURE_COOKER
    causal_grammar: CausalGrammar = CausalGrammar.ACCUMULATION
    conflict_mode: ConflictMode | None = None
    drama_budget: int | None = Field(default=None, ge=0)
    lane_caps: dict[str, LaneCapOverrides] = Field(default_factory=dict)
    melodrama_thresholds: dict[str, float] = Field(default_factory=dict)
    similarity_thresholds: dict[str, float] = Field(default_factory=dict)
    thresholds: Thresholds = Field(default_factory=Thresholds)

    @field_validator("default_lane", mode="before")
    @classmethod
    def normalize_default_lane(cls, value: Any) -> Any:
        return normalize_lane(value) if isinstance(value, str) else value

    @field_validator("lane_caps", "melodrama_thresholds", "similarity_thresholds", mode="before")
    @classmethod
    def normalize_lane_keys(cls, value: Any) -> Any:
        return _lane_keyed(value) if isinstance(value, dict) else value

    @model_validator(mode="after")
    def validate_policy(self) -> "PolicyConfig":
        if not 0 <= self.restraint <= 100:
            raise ValueError("restraint must be within [0, 100].")
        if self.thresholds.style_medium_drift_floor > self.thresholds.style_low_drift_floor:
            raise ValueError("style_medium_drift_floor must not exceed style_low_drift_floor.")
        for name, table in (
            ("melodrama_thresholds", self.melodrama_thresholds),
            ("similarity_thresholds", self.similarity_thresholds),
        ):
            for lane, threshold in table.items():
                if not 0 <= threshold <= 1:
                    raise ValueError(f"{name}.{lane} must be within [0, 1].")
        return self

    def caps_for(self, lane: str | Lane | None = None) -> NuanceCaps:
        key = normalize_lane(lane or self.default_lane)
        caps = get_default_caps(key)
        overrides = self.lane_caps.get(key.value)
        if overrides is None:
            return caps
        return caps.model_copy(update=overrides.model_dump(exclude_none=True))

    def melodrama_threshold_for(self, lane: str | Lane | None = None) -> float | None:
        return self.melodrama_thresholds.get(normalize_lane(lane or self.default_lane).value)

    def similarity_threshold_for(self, lane: str | Lane | None = None) -> float | None:
        return self.similarity_thresholds.get(normalize_lane(lane or self.default_lane).value)

    def nuance_params(self) -> NuanceParams:
        return NuanceParams(
            restraint=self.restraint,
            story_engine=self.story_engine,
            causal_grammar=self.causal_grammar,
            conflict_mode=self.conflict_mode,
            drama_budget=self.drama_budget,
            anti_tropes=list(self.anti_tropes),
            diversify=self.diversify,
        )


def load_config(config_path: Path) -> PolicyConfig:
    """Load and validate YAML policy."""
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    config = PolicyConfig.model_validate(raw)
    logger.debug(f"Loaded policy {config.project_name} from {config_path}")
    return config


def config_dict_for_hash(config: PolicyConfig) -> dict[str, Any]:
    """Stable representation used for policy hashing."""
    return config.model_dump(mode="json")
