"""Style fingerprint and deviation schemas."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from nuance_control.constants import STYLE_ENGINE_VERSION, VoiceSource

Density = Literal["low", "medium", "high"]
DriftLevel = Literal["low", "medium", "high"]
SubtextLevel = Literal["low", "medium", "high"]
HumorTemperature = Literal["none", "light", "witty", "high"]
Pace = Literal["calm", "standard", "punchy"]


class PunctuationProfile(BaseModel):
    ellipses_per_1k: float = Field(default=0.0, ge=0)
    dashes_per_1k: float = Field(default=0.0, ge=0)
    exclam_per_1k: float = Field(default=0.0, ge=0)
    question_per_1k: float = Field(default=0.0, ge=0)


class StyleFingerprint(BaseModel):
    char_count: int = Field(default=0, ge=0)
    line_count: int = Field(default=0, ge=0)
    avg_line_len: float = Field(default=0.0, ge=0)
    sentence_count: int = Field(default=0, ge=0)
    avg_sentence_len: float = Field(default=0.0, ge=0)
    sentence_len_p50: int = Field(default=0, ge=0)
    sentence_len_p90: int = Field(default=0, ge=0)
    dialogue_ratio: float = Field(default=0.0, ge=0, le=1)
    caps_character_cues: int = Field(default=0, ge=0)
    parenthetical_count: int = Field(default=0, ge=0)
    action_line_ratio: float = Field(default=0.0, ge=0, le=1)
    description_density: Density = "low"
    subtext_markers_per_1k: float = Field(default=0.0, ge=0)
    humor_markers_per_1k: float = Field(default=0.0, ge=0)
    punctuation_profile: PunctuationProfile = Field(default_factory=PunctuationProfile)
    lexical_variety: float = Field(default=0.0, ge=0, le=1)


class StyleTarget(BaseModel):
    voice_source: VoiceSource
    dialogue_ratio: float | None = Field(default=None, ge=0, le=1)
    sentence_len_band: tuple[float, float] | None = None
    description_density: Density | None = None
    subtext_level: SubtextLevel | None = None
    humor_temperature: HumorTemperature | None = None
    pace: Pace | None = None
    tone_tags: list[str] = Field(default_factory=list)
    voice_id: str | None = None
    voice_label: str | None = None

    @model_validator(mode="after")
    def validate_sentence_band(self) -> "StyleTarget":
        if self.sentence_len_band is not None:
            lo, hi = self.sentence_len_band
            if lo > hi:
                raise ValueError("sentence_len_band lower bound must not exceed upper bound.")
        return self


class StyleDelta(BaseModel):
    penalty: float = Field(ge=0)
    detail: str


class StyleDeviation(BaseModel):
    score: float = Field(ge=0, le=1)
    drift_level: DriftLevel
    deltas: dict[str, StyleDelta] = Field(default_factory=dict)
    top_3_drivers: list[str] = Field(default_factory=list)


class StyleEvalResult(BaseModel):
    score: float = Field(ge=0, le=1)
    drift_level: DriftLevel
    fingerprint: StyleFingerprint
    target: StyleTarget
    deltas: dict[str, StyleDelta] = Field(default_factory=dict)
    top_3_drivers: list[str] = Field(default_factory=list)
    evaluated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    engine_version: str = STYLE_ENGINE_VERSION
    voice_source: VoiceSource
