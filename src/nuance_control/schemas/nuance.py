"""Nuance gate schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from nuance_control.constants import CausalGrammar, ConflictMode, FailureCode, StoryEngine


class NuanceMetrics(BaseModel):
    absolute_words_rate: float = Field(default=0.0, ge=0)
    twist_keyword_rate: float = Field(default=0.0, ge=0)
    conspiracy_markers: int = Field(default=0, ge=0)
    shock_events_early: int = Field(default=0, ge=0)
    speech_length_proxy: int = Field(default=0, ge=0)
    named_factions: int = Field(default=0, ge=0)
    plot_thread_count: int = Field(default=0, ge=0)
    new_character_density: float = Field(default=0.0, ge=0)
    subtext_scene_count: int = Field(default=0, ge=0)
    quiet_beats_count: int = Field(default=0, ge=0)
    meaning_shift_count: int = Field(default=0, ge=0)
    antagonist_legitimacy: bool = False
    cost_of_action_markers: int = Field(default=0, ge=0)


class NuanceCaps(BaseModel):
    drama_budget: int = Field(ge=0)
    twist_cap: int = Field(ge=0)
    new_character_cap: int = Field(ge=0)
    plot_thread_cap: int = Field(ge=0)
    faction_cap: int = Field(ge=0)
    subtext_scenes_min: int = Field(ge=0)
    quiet_beats_min: int = Field(ge=0)
    stakes_escalation: bool = True
    stakes_late_threshold: float = Field(ge=0, le=1)


class NuanceParams(BaseModel):
    restraint: int = Field(default=70, ge=0, le=100)
    story_engine: StoryEngine = StoryEngine.PRESSURE_COOKER
    causal_grammar: CausalGrammar = CausalGrammar.ACCUMULATION
    conflict_mode: ConflictMode | None = None
    drama_budget: int | None = Field(default=None, ge=0)
    anti_tropes: list[str] = Field(default_factory=list)
    diversify: bool = True


class GateOptions(BaseModel):
    lane: str
    caps: NuanceCaps
    diversify_enabled: bool = False
    similarity_risk: float = Field(default=0.0, ge=0, le=1)
    restraint: int = Field(default=50, ge=0, le=100)
    melodrama_threshold: float | None = Field(default=None, ge=0, le=1)
    similarity_threshold: float | None = Field(default=None, ge=0, le=1)


class NuanceGateResult(BaseModel):
    passed: bool
    failures: list[FailureCode] = Field(default_factory=list)
    metrics: NuanceMetrics
    melodrama_score: float = Field(ge=0, le=1)
    nuance_score: float = Field(ge=0, le=1)
    melodrama_threshold: float = Field(ge=0)
    similarity_threshold: float = Field(ge=0)


StakesType = Literal["personal", "social", "systemic", "global"]
TwistBucket = Literal["0", "1", "2+"]
AntagonistType = Literal["person", "self", "system", "relationship"]
EndingType = Literal["ambiguous", "reconciliation", "acceptance", "escape", "justice", "tragedy"]
IncitingCategory = Literal["discovery", "loss", "offer", "mistake", "arrival", "accusation"]


class NuanceFingerprint(BaseModel):
    lane: str
    story_engine: StoryEngine
    causal_grammar: CausalGrammar
    conflict_mode: ConflictMode
    stakes_type: StakesType = "personal"
    twist_count_bucket: TwistBucket = "0"
    antagonist_type: AntagonistType = "person"
    ending_type: EndingType = "ambiguous"
    inciting_incident_category: IncitingCategory = "discovery"
    setting_texture_tags: list[str] = Field(default_factory=list, max_length=5)


class DiversificationHints(BaseModel):
    avoid_engines: list[StoryEngine] = Field(default_factory=list)
    avoid_grammars: list[CausalGrammar] = Field(default_factory=list)
    avoid_stakes_types: list[str] = Field(default_factory=list)
    avoid_conflict_modes: list[ConflictMode] = Field(default_factory=list)
    avoid_inciting_categories: list[str] = Field(default_factory=list)
