"""Project constants."""

from __future__ import annotations

from enum import StrEnum


class Lane(StrEnum):
    VERTICAL_DRAMA = "vertical_drama"
    SERIES = "series"
    FEATURE_FILM = "feature_film"
    DOCUMENTARY = "documentary"


class FailureCode(StrEnum):
    MELODRAMA = "MELODRAMA"
    OVERCOMPLEXITY = "OVERCOMPLEXITY"
    TEMPLATE_SIMILARITY = "TEMPLATE_SIMILARITY"
    STAKES_TOO_BIG_TOO_EARLY = "STAKES_TOO_BIG_TOO_EARLY"
    TWIST_OVERUSE = "TWIST_OVERUSE"
    SUBTEXT_MISSING = "SUBTEXT_MISSING"
    QUIET_BEATS_MISSING = "QUIET_BEATS_MISSING"
    MEANING_SHIFT_MISSING = "MEANING_SHIFT_MISSING"


class VoiceSource(StrEnum):
    TEAM_VOICE = "team_voice"
    WRITING_VOICE = "writing_voice"
    NONE = "none"


class SourceTag(StrEnum):
    PROJECT = "project"
    OVERRIDES = "overrides"
    GUARDRAILS = "guardrails"
    DEFAULTS = "defaults"


class StoryEngine(StrEnum):
    PRESSURE_COOKER = "pressure_cooker"
    TWO_HANDER = "two_hander"
    SLOW_BURN_INVESTIGATION = "slow_burn_investigation"
    SOCIAL_REALISM = "social_realism"
    MORAL_TRAP = "moral_trap"
    CHARACTER_SPIRAL = "character_spiral"
    RASHOMON = "rashomon"
    ANTI_PLOT = "anti_plot"


class CausalGrammar(StrEnum):
    ACCUMULATION = "accumulation"
    EROSION = "erosion"
    EXCHANGE = "exchange"
    MIRROR = "mirror"
    CONSTRAINT = "constraint"
    MISALIGNMENT = "misalignment"
    CONTAGION = "contagion"
    REVELATION_WITHOUT_FACTS = "revelation_without_facts"


class ConflictMode(StrEnum):
    STATUS_REPUTATION = "status_reputation"
    FAMILY_OBLIGATION = "family_obligation"
    MORAL_TRAP = "moral_trap"
    LEGAL_PROCEDURAL = "legal_procedural"
    INSTITUTIONAL_PRESSURE = "institutional_pressure"
    ROMANTIC_MISALIGNMENT = "romantic_misalignment"
    RESOURCE_SCARCITY = "resource_scarcity"
    IDENTITY_CONCEALMENT = "identity_concealment"


STYLE_ENGINE_VERSION = "v1.0"

RESOLVER_VERSION = 1

MIN_DURATION_SECONDS = 5

ACCEPTABLE_STYLE_SCORE = 0.60
