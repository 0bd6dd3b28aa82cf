"""Mandatory nuance constraints block injected ahead of a generation run."""

from __future__ import annotations

from typing import Mapping

from nuance_control.constants import CausalGrammar, StoryEngine
from nuance_control.schemas.nuance import NuanceCaps, NuanceParams

ENGINE_DESCRIPTIONS: Mapping[StoryEngine, str] = {
    StoryEngine.PRESSURE_COOKER: "Characters trapped in escalating constraints with diminishing options.",
    StoryEngine.TWO_HANDER: "Two central characters in an evolving power dynamic.",
    StoryEngine.SLOW_BURN_INVESTIGATION: "Gradual revelation through methodical inquiry and observation.",
    StoryEngine.SOCIAL_REALISM: "Grounded in everyday reality, institutional friction, economic pressure.",
    StoryEngine.MORAL_TRAP: "Protagonist faces an impossible choice with legitimate arguments on all sides.",
    StoryEngine.CHARACTER_SPIRAL: "Internal deterioration or transformation driven by a core flaw.",
    StoryEngine.RASHOMON: "Multiple perspectives revealing contradictory truths.",
    StoryEngine.ANTI_PLOT: "Subverts narrative expectations; meaning emerges from pattern, not arc.",
}

GRAMMAR_DESCRIPTIONS: Mapping[CausalGrammar, str] = {
    CausalGrammar.ACCUMULATION: "Small pressures compound until a threshold breaks.",
    CausalGrammar.EROSION: "Something valued is gradually worn away.",
    CausalGrammar.EXCHANGE: "Every gain requires a specific loss.",
    CausalGrammar.MIRROR: "Characters in parallel situations make different choices.",
    CausalGrammar.CONSTRAINT: "External systems limit what characters can do.",
    CausalGrammar.MISALIGNMENT: "Characters want compatible things but can't coordinate.",
    CausalGrammar.CONTAGION: "One person's choice cascades through a network.",
    CausalGrammar.REVELATION_WITHOUT_FACTS: "Understanding shifts without new information.",
}


def _restraint_guidance(restraint: int) -> str:
    if restraint >= 70:
        return "- Prefer understatement, implication, behavioral tells over explicit confrontation."
    if restraint >= 40:
        return "- Balance direct conflict with subtext and restraint."
    return "- Allow bold dramatic choices but ground them in character logic."


def build_nuance_prompt_block(params: NuanceParams, caps: NuanceCaps) -> str:
    drama_budget = params.drama_budget if params.drama_budget is not None else caps.drama_budget
    late_pct = round((1 - caps.stakes_late_threshold) * 100)
    lines = [
        "## NUANCE CONSTRAINTS (MANDATORY)",
        "",
        f"### Story Engine: {params.story_engine.value}",
        ENGINE_DESCRIPTIONS.get(params.story_engine, ""),
        "",
        f"### Causal Grammar: {params.causal_grammar.value}",
        GRAMMAR_DESCRIPTIONS.get(params.causal_grammar, ""),
        "",
        "### Drama Budget",
        f"- Maximum {drama_budget} major escalations allowed.",
        f"- Maximum {caps.twist_cap} big reveals unless explicitly stated.",
        f"- Maximum {caps.new_character_cap} new characters.",
        f"- Maximum {caps.plot_thread_cap} major plot threads.",
        f"- Stakes must remain personal/relational until the final {late_pct}%.",
        "",
        f"### Restraint Level: {params.restraint}/100",
        _restraint_guidance(params.restraint),
        "",
        "### Required Elements",
        f"- At least {caps.subtext_scenes_min} SUBTEXT SCENES: for each, specify what each character wants, "
        "what they won't say, what they say instead, their tactic, and the tell.",
        f"- At least {caps.quiet_beats_min} QUIET BEATS WITH TEETH: tension present but unexpressed, "
        "character revealed through behavior.",
        "- At least 1 MEANING SHIFT per act: reinterpretation of existing information, no new facts needed.",
        "- Opposition must be LEGITIMATE: values collision, systemic constraint, or reasonable disagreement, "
        "not an evil mastermind.",
        "",
        "### Melodrama Translator",
        "Convert any of these patterns to their adult equivalents:",
        "- Screaming confession -> withheld correction / loaded silence with consequence",
        "- Physical threat -> resource withdrawal / contract clause / social leverage",
        "- Villain monologue -> polite email / policy / bureaucratic language",
        "- Sudden violence -> reputational, financial, or procedural consequence",
    ]

    if params.anti_tropes:
        lines.extend(["", "### Forbidden Tropes"])
        lines.extend(f"- Do NOT use: {trope.replace('_', ' ')}" for trope in params.anti_tropes)

    return "\n".join(lines)
