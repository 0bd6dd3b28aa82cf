from __future__ import annotations

from nuance_control.constants import FailureCode
from nuance_control.nuance.defaults import get_default_caps
from nuance_control.nuance.prompt import build_nuance_prompt_block
from nuance_control.nuance.repair import build_repair_instruction
from nuance_control.schemas.nuance import NuanceParams


def test_subtext_block_cites_lane_minimum() -> None:
    instruction = build_repair_instruction([FailureCode.SUBTEXT_MISSING], get_default_caps("feature_film"))

    assert "ADD SUBTEXT:" in instruction
    assert "at least 4 subtext scenes" in instruction


def test_critical_rules_always_trail() -> None:
    for failures in ([], [FailureCode.MELODRAMA], [FailureCode.OVERCOMPLEXITY, FailureCode.TWIST_OVERUSE]):
        instruction = build_repair_instruction(failures, get_default_caps())
        assert "CRITICAL REPAIR RULES:" in instruction
        assert "Do NOT add new plot elements" in instruction
        assert instruction.index("CRITICAL REPAIR RULES:") > instruction.find("REDUCE")


def test_blocks_follow_failure_order() -> None:
    caps = get_default_caps()
    forward = build_repair_instruction(["MELODRAMA", "TWIST_OVERUSE"], caps)
    backward = build_repair_instruction(["TWIST_OVERUSE", "MELODRAMA"], caps)

    assert forward.index("REDUCE MELODRAMA") < forward.index("REDUCE TWISTS")
    assert backward.index("REDUCE TWISTS") < backward.index("REDUCE MELODRAMA")


def test_anti_tropes_are_enumerated_and_humanized() -> None:
    instruction = build_repair_instruction([], get_default_caps(), ["secret_organization", "chosen_one"])

    assert "AVOID TROPES:" in instruction
    assert "1. No secret organization." in instruction
    assert "2. No chosen one." in instruction
    assert "secret_organization" not in instruction


def test_lane_preambles_differ() -> None:
    caps = get_default_caps()
    vertical = build_repair_instruction([], caps, lane="vertical-drama")
    feature = build_repair_instruction([], caps, lane="feature_film")
    bare = build_repair_instruction([], caps)

    assert vertical.startswith("VERTICAL DRAMA REPAIR PRIORITIES:")
    assert "leverage" in vertical
    assert "social friction" in vertical
    assert feature.startswith("FEATURE FILM REPAIR PRIORITIES:")
    assert "quiet beats" in feature
    assert "subtext density" in feature
    assert "REPAIR PRIORITIES" not in bare


def test_unknown_failure_codes_are_skipped() -> None:
    caps = get_default_caps()
    assert build_repair_instruction(["NOT_A_CODE"], caps) == build_repair_instruction([], caps)


def test_complexity_block_uses_caps() -> None:
    instruction = build_repair_instruction([FailureCode.OVERCOMPLEXITY], get_default_caps("feature_film"))
    assert "at most 2" in instruction
    assert "at most 1 named factions" in instruction


def test_nuance_prompt_block() -> None:
    params = NuanceParams(restraint=80, anti_tropes=["evil_twin"])
    block = build_nuance_prompt_block(params, get_default_caps("series"))

    assert block.startswith("## NUANCE CONSTRAINTS (MANDATORY)")
    assert "### Story Engine: pressure_cooker" in block
    assert "Maximum 2 major escalations allowed." in block
    assert "until the final 20%" in block
    assert "Restraint Level: 80/100" in block
    assert "Prefer understatement" in block
    assert "At least 3 SUBTEXT SCENES" in block
    assert "- Do NOT use: evil twin" in block


def test_prompt_block_prefers_explicit_drama_budget() -> None:
    block = build_nuance_prompt_block(NuanceParams(drama_budget=5, restraint=20), get_default_caps("series"))
    assert "Maximum 5 major escalations allowed." in block
    assert "Allow bold dramatic choices" in block
    assert "Forbidden Tropes" not in block
