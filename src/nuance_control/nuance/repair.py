"""Turn nuance gate failures into a corrective directive for the next attempt."""

from __future__ import annotations

from typing import Iterable, Mapping

from nuance_control.constants import FailureCode, Lane
from nuance_control.nuance.defaults import normalize_lane
from nuance_control.schemas.nuance import NuanceCaps

LANE_PRIORITIES: Mapping[Lane, tuple[str, ...]] = {
    Lane.VERTICAL_DRAMA: (
        "VERTICAL DRAMA REPAIR PRIORITIES:",
        "- Keep the hook, but drive it with leverage and status moves instead of violence.",
        "- Replace conspiracy reveals with social friction between people who need each other.",
        "- Each episode beat should turn on one concrete choice, not a new twist.",
    ),
    Lane.SERIES: (
        "SERIES REPAIR PRIORITIES:",
        "- Protect long-arc tension; resolve nothing that the season still needs.",
        "- Trade twists for character pressure that compounds across episodes.",
        "- Keep factions and threads few enough to track week to week.",
    ),
    Lane.FEATURE_FILM: (
        "FEATURE FILM REPAIR PRIORITIES:",
        "- Restore quiet beats where the story can breathe and tension sits unspoken.",
        "- Raise subtext density: let scenes be about something other than what is said.",
        "- Stakes stay personal until the final act.",
    ),
    Lane.DOCUMENTARY: (
        "DOCUMENTARY REPAIR PRIORITIES:",
        "- Remove invented drama; let documented events carry the tension.",
        "- Replace reveals with context the audience can verify.",
        "- Favor observation and restraint over narration that tells the viewer what to feel.",
    ),
}


def failure_directives(code: FailureCode, caps: NuanceCaps) -> list[str]:
    if code is FailureCode.MELODRAMA:
        return [
            "REDUCE MELODRAMA:",
            "- Convert screaming confessions to withheld corrections.",
            "- Replace physical threats with resource withdrawal or social leverage.",
            "- Replace villain monologues with bureaucratic language.",
            "- Cut absolute language by half.",
        ]
    if code is FailureCode.OVERCOMPLEXITY:
        return [
            "REDUCE COMPLEXITY:",
            f"- Collapse plot threads to at most {caps.plot_thread_cap}.",
            f"- Introduce no more than {caps.new_character_cap} new characters.",
            f"- Keep at most {caps.faction_cap} named factions; remove the rest.",
        ]
    if code is FailureCode.TEMPLATE_SIMILARITY:
        return [
            "DIVERSIFY STRUCTURE:",
            "- Change the inciting incident and the conflict mode from recent outputs.",
            "- Vary the stakes type and the ending shape.",
        ]
    if code is FailureCode.STAKES_TOO_BIG_TOO_EARLY:
        late_pct = round(caps.stakes_late_threshold * 100)
        return [
            "REFRAME EARLY STAKES:",
            f"- Keep stakes personal for the first {late_pct}% of the story.",
            "- Remove global or life-threatening stakes from early acts.",
        ]
    if code is FailureCode.TWIST_OVERUSE:
        return [
            "REDUCE TWISTS:",
            f"- Keep at most {caps.twist_cap} major reveal{'s' if caps.twist_cap != 1 else ''}.",
            "- Replace removed twists with character insight.",
        ]
    if code is FailureCode.SUBTEXT_MISSING:
        return [
            "ADD SUBTEXT:",
            f"- Include at least {caps.subtext_scenes_min} subtext scenes with wants / won't say / "
            "says instead / tactic / tell.",
        ]
    if code is FailureCode.QUIET_BEATS_MISSING:
        return [
            "ADD QUIET BEATS:",
            f"- Include at least {caps.quiet_beats_min} quiet beats with tension through behavior, not dialogue.",
        ]
    if code is FailureCode.MEANING_SHIFT_MISSING:
        return [
            "ADD MEANING SHIFTS:",
            "- Include at least 1 moment per act that reinterprets existing information.",
        ]
    return []


def build_repair_instruction(
    failures: Iterable[FailureCode | str],
    caps: NuanceCaps,
    anti_tropes: Iterable[str] = (),
    lane: str | Lane | None = None,
) -> str:
    directives: list[str] = []

    if lane is not None:
        directives.extend(LANE_PRIORITIES[normalize_lane(lane)])
        directives.append("")

    for failure in failures:
        try:
            code = FailureCode(failure)
        except ValueError:
            continue
        directives.extend(failure_directives(code, caps))

    tropes = [t for t in anti_tropes if t]
    if tropes:
        directives.append("AVOID TROPES:")
        directives.extend(f"{i}. No {trope.replace('_', ' ')}." for i, trope in enumerate(tropes, start=1))

    directives.extend(
        [
            "",
            "CRITICAL REPAIR RULES:",
            "- Do NOT add new plot elements. Only remove, replace, or reframe.",
            "- Preserve character names, story events, and the ending.",
            f"- Stay within a drama budget of {caps.drama_budget} major escalation"
            f"{'s' if caps.drama_budget != 1 else ''}.",
        ]
    )
    return "\n".join(directives)
