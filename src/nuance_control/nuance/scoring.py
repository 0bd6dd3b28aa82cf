"""Narrative nuance metrics and melodrama/nuance scoring."""

from __future__ import annotations

import re

from nuance_control.schemas.nuance import NuanceMetrics

ABSOLUTE_WORDS_RE = re.compile(
    r"\b(always|never|everything|nothing|only hope|impossible|forever|completely|utterly|total(?:ly)?)\b",
    re.IGNORECASE,
)
TWIST_KEYWORDS_RE = re.compile(
    r"\b(reveals?|revealed|turns? out|secretly|suddenly|betray(?:al|ed|s)?|double.?cross\w*|shocking"
    r"|plot twist|unmasked|all along)\b",
    re.IGNORECASE,
)
CONSPIRACY_MARKERS_RE = re.compile(
    r"\b(organization|conspiracy|shadow|syndicate|cabal|secret society|hidden agenda|puppet master"
    r"|pulling the strings)\b",
    re.IGNORECASE,
)
SHOCK_EVENTS_RE = re.compile(
    r"\b(kidnap\w*|murder\w*|explosions?|explodes?|assassin\w*|bomb\w*|massacre\w*|hostages?|poison\w*"
    r"|gunshots?|stab\w*)\b",
    re.IGNORECASE,
)
QUOTED_SPEECH_RE = re.compile(r"[\"“](.*?)[\"”]", re.DOTALL)
SUBTEXT_MARKERS_RE = re.compile(
    r"\b(subtext|unspoken|withheld|won't say|says? instead|tactic|tells?|beneath the surface|underlying)\b",
    re.IGNORECASE,
)
QUIET_BEAT_MARKERS_RE = re.compile(
    r"\b(silence|silent|pauses?|stillness|quiet moment|quiet beat|breath|contemplat\w*|reflect\w*|stares?"
    r"|sit with)\b",
    re.IGNORECASE,
)
MEANING_SHIFT_MARKERS_RE = re.compile(
    r"\b(reinterpret\w*|re-?reads?|new light|different meaning|realizes?|understand now|see differently"
    r"|meaning shift|changes everything we thought)\b",
    re.IGNORECASE,
)
ANTAGONIST_LEGITIMACY_RE = re.compile(
    r"\b(legitimate|valid point|understandable|reasonable|their perspective|from their view|not wrong"
    r"|has a point)\b",
    re.IGNORECASE,
)
COST_MARKERS_RE = re.compile(
    r"\b(cost|price|consequences?|sacrifice|trade-?off|lose|risk|penalty|repercussions?|fallout)\b",
    re.IGNORECASE,
)
FACTION_MARKERS_RE = re.compile(
    r"\b(faction|group|alliance|coalition|clan|family|house|organization|agency|department|team|side)s?\b",
    re.IGNORECASE,
)
THREAD_MARKERS_RE = re.compile(
    r"\b(meanwhile|subplot|thread|strand|parallel|B-story|C-story|side plot)\b",
    re.IGNORECASE,
)
CHARACTER_INTRO_RE = re.compile(
    r"\b(introduce|introducing|we meet|enters?|arrives?|new character|first appearance)\b",
    re.IGNORECASE,
)

EARLY_PORTION = 0.2
LONG_SPEECH_CHARS = 150


def _count(text: str, pattern: re.Pattern[str]) -> int:
    return len(pattern.findall(text))


def _words(text: str) -> int:
    return len(text.split())


def compute_nuance_metrics(text: str) -> NuanceMetrics:
    words = _words(text)
    if words == 0:
        return NuanceMetrics()

    per_1k = words / 1000
    early = text[: int(len(text) * EARLY_PORTION)]
    long_speeches = [s for s in QUOTED_SPEECH_RE.findall(text) if len(s) > LONG_SPEECH_CHARS]

    return NuanceMetrics(
        absolute_words_rate=round(_count(text, ABSOLUTE_WORDS_RE) / per_1k, 2),
        twist_keyword_rate=round(_count(text, TWIST_KEYWORDS_RE) / per_1k, 2),
        conspiracy_markers=_count(text, CONSPIRACY_MARKERS_RE),
        shock_events_early=_count(early, SHOCK_EVENTS_RE),
        speech_length_proxy=len(long_speeches),
        named_factions=_count(text, FACTION_MARKERS_RE),
        plot_thread_count=_count(text, THREAD_MARKERS_RE),
        new_character_density=round(_count(text, CHARACTER_INTRO_RE) / max(1.0, per_1k), 2),
        subtext_scene_count=_count(text, SUBTEXT_MARKERS_RE),
        quiet_beats_count=_count(text, QUIET_BEAT_MARKERS_RE),
        meaning_shift_count=_count(text, MEANING_SHIFT_MARKERS_RE),
        antagonist_legitimacy=ANTAGONIST_LEGITIMACY_RE.search(text) is not None,
        cost_of_action_markers=_count(text, COST_MARKERS_RE),
    )


# (metric, saturation point, weight)
MELODRAMA_WEIGHTS: tuple[tuple[str, float, float], ...] = (
    ("absolute_words_rate", 10.0, 0.25),
    ("twist_keyword_rate", 8.0, 0.25),
    ("conspiracy_markers", 5.0, 0.20),
    ("shock_events_early", 3.0, 0.20),
    ("speech_length_proxy", 4.0, 0.10),
)


def _saturate(value: float, ceiling: float) -> float:
    return min(1.0, value / ceiling)


def compute_melodrama_score(metrics: NuanceMetrics) -> float:
    score = sum(
        _saturate(float(getattr(metrics, name)), ceiling) * weight for name, ceiling, weight in MELODRAMA_WEIGHTS
    )
    return round(min(1.0, max(0.0, score)), 4)


def compute_nuance_score(metrics: NuanceMetrics) -> float:
    score = 0.0
    score += _saturate(metrics.subtext_scene_count, 3) * 0.25
    score += _saturate(metrics.quiet_beats_count, 2) * 0.2
    score += _saturate(metrics.meaning_shift_count, 1) * 0.2
    score += 0.15 if metrics.antagonist_legitimacy else 0.0
    score += _saturate(metrics.cost_of_action_markers, 2) * 0.1
    score += (1 - _saturate(metrics.twist_keyword_rate + metrics.conspiracy_markers, 10)) * 0.1
    return round(min(1.0, max(0.0, score)), 4)
