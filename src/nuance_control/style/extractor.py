"""Deterministic style fingerprint extraction for prose and screenplay text.

No model calls: every metric is a regex or counting heuristic, so the same
text always yields the same fingerprint.
"""

from __future__ import annotations

import math
import re
from enum import Enum

from nuance_control.schemas.style import Density, PunctuationProfile, StyleFingerprint

CHARACTER_CUE_RE = re.compile(r"^\s{10,}[A-Z][A-Z\s.'’`\-]{1,40}(?:\s*\(.*\))?\s*$")
SLUGLINE_RE = re.compile(r"^\s*(?:\d+\s+)?(?:INT\.|EXT\.|INT/EXT\.|I/E\.|I-E\.)", re.IGNORECASE)
PARENTHETICAL_RE = re.compile(r"^\s*\(.*\)\s*$")
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+(?:\s|$)")
ELLIPSIS_RE = re.compile(r"\.{3}")
DASH_RE = re.compile(r"[—–-]{2,}|—")

SUBTEXT_MARKERS = (
    "...",
    "(beat)",
    "looks",
    "hesitates",
    "pauses",
    "silence",
    "glances",
    "trails off",
    "unspoken",
    "almost",
    "barely",
)
HUMOR_MARKERS = (
    "laughs",
    "joke",
    "winks",
    "smirks",
    "deadpan",
    "sarcastic",
    "ironic",
    "dry",
    "chuckles",
    "grins",
    "quips",
    "wry",
)

LEXICAL_SAMPLE_SIZE = 1000


class LineKind(Enum):
    BLANK = "blank"
    CUE = "cue"
    PARENTHETICAL = "parenthetical"
    SLUGLINE = "slugline"
    TEXT = "text"


class DialogueState(Enum):
    OUTSIDE = "outside"
    INSIDE = "inside"


def classify_line(line: str) -> LineKind:
    if CHARACTER_CUE_RE.match(line):
        return LineKind.CUE
    if PARENTHETICAL_RE.match(line.strip()):
        return LineKind.PARENTHETICAL
    if not line.strip():
        return LineKind.BLANK
    if SLUGLINE_RE.match(line):
        return LineKind.SLUGLINE
    return LineKind.TEXT


def advance_dialogue_state(state: DialogueState, kind: LineKind) -> DialogueState:
    if kind is LineKind.CUE:
        return DialogueState.INSIDE
    if kind in (LineKind.BLANK, LineKind.SLUGLINE):
        return DialogueState.OUTSIDE
    return state


def percentile(sorted_values: list[int], p: float) -> int:
    if not sorted_values:
        return 0
    idx = math.ceil((p / 100) * len(sorted_values)) - 1
    return sorted_values[max(0, idx)]


def word_count(text: str) -> int:
    return len(text.split()) or 1


def per_1k(count: int, words: int) -> float:
    return round((count / max(words, 1)) * 1000, 2)


def count_markers_per_1k(text: str, markers: tuple[str, ...] | list[str]) -> float:
    """Non-overlapping case-insensitive marker hits per 1,000 words."""
    lower = text.lower()
    hits = sum(lower.count(marker.lower()) for marker in markers if marker)
    return per_1k(hits, word_count(lower))


def _classify_density(avg_sentence_len: float, action_ratio: float, dialogue_ratio: float) -> Density:
    if avg_sentence_len > 18 and action_ratio > 0.55:
        return "high"
    if avg_sentence_len < 12 or dialogue_ratio > 0.6:
        return "low"
    return "medium"


def empty_fingerprint() -> StyleFingerprint:
    return StyleFingerprint()


def extract_fingerprint(text: str) -> StyleFingerprint:
    """Compute a StyleFingerprint; empty or whitespace-only text yields the zero fingerprint."""
    if not text or not text.strip():
        return empty_fingerprint()

    lines = text.split("\n")
    non_empty = [line for line in lines if line.strip()]
    total_non_empty = len(non_empty) or 1

    line_lens = [len(line.strip()) for line in non_empty]
    avg_line_len = round(sum(line_lens) / len(line_lens), 1) if line_lens else 0.0

    sentences = [s for s in SENTENCE_SPLIT_RE.split(text) if len(s.strip()) > 2]
    sentence_lens = sorted(len(s.split()) for s in sentences)
    avg_sentence_len = round(sum(sentence_lens) / len(sentence_lens), 1) if sentence_lens else 0.0

    dialogue_lines = 0
    cues = 0
    parentheticals = 0
    state = DialogueState.OUTSIDE
    for line in lines:
        kind = classify_line(line)
        if kind is LineKind.CUE:
            cues += 1
        elif kind is LineKind.PARENTHETICAL:
            parentheticals += 1
            continue
        elif state is DialogueState.INSIDE and kind is LineKind.TEXT and not line.strip().startswith("("):
            dialogue_lines += 1
        state = advance_dialogue_state(state, kind)

    dialogue_ratio = round(min(1.0, dialogue_lines / total_non_empty), 3)
    action_lines = total_non_empty - dialogue_lines - cues - parentheticals
    action_line_ratio = round(min(1.0, max(0, action_lines) / total_non_empty), 3)

    words = word_count(text)
    tokens = text.lower().split()[:LEXICAL_SAMPLE_SIZE]
    lexical_variety = round(len(set(tokens)) / len(tokens), 3) if tokens else 0.0

    return StyleFingerprint(
        char_count=len(text),
        line_count=len(lines),
        avg_line_len=avg_line_len,
        sentence_count=len(sentences),
        avg_sentence_len=avg_sentence_len,
        sentence_len_p50=percentile(sentence_lens, 50),
        sentence_len_p90=percentile(sentence_lens, 90),
        dialogue_ratio=dialogue_ratio,
        caps_character_cues=cues,
        parenthetical_count=parentheticals,
        action_line_ratio=action_line_ratio,
        description_density=_classify_density(avg_sentence_len, action_line_ratio, dialogue_ratio),
        subtext_markers_per_1k=count_markers_per_1k(text, SUBTEXT_MARKERS),
        humor_markers_per_1k=count_markers_per_1k(text, HUMOR_MARKERS),
        punctuation_profile=PunctuationProfile(
            ellipses_per_1k=per_1k(len(ELLIPSIS_RE.findall(text)), words),
            dashes_per_1k=per_1k(len(DASH_RE.findall(text)), words),
            exclam_per_1k=per_1k(text.count("!"), words),
            question_per_1k=per_1k(text.count("?"), words),
        ),
        lexical_variety=lexical_variety,
    )
