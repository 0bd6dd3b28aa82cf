from __future__ import annotations

import pytest

from nuance_control.schemas.style import StyleFingerprint
from nuance_control.style.extractor import (
    HUMOR_MARKERS,
    DialogueState,
    LineKind,
    advance_dialogue_state,
    classify_line,
    count_markers_per_1k,
    extract_fingerprint,
    percentile,
)
from tests.helpers import SCREENPLAY_SCENE


@pytest.mark.parametrize("text", ["", "   ", "\n\n  \t\n"])
def test_empty_or_whitespace_text_yields_zero_fingerprint(text: str) -> None:
    fingerprint = extract_fingerprint(text)
    assert fingerprint == StyleFingerprint()
    assert fingerprint.char_count == 0
    assert fingerprint.dialogue_ratio == 0
    assert fingerprint.description_density == "low"


def test_extract_is_deterministic() -> None:
    assert extract_fingerprint(SCREENPLAY_SCENE) == extract_fingerprint(SCREENPLAY_SCENE)


def test_screenplay_line_classification_counts() -> None:
    fingerprint = extract_fingerprint(SCREENPLAY_SCENE)

    assert fingerprint.line_count == 12
    assert fingerprint.caps_character_cues == 2
    assert fingerprint.parenthetical_count == 1
    # 8 non-empty lines, 2 of them dialogue.
    assert fingerprint.dialogue_ratio == 0.25
    assert fingerprint.action_line_ratio == 0.375


@pytest.mark.parametrize(
    ("line", "kind"),
    [
        ("INT. KITCHEN - NIGHT", LineKind.SLUGLINE),
        ("12 EXT. ROOFTOP - DAY", LineKind.SLUGLINE),
        ("I/E. CAR - MOVING", LineKind.SLUGLINE),
        ("          MAYA", LineKind.CUE),
        ("          DANIEL (V.O.)", LineKind.CUE),
        ("          (quietly)", LineKind.PARENTHETICAL),
        ("", LineKind.BLANK),
        ("She looks at the phone.", LineKind.TEXT),
        ("MAYA", LineKind.TEXT),
    ],
)
def test_classify_line(line: str, kind: LineKind) -> None:
    assert classify_line(line) is kind


def test_dialogue_state_transitions() -> None:
    state = advance_dialogue_state(DialogueState.OUTSIDE, LineKind.CUE)
    assert state is DialogueState.INSIDE
    assert advance_dialogue_state(state, LineKind.TEXT) is DialogueState.INSIDE
    assert advance_dialogue_state(state, LineKind.BLANK) is DialogueState.OUTSIDE
    assert advance_dialogue_state(state, LineKind.SLUGLINE) is DialogueState.OUTSIDE
    assert advance_dialogue_state(DialogueState.OUTSIDE, LineKind.TEXT) is DialogueState.OUTSIDE


def test_sentence_stats_and_percentiles() -> None:
    fingerprint = extract_fingerprint("The door opens. She waits! Why?")

    assert fingerprint.sentence_count == 3
    assert fingerprint.avg_sentence_len == 2.0
    assert fingerprint.sentence_len_p50 == 2
    assert fingerprint.sentence_len_p90 == 3


def test_short_fragments_are_not_sentences() -> None:
    assert extract_fingerprint("Ok. Go.").sentence_count == 0


def test_percentile_uses_nearest_rank() -> None:
    values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    assert percentile(values, 50) == 5
    assert percentile(values, 90) == 9
    assert percentile([], 50) == 0
    assert percentile([7], 90) == 7


def test_marker_rates_per_thousand_words() -> None:
    assert count_markers_per_1k("He laughs. She laughs.", HUMOR_MARKERS) == 500.0


def test_punctuation_profile() -> None:
    profile = extract_fingerprint("Wait... no -- stop!").punctuation_profile

    assert profile.ellipses_per_1k == 250.0
    assert profile.dashes_per_1k == 250.0
    assert profile.exclam_per_1k == 250.0
    assert profile.question_per_1k == 0.0


def test_lexical_variety() -> None:
    assert extract_fingerprint("the cat the dog").lexical_variety == 0.75


def test_long_action_prose_is_high_density() -> None:
    sentence = " ".join(["word"] * 20) + "."
    fingerprint = extract_fingerprint(sentence)

    assert fingerprint.avg_sentence_len == 20.0
    assert fingerprint.action_line_ratio == 1.0
    assert fingerprint.description_density == "high"


def test_dialogue_heavy_text_is_low_density() -> None:
    assert extract_fingerprint(SCREENPLAY_SCENE).description_density == "low"
