"""
Style fidelity modules.

- extract_fingerprint: Deterministic lexical/structural metrics from text
- compute_deviation: Score a fingerprint against a target voice profile
- select_best_attempt: Choose between two scored drafts
"""

from .extractor import extract_fingerprint
from .deviation import (
    build_style_repair_prompt,
    build_target_from_team_voice,
    build_target_from_writing_voice,
    compute_deviation,
    evaluate_style,
    select_best_attempt,
)

__all__ = [
    "extract_fingerprint",
    "compute_deviation",
    "evaluate_style",
    "select_best_attempt",
    "build_style_repair_prompt",
    "build_target_from_team_voice",
    "build_target_from_writing_voice",
]
