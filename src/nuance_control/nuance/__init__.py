"""
Nuance Control Stack.

- compute_nuance_metrics: Narrative marker counts and rates from text
- run_nuance_gate: Lane-aware pass/fail with named failure codes
- build_repair_instruction: Failure codes to a regeneration directive
- compute_fingerprint / compute_similarity_risk: Repetition defense
"""

from .defaults import (
    get_default_caps,
    get_default_conflict_mode,
    get_melodrama_threshold,
    get_similarity_threshold,
    normalize_lane,
)
from .fingerprint import compute_fingerprint, compute_similarity_risk, get_diversification_hints
from .gate import run_nuance_gate
from .prompt import build_nuance_prompt_block
from .repair import build_repair_instruction
from .scoring import compute_melodrama_score, compute_nuance_metrics, compute_nuance_score

__all__ = [
    "compute_nuance_metrics",
    "compute_melodrama_score",
    "compute_nuance_score",
    "run_nuance_gate",
    "build_repair_instruction",
    "build_nuance_prompt_block",
    "compute_fingerprint",
    "compute_similarity_risk",
    "get_diversification_hints",
    "get_default_caps",
    "get_default_conflict_mode",
    "get_melodrama_threshold",
    "get_similarity_threshold",
    "normalize_lane",
]
