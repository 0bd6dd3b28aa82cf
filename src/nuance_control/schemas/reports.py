"""Evaluation report schemas."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class GateReport(BaseModel):
    gate: str
    passed: bool
    attempt: int = Field(default=0, ge=0)
    generated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    metrics: dict[str, Any] = Field(default_factory=dict)
    reasons: list[str] = Field(default_factory=list)
    fix_instructions: list[str] = Field(default_factory=list)


class EvaluationReport(BaseModel):
    lane: str
    attempt: int = Field(default=0, ge=0)
    text_sha256: str
    policy_sha256: str
    passed: bool
    gate_reports: list[GateReport] = Field(default_factory=list)
    repair_instruction: str | None = None
    style_repair_instruction: str | None = None
