"""Qualification resolver schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from nuance_control.constants import RESOLVER_VERSION, SourceTag

QUALIFICATION_FIELDS = (
    "episode_target_duration_seconds",
    "episode_target_duration_min_seconds",
    "episode_target_duration_max_seconds",
    "season_episode_count",
    "target_runtime_min_low",
    "target_runtime_min_high",
)


class ProjectQualificationFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    episode_target_duration_seconds: float | None = None
    episode_target_duration_min_seconds: float | None = None
    episode_target_duration_max_seconds: float | None = None
    season_episode_count: float | None = None
    target_runtime_min_low: float | None = None
    target_runtime_min_high: float | None = None
    format: str | None = None


class QualificationOverrides(BaseModel):
    model_config = ConfigDict(extra="ignore")

    qualifications: dict[str, Any] = Field(default_factory=dict)


class QualificationInput(BaseModel):
    """Caller-supplied layers; unknown metadata keys (``updated_at`` etc.) are ignored."""

    model_config = ConfigDict(extra="ignore")

    project_id: str | None = None
    production_type: str | None = None
    format_subtype: str | None = None
    pipeline_stage: str | None = None
    project_qualification_fields: ProjectQualificationFields = Field(
        default_factory=ProjectQualificationFields
    )
    guardrails_config: dict[str, Any] | None = None
    overrides: QualificationOverrides = Field(default_factory=QualificationOverrides)
    locked_fields: list[str] = Field(default_factory=list)


class ResolvedQualifications(BaseModel):
    episode_target_duration_seconds: int | None = None
    episode_target_duration_min_seconds: int | None = None
    episode_target_duration_max_seconds: int | None = None
    season_episode_count: int | None = None
    season_target_runtime_seconds: int | None = None
    target_runtime_min_low: int | None = None
    target_runtime_min_high: int | None = None
    format: str
    is_series: bool


class QualificationSources(BaseModel):
    episode_target_duration_seconds: SourceTag | None = None
    episode_target_duration_min_seconds: SourceTag | None = None
    episode_target_duration_max_seconds: SourceTag | None = None
    season_episode_count: SourceTag | None = None
    target_runtime_min_low: SourceTag | None = None
    target_runtime_min_high: SourceTag | None = None


class QualificationWarning(BaseModel):
    field: str
    message: str


class QualificationError(BaseModel):
    field: str
    message: str


class ResolveResult(BaseModel):
    resolved_qualifications: ResolvedQualifications
    sources: QualificationSources
    warnings: list[QualificationWarning] = Field(default_factory=list)
    errors: list[QualificationError] = Field(default_factory=list)
    resolver_version: int = RESOLVER_VERSION
    resolver_hash: str
