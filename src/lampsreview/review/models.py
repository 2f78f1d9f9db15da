"""Result models for the multi-pass review."""

from __future__ import annotations

from pydantic import BaseModel, Field

from lampsreview.models import Finding, PassType


class FileInclusion(BaseModel):
    """What one pass sent for one file."""

    path: str
    reason: str
    sliced: bool = False
    char_count: int = 0
    token_estimate: int = 0


class PassResult(BaseModel):
    """Outcome of a single review pass."""

    pass_type: PassType
    findings: list[Finding] = Field(default_factory=list)
    summary: str = ""
    files: list[FileInclusion] = Field(default_factory=list)
    token_estimate: int = 0
    usage: dict[str, int] = Field(default_factory=dict)
    duration_seconds: float = 0.0
    skipped: bool = False
    error: str | None = None


class ReviewOutcome(BaseModel):
    """Deduplicated findings of all passes plus per-pass detail."""

    findings: list[Finding] = Field(default_factory=list)
    pass_results: list[PassResult] = Field(default_factory=list)
    summary: str = ""
    model: str = ""
    files_analyzed: int = 0
    raw_finding_count: int = 0
    skipped: bool = False
    skip_reason: str | None = None
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return any(r.error for r in self.pass_results)
