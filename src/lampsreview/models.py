"""Shared data models: findings, severities, review passes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Finding severity, most severe first."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.ERROR: 4,
    Severity.WARNING: 3,
    Severity.INFO: 2,
    Severity.HINT: 1,
}


class Finding(BaseModel):
    """One reported issue. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: Severity
    file: str
    message: str
    line: int | None = None
    column: int | None = None
    snippet: str | None = None
    suggestion: str | None = None


class PassType(str, Enum):
    """The three review passes, in execution order."""

    ARCHITECTURE = "architecture"
    DEEP_DIVE = "deep-dive"
    SECURITY = "security"


PASS_ORDER = (PassType.ARCHITECTURE, PassType.DEEP_DIVE, PassType.SECURITY)


class FrameworkInfo(BaseModel):
    name: str
    confidence: float = 1.0


class DetectionResult(BaseModel):
    """Detected frameworks and languages. Only used to fill prompt text."""

    frameworks: list[FrameworkInfo] = Field(default_factory=list)
    primary: str | None = None
    languages: list[str] = Field(default_factory=list)

    @property
    def framework_names(self) -> list[str]:
        return [f.name for f in self.frameworks]
