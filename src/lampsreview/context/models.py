"""Data models for per-pass review context."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field

from lampsreview.models import PassType


class TokenEstimator:
    """Estimate token counts for code."""

    # Rough heuristic: 1 token ≈ 4 characters
    CHARS_PER_TOKEN = 4

    @classmethod
    def estimate(cls, text: str) -> int:
        """Estimate token count for a string (rounded up, 0 for empty text)."""
        return math.ceil(len(text) / cls.CHARS_PER_TOKEN)


def estimate_tokens(text: str) -> int:
    return TokenEstimator.estimate(text)


class CodeSlice(BaseModel):
    """A contiguous line range of a file plus why it was selected."""

    start_line: int  # 1-based, inclusive
    end_line: int  # 1-based, inclusive
    content: str
    reason: str

    def overlaps(self, other: CodeSlice) -> bool:
        return self.start_line <= other.end_line and self.end_line >= other.start_line


class ContextFile(BaseModel):
    """A file or excerpt staged for one review pass."""

    path: str
    content: str | None = None
    slices: list[CodeSlice] | None = None
    reason: str = ""
    priority: int = 50

    @property
    def is_sliced(self) -> bool:
        return self.content is None and self.slices is not None

    @property
    def text(self) -> str:
        """The text that will be sent: full content, or slices joined by newlines."""
        if self.content is not None:
            return self.content
        return "\n".join(s.content for s in self.slices or [])

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def token_estimate(self) -> int:
        return estimate_tokens(self.text)


class ContextMetadata(BaseModel):
    total_files: int = 0
    total_token_estimate: int = 0
    frameworks: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)
    # Architecture pass only: every path in the codebase, sorted
    full_file_tree: list[str] | None = None


class ReviewContext(BaseModel):
    """Everything one pass sends to the AI provider."""

    pass_type: PassType
    files: list[ContextFile] = Field(default_factory=list)
    metadata: ContextMetadata = Field(default_factory=ContextMetadata)

    def has_file(self, path: str) -> bool:
        return any(f.path == path for f in self.files)

    def summary(self, limit: int = 3) -> str:
        """Human-readable listing of what was included."""
        lines = [
            f"{self.pass_type.value}: {len(self.files)} files "
            f"(~{self.metadata.total_token_estimate:,} tokens)"
        ]
        shown = self.files if len(self.files) <= limit + 2 else self.files[:limit]
        for f in shown:
            lines.append(f"  {f.path} ({f.reason})")
        if len(shown) < len(self.files):
            lines.append(f"  ... and {len(self.files) - len(shown)} more files")
        return "\n".join(lines)
