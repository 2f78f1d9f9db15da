"""Code slicing: pick the relevant line ranges of files too large to send whole.

Candidates come from four sources, in order:
  1. windows around static-analysis findings for the file
  2. windows around security-sensitive lines
  3. balanced blocks at function/class/arrow-function definitions
  4. balanced blocks at ``export`` statements

Each candidate must fit the running size budget and must not overlap an
already accepted slice. Accepted slices are then sorted, adjacent ones merged,
and the final content is cut again from the original text by line range.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from lampsreview.context.models import CodeSlice
from lampsreview.models import Finding

CONTEXT_LINES = 10
MAX_SLICE_CHARS = 5_000
MAX_BLOCK_LINES = 50
DEFAULT_MAX_TOTAL_SIZE = 20_000
TRUNCATION_MARKER = "\n// ... truncated"

REASON_STATIC = "Static analysis flagged this area"
REASON_SECURITY = "Security-sensitive code"
REASON_DEFINITION = "Function/class definition"
REASON_EXPORT = "Export"

# One pattern per category; the first match on a line wins
SECURITY_LINE_PATTERNS = (
    re.compile(r"(?:password|secret|token|api[_-]?key|credential|auth)", re.IGNORECASE),
    re.compile(r"(?:process\.env\.|environ\[|environ\.get|getenv\()"),
    re.compile(r"(?:eval|exec|Function\(|subprocess|shell)"),
    re.compile(r"(?:innerHTML|dangerouslySetInnerHTML|v-html)"),
    re.compile(r"(?:sql|query|execute|raw\s*\()", re.IGNORECASE),
    re.compile(r"(?:cookie|session|localStorage|sessionStorage)"),
    re.compile(r"(?:cors|origin|access-control)", re.IGNORECASE),
    re.compile(r"(?:jwt|bearer|oauth)", re.IGNORECASE),
    re.compile(r"(?:bcrypt|argon|scrypt|pbkdf|hash)", re.IGNORECASE),
)

DEFINITION_PATTERNS = (
    re.compile(r"^export\s+(?:default\s+)?(?:async\s+)?(?:function|class|const|interface|type)"),
    re.compile(r"^(?:async\s+)?function\s+\w+"),
    re.compile(r"^class\s+\w+"),
    re.compile(
        r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?"
        r"(?:\([^)]*\)\s*=>|\w+\s*=\s*(?:async\s+)?\([^)]*\)\s*=>)"
    ),
)

_EXPORT_LINE = re.compile(r"^export\s+")


@dataclass
class SliceOptions:
    """What to slice for and how much text to keep."""

    static_findings: list[Finding] = field(default_factory=list)
    include_security: bool = True
    include_definitions: bool = True
    include_exports: bool = True
    max_total_size: int = DEFAULT_MAX_TOTAL_SIZE


def extract_slices(
    content: str, file_path: str, options: SliceOptions | None = None
) -> list[CodeSlice]:
    """Extract sorted, non-overlapping slices of ``content``."""
    options = options or SliceOptions()
    if options.max_total_size <= 0:
        return []

    lines = content.split("\n")
    accepted: list[CodeSlice] = []
    total_size = 0

    def admit(candidate: CodeSlice | None) -> None:
        nonlocal total_size
        if candidate is None:
            return
        if total_size + len(candidate.content) > options.max_total_size:
            return
        if any(candidate.overlaps(s) for s in accepted):
            return
        accepted.append(candidate)
        total_size += len(candidate.content)

    for finding in options.static_findings:
        if finding.file == file_path and finding.line:
            admit(_window(lines, finding.line, REASON_STATIC))

    if options.include_security:
        for i, line in enumerate(lines):
            if any(p.search(line) for p in SECURITY_LINE_PATTERNS):
                admit(_window(lines, i + 1, REASON_SECURITY))

    if options.include_definitions:
        for i, line in enumerate(lines):
            if any(p.search(line) for p in DEFINITION_PATTERNS):
                admit(_block(lines, i + 1, REASON_DEFINITION))

    if options.include_exports:
        for i, line in enumerate(lines):
            if _EXPORT_LINE.match(line.strip()):
                admit(_block(lines, i + 1, REASON_EXPORT))

    return merge_slices(accepted, lines)


def _window(lines: list[str], line_num: int, reason: str) -> CodeSlice | None:
    """±CONTEXT_LINES around ``line_num``. Oversized windows are truncated."""
    start = max(1, line_num - CONTEXT_LINES)
    end = min(len(lines), line_num + CONTEXT_LINES)
    if start > end:
        return None

    text = "\n".join(lines[start - 1 : end])
    if len(text) > MAX_SLICE_CHARS:
        text = text[:MAX_SLICE_CHARS] + TRUNCATION_MARKER
    return CodeSlice(start_line=start, end_line=end, content=text, reason=reason)


def _block(lines: list[str], start: int, reason: str) -> CodeSlice | None:
    """Brace/paren-balanced block from ``start``. Oversized blocks are dropped."""
    depth = 0
    opened = False
    end = start
    last = min(len(lines), start - 1 + MAX_BLOCK_LINES)

    for i in range(start - 1, last):
        for char in lines[i]:
            if char in "{(":
                depth += 1
                opened = True
            elif char in "})":
                depth -= 1
        end = i + 1
        if opened and depth == 0:
            break

    text = "\n".join(lines[start - 1 : end])
    if len(text) > MAX_SLICE_CHARS:
        return None
    return CodeSlice(start_line=start, end_line=end, content=text, reason=reason)


def merge_slices(slices: list[CodeSlice], lines: list[str] | None = None) -> list[CodeSlice]:
    """Sort by start line and merge slices that overlap or touch (gap <= 1).

    Reasons of merged slices are unioned. When the source ``lines`` are given,
    every resulting slice's content is cut again from them.
    """
    if not slices:
        return []

    ordered = sorted(slices, key=lambda s: s.start_line)
    merged: list[CodeSlice] = []
    current = ordered[0]

    for nxt in ordered[1:]:
        if nxt.start_line <= current.end_line + 1:
            current = current.model_copy(
                update={
                    "end_line": max(current.end_line, nxt.end_line),
                    "reason": _combine_reasons(current.reason, nxt.reason),
                }
            )
        else:
            merged.append(current)
            current = nxt
    merged.append(current)

    if lines is None:
        return merged
    return [
        s.model_copy(update={"content": "\n".join(lines[s.start_line - 1 : s.end_line])})
        for s in merged
    ]


def _combine_reasons(first: str, second: str) -> str:
    reasons = first.split(", ")
    for reason in second.split(", "):
        if reason not in reasons:
            reasons.append(reason)
    return ", ".join(reasons)
