"""Lenient parsing of AI review responses.

Models wrap JSON in code fences, prefix it with prose, or return something
that is not JSON at all. ``parse_review_response`` never raises: anything it
cannot read becomes an empty finding list with an explanatory summary.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field

from lampsreview.models import Finding, Severity

logger = logging.getLogger(__name__)

PARSE_FAILURE = "Failed to parse AI response"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

_SEVERITY_ALIASES = {
    "critical": Severity.ERROR,
    "high": Severity.ERROR,
    "medium": Severity.WARNING,
    "low": Severity.INFO,
}


class ParsedResponse(BaseModel):
    findings: list[Finding] = Field(default_factory=list)
    summary: str = ""


def parse_review_response(response: str) -> ParsedResponse:
    """Extract findings and a summary from a raw model reply."""
    text = response.strip()

    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        text = fenced.group(1).strip()

    candidate = find_json_object(text)
    if candidate is not None:
        text = candidate

    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        logger.warning("Could not parse AI response as JSON")
        return ParsedResponse(summary=f"{PARSE_FAILURE}: {response[:200]}")

    if not isinstance(payload, dict) or not isinstance(payload.get("findings"), list):
        return ParsedResponse(summary=PARSE_FAILURE)

    findings = [_to_finding(raw) for raw in payload["findings"] if isinstance(raw, dict)]
    summary = payload.get("summary")
    return ParsedResponse(findings=findings, summary=summary if isinstance(summary, str) else "")


def find_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` in ``text``, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def normalize_severity(value: Any) -> Severity:
    """Map a model-supplied severity onto the four known levels."""
    if not isinstance(value, str):
        return Severity.INFO
    normalized = value.strip().lower()
    try:
        return Severity(normalized)
    except ValueError:
        return _SEVERITY_ALIASES.get(normalized, Severity.INFO)


def _to_finding(raw: dict[str, Any]) -> Finding:
    line = raw.get("line")
    suggestion = raw.get("suggestion")
    return Finding(
        rule_id=_text(raw.get("ruleId")) or "ai/unknown",
        severity=normalize_severity(raw.get("severity")),
        file=_text(raw.get("file")) or "unknown",
        line=line if isinstance(line, int) and not isinstance(line, bool) else None,
        message=_text(raw.get("message")) or "No description provided",
        suggestion=_text(suggestion) or None,
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
