"""Cross-pass finding deduplication."""

from __future__ import annotations

import re

from lampsreview.models import Finding

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9 ]")


def normalize_message(message: str) -> str:
    """Lower-case, collapse whitespace, drop punctuation, keep 50 chars."""
    text = _WHITESPACE.sub(" ", message.lower())
    return _NON_ALNUM.sub("", text)[:50]


def finding_key(finding: Finding) -> str:
    return f"{finding.file}:{finding.line or 0}:{normalize_message(finding.message)}"


def deduplicate_findings(findings: list[Finding]) -> list[Finding]:
    """Collapse findings that share a key, keeping the most severe.

    On equal severity the first-seen finding stays. Output order is the
    first-seen order of the keys.
    """
    seen: dict[str, Finding] = {}
    for finding in findings:
        key = finding_key(finding)
        existing = seen.get(key)
        if existing is None or finding.severity.rank > existing.severity.rank:
            seen[key] = finding
    return list(seen.values())
