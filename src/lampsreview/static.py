"""Built-in static rules, run before the AI passes."""

from __future__ import annotations

import logging

from lampsreview.files import FileRecord
from lampsreview.graph.builder import GraphBuilder
from lampsreview.models import Finding, Severity

logger = logging.getLogger(__name__)

LARGE_FILE_BYTES = 500 * 1024
MAX_CYCLE_FINDINGS = 20

_TEST_DIR_MARKERS = ("__tests__", "/test/", "/tests/")


def run_static_rules(records: list[FileRecord], builder: GraphBuilder | None = None) -> list[Finding]:
    """Large files, misplaced tests and, given a built graph, import cycles."""
    findings: list[Finding] = []

    for record in records:
        if record.size > LARGE_FILE_BYTES:
            findings.append(
                Finding(
                    rule_id="static/large-file",
                    severity=Severity.WARNING,
                    file=record.relative_path,
                    message=f"File is very large ({round(record.size / 1024)}KB). Consider splitting it.",
                )
            )

    for record in records:
        name = record.relative_path.rsplit("/", 1)[-1]
        if ".test." in name and not any(m in record.relative_path for m in _TEST_DIR_MARKERS):
            findings.append(
                Finding(
                    rule_id="static/misplaced-test",
                    severity=Severity.HINT,
                    file=record.relative_path,
                    message="Test file found outside of test directory",
                )
            )

    if builder is not None:
        for cycle in builder.find_cycles(limit=MAX_CYCLE_FINDINGS):
            chain = " -> ".join(cycle + cycle[:1])
            findings.append(
                Finding(
                    rule_id="static/import-cycle",
                    severity=Severity.INFO,
                    file=cycle[0],
                    message=f"Circular import: {chain}",
                )
            )

    logger.info("Static rules: %d findings", len(findings))
    return findings
