"""End-to-end review pipeline: collect, graph, score, static rules, AI passes."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from lampsreview import __version__
from lampsreview.config import ReviewConfig, load_config
from lampsreview.detector import detect_frameworks
from lampsreview.files import ContentCache
from lampsreview.graph.builder import GraphBuilder
from lampsreview.graph.scoring import score_graph
from lampsreview.llm.base import LLMProvider
from lampsreview.models import DetectionResult, Finding, Severity
from lampsreview.review.models import PassResult
from lampsreview.review.passes import MultiPassReviewer
from lampsreview.scanner import collect_files
from lampsreview.static import run_static_rules

logger = logging.getLogger(__name__)

REPORT_VERSION = "1.0.0"

SEVERITY_WEIGHTS = {
    Severity.ERROR: 10,
    Severity.WARNING: 5,
    Severity.INFO: 2,
    Severity.HINT: 1,
}


class ReportSummary(BaseModel):
    total_findings: int = 0
    by_severity: dict[str, int] = Field(default_factory=dict)
    by_source: dict[str, int] = Field(default_factory=dict)
    health_score: int = 100


class ReviewReport(BaseModel):
    """Everything one review run produced."""

    version: str = REPORT_VERSION
    tool_version: str = __version__
    timestamp: str
    repository: str
    files_analyzed: int = 0
    detection: DetectionResult = Field(default_factory=DetectionResult)
    summary: ReportSummary = Field(default_factory=ReportSummary)
    ai_summary: str = ""
    model: str = ""
    findings: list[Finding] = Field(default_factory=list)
    pass_results: list[PassResult] = Field(default_factory=list)
    graph: dict[str, Any] = Field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def has_errors(self) -> bool:
        return self.summary.by_severity.get(Severity.ERROR.value, 0) > 0

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent)


def health_score(findings: list[Finding]) -> int:
    """100 minus severity-weighted findings, floored at 0."""
    penalty = sum(SEVERITY_WEIGHTS[f.severity] for f in findings)
    return max(0, 100 - min(penalty, 100))


def summarize(static_findings: list[Finding], ai_findings: list[Finding]) -> ReportSummary:
    findings = static_findings + ai_findings
    by_severity = {s.value: 0 for s in Severity}
    for finding in findings:
        by_severity[finding.severity.value] += 1
    return ReportSummary(
        total_findings=len(findings),
        by_severity=by_severity,
        by_source={"static": len(static_findings), "ai": len(ai_findings)},
        health_score=health_score(findings),
    )


class ReviewPipeline:
    """Runs a whole review for one repository.

    Usage:
        pipeline = ReviewPipeline()
        report = asyncio.run(pipeline.run("path/to/repo"))
    """

    def __init__(
        self,
        config: ReviewConfig | None = None,
        provider: LLMProvider | None = None,
    ) -> None:
        self.config = config
        self.provider = provider

    async def run(self, root: str | Path) -> ReviewReport:
        """Run the review under the configured timeout.

        Collection, detection, graph building and static rules run in a
        worker thread so the timeout can fire while they are busy. The
        thread itself is not interrupted; its result is discarded.

        Raises:
            asyncio.TimeoutError: If the review exceeds ``timeout_seconds``.
            ConfigError: If the configuration file is invalid.
            ScanError: If ``root`` cannot be scanned.
        """
        root = Path(root).resolve()
        config = self.config or load_config(root)
        return await asyncio.wait_for(self._run(root, config), timeout=config.timeout_seconds)

    async def _run(self, root: Path, config: ReviewConfig) -> ReviewReport:
        started = time.monotonic()
        cache = ContentCache()

        records, detection, builder, graph, static_findings = await asyncio.to_thread(
            self._analyze, root, config, cache
        )

        reviewer = MultiPassReviewer(config, provider=self.provider)
        outcome = await reviewer.run(records, graph, static_findings, detection, cache)

        duration = time.monotonic() - started
        logger.info("Review of %s finished in %.1fs", root, duration)

        return ReviewReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            repository=str(root),
            files_analyzed=len(records),
            detection=detection,
            summary=summarize(static_findings, outcome.findings),
            ai_summary=outcome.summary,
            model=outcome.model,
            findings=static_findings + outcome.findings,
            pass_results=outcome.pass_results,
            graph=builder.get_stats(),
            duration_seconds=duration,
        )

    @staticmethod
    def _analyze(root: Path, config: ReviewConfig, cache: ContentCache):
        records = collect_files(root, config.scan)
        detection = detect_frameworks(records, cache)

        builder = GraphBuilder(config.graph, cache)
        graph = score_graph(builder.build(records), config.scoring)

        static_findings = run_static_rules(records, builder)
        return records, detection, builder, graph, static_findings
