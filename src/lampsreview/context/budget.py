"""Token-budgeted context selection for the three review passes.

Each pass has a flat token budget. Candidates are admitted in a fixed order
per pass; a candidate that would not fit is skipped (earlier picks are never
evicted). Small files go in whole; large ones are sliced.
"""

from __future__ import annotations

import logging
import re

from lampsreview.config import BudgetConfig
from lampsreview.context.models import (
    ContextFile,
    ContextMetadata,
    ReviewContext,
    estimate_tokens,
)
from lampsreview.context.slices import SliceOptions, extract_slices
from lampsreview.files import ContentCache, FileRecord
from lampsreview.graph.models import DependencyGraph, FileCategory
from lampsreview.graph.scoring import SECURITY_PATH_PATTERNS, rank_nodes
from lampsreview.models import DetectionResult, Finding, PassType

logger = logging.getLogger(__name__)

PACKAGE_FILES = ("package.json", "pyproject.toml", "requirements.txt")

_README = re.compile(r"readme\.md$", re.IGNORECASE)

SECURITY_FILE_PATTERNS = SECURITY_PATH_PATTERNS + tuple(
    re.compile(p, re.IGNORECASE)
    for p in (r"crypto", r"encrypt", r"hash", r"sanitize", r"validate")
)

_ENV_CONFIG_FILE = re.compile(
    r"\.env\.example|\.env\.sample|config.*\.(?:ts|js|json)$", re.IGNORECASE
)

DATABASE_FILE_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (r"model", r"schema", r"database", r"db\.", r"migration", r"query")
)

FOCUS_AREAS: dict[PassType, list[str]] = {
    PassType.ARCHITECTURE: ["Project structure", "Dependencies", "Entry points", "Configuration"],
    PassType.DEEP_DIVE: ["Code quality", "Bugs", "Performance", "Best practices"],
    PassType.SECURITY: [
        "Authentication",
        "Authorization",
        "Input validation",
        "Data exposure",
        "Injection vulnerabilities",
    ],
}

_EXCLUDED_FROM_REVIEW = {FileCategory.TEST, FileCategory.CONFIG}


class ContextBuilder:
    """Builds the ReviewContext for each pass over one file set."""

    def __init__(
        self,
        records: list[FileRecord],
        graph: DependencyGraph,
        cache: ContentCache | None = None,
        config: BudgetConfig | None = None,
        detection: DetectionResult | None = None,
    ) -> None:
        self.records = records
        self.graph = graph
        self.cache = cache if cache is not None else ContentCache()
        self.config = config or BudgetConfig()
        self.detection = detection or DetectionResult()
        self._by_path = {r.relative_path: r for r in records}

    def budget_for(self, pass_type: PassType) -> int:
        return {
            PassType.ARCHITECTURE: self.config.architecture,
            PassType.DEEP_DIVE: self.config.deep_dive,
            PassType.SECURITY: self.config.security,
        }[pass_type]

    # -------------------------------------------------------------------
    # Shared inclusion helper
    # -------------------------------------------------------------------

    def build_context_file(
        self,
        record: FileRecord,
        reason: str,
        remaining_budget: int,
        findings: list[Finding] | None = None,
    ) -> ContextFile | None:
        """Full text when small and affordable, slices otherwise, None if neither fits."""
        content = self.cache.load(record)
        if not content:
            return None

        node = self.graph.get(record.relative_path)
        priority = node.priority if node and node.priority is not None else 50
        tokens = estimate_tokens(content)

        if record.size < self.config.slice_threshold_bytes and tokens < remaining_budget:
            return ContextFile(path=record.relative_path, content=content, reason=reason, priority=priority)

        slices = extract_slices(
            content,
            record.relative_path,
            SliceOptions(
                static_findings=findings or [],
                max_total_size=min(remaining_budget * 4, self.config.max_slice_chars),
            ),
        )
        if not slices:
            return None

        slice_tokens = estimate_tokens("\n".join(s.content for s in slices))
        if slice_tokens > remaining_budget:
            return None

        # Slices that save little are not worth the lost context
        if slice_tokens >= tokens * self.config.prefer_full_ratio and tokens < remaining_budget:
            return ContextFile(path=record.relative_path, content=content, reason=reason, priority=priority)

        return ContextFile(
            path=record.relative_path,
            slices=slices,
            reason=f"{reason} (sliced)",
            priority=priority,
        )

    # -------------------------------------------------------------------
    # Architecture pass
    # -------------------------------------------------------------------

    def build_architecture_context(self) -> ReviewContext:
        """File tree, manifests, entry points, config files and the README."""
        selection = _Selection(self.budget_for(PassType.ARCHITECTURE))

        full_file_tree = sorted(r.relative_path for r in self.records)
        # The tree is always sent, so it is always paid for
        selection.used += estimate_tokens("\n".join(full_file_tree))

        for name in PACKAGE_FILES:
            record = self._by_path.get(name)
            if record is not None:
                self._add_whole(selection, record, "Package configuration", priority=100)

        for path in self.graph.entry_points[: self.config.max_entry_points]:
            self._add(selection, path, "Entry point")

        for path in self.graph.config_files[: self.config.max_config_files]:
            self._add(selection, path, "Configuration")

        readme = next((r for r in self.records if _README.search(r.relative_path)), None)
        if readme is not None:
            self._add_whole(selection, readme, "Project documentation", priority=50)

        return self._finish(PassType.ARCHITECTURE, selection, full_file_tree=full_file_tree)

    # -------------------------------------------------------------------
    # Deep-dive pass
    # -------------------------------------------------------------------

    def build_deep_dive_context(
        self,
        static_findings: list[Finding],
        architecture_findings: list[Finding],
    ) -> ReviewContext:
        """Static hotspots, architecture mentions, hubs, then priority fill."""
        budget = self.budget_for(PassType.DEEP_DIVE)
        selection = _Selection(budget)
        ranked = rank_nodes(self.graph, exclude=_EXCLUDED_FROM_REVIEW)

        findings_by_file: dict[str, list[Finding]] = {}
        for finding in static_findings:
            findings_by_file.setdefault(finding.file, []).append(finding)

        for record in self.records:
            file_findings = findings_by_file.get(record.relative_path)
            if file_findings:
                self._add(
                    selection,
                    record.relative_path,
                    f"Static analysis flagged ({len(file_findings)} issues)",
                    findings=file_findings,
                )

        for finding in architecture_findings:
            if finding.file in self._by_path:
                self._add(selection, finding.file, "Flagged in architecture review")

        hubs = [n for n in ranked if len(n.imported_by) >= self.config.min_importers]
        for node in hubs[: self.config.max_high_connectivity]:
            self._add(selection, node.path, f"High connectivity ({len(node.imported_by)} dependents)")

        reserve_at = budget * self.config.fill_ratio
        for node in ranked:
            if selection.used >= reserve_at:
                break
            self._add(selection, node.path, f"Priority score: {node.priority or 0}")

        return self._finish(PassType.DEEP_DIVE, selection)

    # -------------------------------------------------------------------
    # Security pass
    # -------------------------------------------------------------------

    def build_security_context(self) -> ReviewContext:
        """API routes, security-named files, env/config files, data layer."""
        budget = self.budget_for(PassType.SECURITY)
        selection = _Selection(budget)

        for path in self.graph.api_files:
            self._add(selection, path, "API route")

        for record in self.records:
            if any(p.search(record.relative_path) for p in SECURITY_FILE_PATTERNS):
                self._add(selection, record.relative_path, "Security-sensitive file")

        for record in self.records:
            if _ENV_CONFIG_FILE.search(record.relative_path):
                self._add(selection, record.relative_path, "Environment/Config")

        reserve_at = budget * self.config.fill_ratio
        for record in self.records:
            if selection.used >= reserve_at:
                break
            if any(p.search(record.relative_path) for p in DATABASE_FILE_PATTERNS):
                self._add(selection, record.relative_path, "Database/Model")

        return self._finish(PassType.SECURITY, selection)

    def build(
        self,
        pass_type: PassType,
        static_findings: list[Finding] | None = None,
        architecture_findings: list[Finding] | None = None,
    ) -> ReviewContext:
        if pass_type == PassType.ARCHITECTURE:
            return self.build_architecture_context()
        if pass_type == PassType.DEEP_DIVE:
            return self.build_deep_dive_context(static_findings or [], architecture_findings or [])
        return self.build_security_context()

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    def _add(
        self,
        selection: _Selection,
        path: str,
        reason: str,
        findings: list[Finding] | None = None,
    ) -> None:
        record = self._by_path.get(path)
        if record is None or path in selection.paths:
            return
        context_file = self.build_context_file(record, reason, selection.remaining, findings)
        if context_file is not None:
            selection.take(context_file)

    def _add_whole(
        self, selection: _Selection, record: FileRecord, reason: str, priority: int
    ) -> None:
        """Full text only; skipped unless it fits strictly under the budget."""
        if record.relative_path in selection.paths:
            return
        content = self.cache.load(record)
        if not content:
            return
        if selection.used + estimate_tokens(content) < selection.budget:
            selection.take(
                ContextFile(path=record.relative_path, content=content, reason=reason, priority=priority)
            )

    def _finish(
        self,
        pass_type: PassType,
        selection: _Selection,
        full_file_tree: list[str] | None = None,
    ) -> ReviewContext:
        context = ReviewContext(
            pass_type=pass_type,
            files=selection.files,
            metadata=ContextMetadata(
                total_files=len(self.records),
                total_token_estimate=selection.used,
                frameworks=self.detection.framework_names,
                focus_areas=list(FOCUS_AREAS[pass_type]),
                full_file_tree=full_file_tree,
            ),
        )
        logger.info(context.summary())
        return context


class _Selection:
    """Running state of one pass's selection."""

    def __init__(self, budget: int) -> None:
        self.budget = budget
        self.used = 0
        self.files: list[ContextFile] = []
        self.paths: set[str] = set()

    @property
    def remaining(self) -> int:
        return self.budget - self.used

    def take(self, context_file: ContextFile) -> None:
        self.files.append(context_file)
        self.paths.add(context_file.path)
        self.used += context_file.token_estimate
