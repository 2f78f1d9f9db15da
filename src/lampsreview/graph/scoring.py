"""Heuristic priority scoring for dependency graph nodes."""

from __future__ import annotations

import re

from lampsreview.config import ScoringWeights
from lampsreview.graph.models import DependencyGraph, FileCategory, GraphNode

SECURITY_PATH_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"auth",
        r"login",
        r"session",
        r"token",
        r"password",
        r"secret",
        r"credential",
        r"middleware",
        r"permission",
        r"role",
    )
)


def is_security_sensitive(path: str) -> bool:
    return any(p.search(path) for p in SECURITY_PATH_PATTERNS)


def score_node(node: GraphNode, weights: ScoringWeights | None = None) -> int:
    """Compute a node's priority. Always >= 0."""
    w = weights or ScoringWeights()
    score = 0

    if node.category == FileCategory.ENTRY:
        score += w.entry
    elif node.category == FileCategory.CONFIG:
        score += w.config
    elif node.category == FileCategory.API:
        score += w.api

    score += len(node.imported_by) * w.per_importer
    score += min(len(node.imports) * w.per_import, w.import_cap)
    score += min(len(node.exports) * w.per_export, w.export_cap)

    if is_security_sensitive(node.path):
        score += w.security_bonus

    # Large files are better served by slices than by full text
    if node.size > w.large_file_bytes:
        score -= w.large_file_penalty
    if node.size > w.huge_file_bytes:
        score -= w.huge_file_penalty

    if node.category == FileCategory.TEST:
        score -= w.test_penalty

    return max(0, score)


def score_graph(graph: DependencyGraph, weights: ScoringWeights | None = None) -> DependencyGraph:
    """Assign a priority to every node in place and return the graph."""
    for node in graph.files.values():
        node.priority = score_node(node, weights)
    return graph


def rank_nodes(graph: DependencyGraph, exclude: set[FileCategory] | None = None) -> list[GraphNode]:
    """Nodes by priority, highest first. Ties keep graph insertion order."""
    exclude = exclude or set()
    nodes = [n for n in graph.files.values() if n.category not in exclude]
    # sorted() is stable, so equal priorities stay in insertion order
    return sorted(nodes, key=lambda n: n.priority or 0, reverse=True)
