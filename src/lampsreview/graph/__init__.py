"""File dependency graph: extraction, construction and priority scoring."""

from lampsreview.graph.builder import GraphBuilder, resolve_import
from lampsreview.graph.models import DependencyGraph, FileCategory, GraphNode
from lampsreview.graph.scoring import rank_nodes, score_graph, score_node

__all__ = [
    "DependencyGraph",
    "FileCategory",
    "GraphBuilder",
    "GraphNode",
    "rank_nodes",
    "resolve_import",
    "score_graph",
    "score_node",
]
