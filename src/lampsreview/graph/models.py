"""Data models for the file dependency graph."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FileCategory(str, Enum):
    """Coarse role of a file in the project."""

    ENTRY = "entry"
    CONFIG = "config"
    COMPONENT = "component"
    UTIL = "util"
    TEST = "test"
    API = "api"
    OTHER = "other"


class GraphNode(BaseModel):
    """One file's entry in the dependency graph."""

    path: str
    imports: list[str] = Field(default_factory=list)  # raw specifiers, unresolved
    imported_by: list[str] = Field(default_factory=list)  # resolved importer paths
    exports: list[str] = Field(default_factory=list)
    category: FileCategory = FileCategory.OTHER
    size: int = 0
    priority: int | None = None


class DependencyGraph(BaseModel):
    """Directed graph of resolved import relationships over a file set.

    ``files`` keeps insertion order, which is the tie-break for every
    priority-sorted view of the graph.
    """

    files: dict[str, GraphNode] = Field(default_factory=dict)
    entry_points: list[str] = Field(default_factory=list)
    config_files: list[str] = Field(default_factory=list)
    test_files: list[str] = Field(default_factory=list)
    api_files: list[str] = Field(default_factory=list)

    def get(self, path: str) -> GraphNode | None:
        return self.files.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)

    def add_node(self, node: GraphNode) -> None:
        """Register a node and file it under its category list."""
        self.files[node.path] = node
        if node.category == FileCategory.ENTRY:
            self.entry_points.append(node.path)
        elif node.category == FileCategory.CONFIG:
            self.config_files.append(node.path)
        elif node.category == FileCategory.TEST:
            self.test_files.append(node.path)
        elif node.category == FileCategory.API:
            self.api_files.append(node.path)

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-safe form for storage or cross-phase reuse."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DependencyGraph:
        return cls.model_validate(data)
