"""Build a file dependency graph from scanned file records."""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Container, Iterable

import networkx as nx

from lampsreview.config import GraphConfig
from lampsreview.files import ContentCache, FileRecord
from lampsreview.graph.extract import PYTHON_EXTENSIONS, extract_exports, extract_imports
from lampsreview.graph.models import DependencyGraph, FileCategory, GraphNode

logger = logging.getLogger(__name__)

# Path patterns per category. Which category wins is decided by
# GraphConfig.category_precedence, not by the order of this mapping.
CATEGORY_PATTERNS: dict[FileCategory, tuple[re.Pattern[str], ...]] = {
    FileCategory.TEST: tuple(
        re.compile(p)
        for p in (
            r"\.test\.[jt]sx?$",
            r"\.spec\.[jt]sx?$",
            r"(?:^|/)__tests__/",
            r"\.test\.py$",
            r"(?:^|/)test_[^/]*\.py$",
            r"_test\.py$",
        )
    ),
    FileCategory.CONFIG: tuple(
        re.compile(p)
        for p in (
            r"\.config\.[jt]s$",
            r"\.config\.m?js$",
            r"^tsconfig.*\.json$",
            r"^package\.json$",
            r"^\.env\.example$",
            r"^(?:next|vite|webpack|tailwind|postcss|jest|vitest|eslint)\.config\.",
            r"^\.eslintrc",
            r"^\.prettierrc",
        )
    ),
    FileCategory.API: tuple(
        re.compile(p)
        for p in (
            r"(?:^|/)pages/api/",
            r"(?:^|/)app/api/",
            r"(?:^|/)routes/",
            r"(?:^|/)controllers?/",
            r"(?:^|/)endpoints?/",
            r"(?:^|/)api/",
        )
    ),
    FileCategory.ENTRY: tuple(
        re.compile(p)
        for p in (
            r"^(?:src/)?(?:index|main|app|server)\.(?:[jt]sx?|py)$",
            r"(?:^|/)pages/.*\.[jt]sx?$",
            r"(?:^|/)app/(?:.*/)?page\.[jt]sx?$",
            r"(?:^|/)routes/.*\.[jt]sx?$",
        )
    ),
    FileCategory.COMPONENT: (re.compile(r"(?:^|/)components?/"),),
    FileCategory.UTIL: (re.compile(r"(?:^|/)(?:utils?|helpers?|lib|services?)/"),),
}

# Suffixes tried, in order, after the exact match fails
RESOLVE_SUFFIXES = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    "/index.ts",
    "/index.tsx",
    "/index.js",
)
PYTHON_RESOLVE_SUFFIXES = (".py", "/__init__.py")


def resolve_import(
    specifier: str,
    from_file: str,
    known_paths: Container[str],
    python: bool = False,
) -> str | None:
    """Resolve an import specifier to a known relative path.

    Bare specifiers (packages) never resolve. Relative and absolute ones are
    joined onto the importer's directory and tried as-is, then with each of
    ``RESOLVE_SUFFIXES``, then without a leading ``./``.
    """
    if not specifier.startswith(".") and not specifier.startswith("/"):
        return None

    from_dir = posixpath.dirname(from_file)
    # Absolute specifiers are taken relative to the importer's directory too
    resolved = posixpath.normpath(posixpath.join(from_dir, specifier.lstrip("/")))

    if resolved in known_paths:
        return resolved

    for suffix in RESOLVE_SUFFIXES:
        if resolved + suffix in known_paths:
            return resolved + suffix

    if resolved.startswith("./"):
        resolved = resolved[2:]
    if resolved in known_paths:
        return resolved

    if python and specifier.startswith("."):
        return _resolve_python_relative(specifier, from_dir, known_paths)

    return None


def _resolve_python_relative(
    specifier: str, from_dir: str, known_paths: Container[str]
) -> str | None:
    """Resolve ``.mod`` / ``..pkg.mod`` style module names."""
    module = specifier.lstrip(".")
    dots = len(specifier) - len(module)
    prefix = "./" if dots == 1 else "../" * (dots - 1)
    base = posixpath.join(from_dir, prefix + module.replace(".", "/"))
    for suffix in PYTHON_RESOLVE_SUFFIXES:
        candidate = posixpath.normpath(base + suffix)
        if candidate in known_paths:
            return candidate
    return None


class GraphBuilder:
    """Builds the dependency graph for one review run.

    Besides the returned DependencyGraph (plain, serializable), the builder
    keeps ``self.graph``: a NetworkX DiGraph with one edge per resolved
    import, pointing from the importer to the imported file.
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        cache: ContentCache | None = None,
    ) -> None:
        self.config = config or GraphConfig()
        self.cache = cache if cache is not None else ContentCache()
        self.graph = nx.DiGraph()
        self._precedence = [FileCategory(c) for c in self.config.category_precedence]

    def build(self, records: Iterable[FileRecord]) -> DependencyGraph:
        """Build the graph: nodes and raw imports first, reverse edges second."""
        self.graph = nx.DiGraph()
        dep_graph = DependencyGraph()
        extensions: dict[str, str] = {}

        for record in records:
            content = self.cache.load(record)
            category = self.categorize(record.relative_path)

            node = GraphNode(
                path=record.relative_path,
                imports=extract_imports(content, record.extension) if content else [],
                exports=extract_exports(content, record.extension) if content else [],
                category=category,
                size=record.size,
            )
            dep_graph.add_node(node)
            extensions[record.relative_path] = record.extension
            self.graph.add_node(record.relative_path, category=category.value, size=record.size)

        for file_path, node in dep_graph.files.items():
            python = extensions.get(file_path) in PYTHON_EXTENSIONS
            for specifier in node.imports:
                target = resolve_import(specifier, file_path, dep_graph.files, python=python)
                if target is None:
                    continue
                imported = dep_graph.files[target]
                if file_path not in imported.imported_by:
                    imported.imported_by.append(file_path)
                self.graph.add_edge(file_path, target)

        logger.info(
            "Dependency graph: %d files, %d edges (%d entry points, %d configs, "
            "%d API routes, %d tests)",
            len(dep_graph),
            self.graph.number_of_edges(),
            len(dep_graph.entry_points),
            len(dep_graph.config_files),
            len(dep_graph.api_files),
            len(dep_graph.test_files),
        )
        return dep_graph

    def categorize(self, relative_path: str) -> FileCategory:
        """First category in precedence order whose patterns match."""
        for category in self._precedence:
            patterns = CATEGORY_PATTERNS.get(category, ())
            if any(p.search(relative_path) for p in patterns):
                return category
        return FileCategory.OTHER

    def find_cycles(self, limit: int = 20) -> list[list[str]]:
        """Import cycles among resolved edges, at most ``limit`` of them."""
        cycles: list[list[str]] = []
        for cycle in nx.simple_cycles(self.graph):
            cycles.append(cycle)
            if len(cycles) >= limit:
                break
        return cycles

    def get_stats(self) -> dict:
        """Get graph statistics."""
        categories: dict[str, int] = {}
        for _, data in self.graph.nodes(data=True):
            kind = data.get("category", "other")
            categories[kind] = categories.get(kind, 0) + 1

        return {
            "files": self.graph.number_of_nodes(),
            "edges": self.graph.number_of_edges(),
            "categories": categories,
            "isolated": sum(1 for _ in nx.isolates(self.graph)),
        }
