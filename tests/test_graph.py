"""Tests for the dependency graph: extraction, resolution, building, scoring."""

from __future__ import annotations

import pytest

from lampsreview.config import GraphConfig, ScoringWeights
from lampsreview.files import ContentCache
from lampsreview.graph import (
    DependencyGraph,
    FileCategory,
    GraphBuilder,
    GraphNode,
    rank_nodes,
    resolve_import,
    score_graph,
    score_node,
)
from lampsreview.graph.extract import extract_exports, extract_imports


class TestExtractImports:
    def test_static_dynamic_and_require(self):
        source = """import React, { useState } from "react";
import * as path from 'path';
import "./styles.css";
const lazy = import("./lazy");
const fs = require("fs");
"""
        imports = extract_imports(source, ".tsx")
        assert imports == ["react", "path", "./lazy", "fs"]

    def test_python_imports(self):
        source = "import os\nfrom .models import User\nfrom ..core import engine\n"
        assert extract_imports(source, ".py") == ["os", ".models", "..core"]

    def test_unknown_extension_has_no_imports(self):
        assert extract_imports('import x from "y"', ".md") == []


class TestExtractExports:
    def test_named_and_default(self):
        source = """export const a = 1;
export class Store {}
export interface Props {}
export default Store;
"""
        assert extract_exports(source, ".ts") == ["a", "Store", "Props", "default"]

    def test_export_list_with_alias(self):
        exports = extract_exports("export { a, b as c, };", ".js")
        assert exports == ["a", "c"]

    def test_python_public_top_level(self):
        source = "def run():\n    pass\n\nclass _Hidden:\n    pass\n\nasync def fetch():\n    pass\n"
        assert extract_exports(source, ".py") == ["run", "fetch"]


class TestResolveImport:
    KNOWN = {
        "src/index.ts",
        "src/lib.ts",
        "src/utils/index.ts",
        "src/components/Button.tsx",
        "config.json",
    }

    def test_bare_specifier_never_resolves(self):
        assert resolve_import("react", "src/index.ts", self.KNOWN) is None
        assert resolve_import("@scope/pkg", "src/index.ts", self.KNOWN) is None

    def test_suffix_resolution(self):
        assert resolve_import("./lib", "src/index.ts", self.KNOWN) == "src/lib.ts"
        assert resolve_import("./components/Button", "src/index.ts", self.KNOWN) == (
            "src/components/Button.tsx"
        )

    def test_directory_index(self):
        assert resolve_import("./utils", "src/index.ts", self.KNOWN) == "src/utils/index.ts"

    def test_parent_directory(self):
        assert resolve_import("../lib", "src/utils/index.ts", self.KNOWN) == "src/lib.ts"
        assert resolve_import("../config.json", "src/index.ts", self.KNOWN) == "config.json"

    def test_absolute_specifier_joins_importer_directory(self):
        assert resolve_import("/lib", "src/index.ts", self.KNOWN) == "src/lib.ts"
        assert resolve_import("/config.json", "config.json", self.KNOWN) == "config.json"

    def test_absolute_specifier_makes_an_edge(self, record_factory):
        records = [
            record_factory("src/index.ts", 'import { x } from "/lib";\n'),
            record_factory("src/lib.ts", "export const x = 1;\n"),
        ]
        graph = GraphBuilder().build(records)
        assert graph.get("src/lib.ts").imported_by == ["src/index.ts"]

    def test_unknown_target(self):
        assert resolve_import("./missing", "src/index.ts", self.KNOWN) is None

    def test_python_relative_module(self):
        known = {"pkg/__init__.py", "pkg/models.py", "pkg/sub/view.py"}
        assert resolve_import(".models", "pkg/api.py", known, python=True) == "pkg/models.py"
        assert resolve_import("..models", "pkg/sub/view.py", known, python=True) == "pkg/models.py"
        assert resolve_import(".", "pkg/models.py", known, python=True) == "pkg/__init__.py"


class TestGraphBuilder:
    def test_index_imports_lib(self, record_factory):
        records = [
            record_factory("index.ts", 'import { x } from "./lib";\n'),
            record_factory("lib.ts", "export const x = 1;\n"),
        ]
        graph = GraphBuilder().build(records)

        assert graph.get("index.ts").category == FileCategory.ENTRY
        assert graph.get("lib.ts").imported_by == ["index.ts"]
        assert graph.entry_points == ["index.ts"]

    def test_imported_by_is_backed_by_imports(self, project_graph: DependencyGraph):
        for target, node in project_graph.files.items():
            for importer in node.imported_by:
                resolved = {
                    resolve_import(spec, importer, project_graph.files)
                    for spec in project_graph.get(importer).imports
                }
                assert target in resolved

    def test_bare_specifier_makes_no_edge(self, project_records, content_cache):
        builder = GraphBuilder(cache=content_cache)
        graph = builder.build(project_records)

        assert "express" in graph.get("src/index.ts").imports
        assert all("express" not in edge for edge in builder.graph.edges)
        assert builder.graph.number_of_edges() == 8

    def test_categories(self, project_graph: DependencyGraph):
        categories = {path: node.category for path, node in project_graph.files.items()}
        assert categories["src/index.ts"] == FileCategory.ENTRY
        assert categories["src/routes/users.ts"] == FileCategory.API
        assert categories["src/utils/format.ts"] == FileCategory.UTIL
        assert categories["package.json"] == FileCategory.CONFIG
        assert categories["tsconfig.json"] == FileCategory.CONFIG
        assert categories["src/__tests__/session.test.ts"] == FileCategory.TEST
        assert categories["README.md"] == FileCategory.OTHER

    def test_test_category_beats_api_and_security(self):
        builder = GraphBuilder()
        assert builder.categorize("src/api/__tests__/auth.test.ts") == FileCategory.TEST

    def test_category_precedence_is_configurable(self):
        builder = GraphBuilder(GraphConfig(category_precedence=["api", "test"]))
        assert builder.categorize("src/api/__tests__/auth.test.ts") == FileCategory.API

    def test_imported_by_has_no_duplicates(self, record_factory):
        records = [
            record_factory("a.ts", 'import x from "./b";\nconst y = require("./b");\n'),
            record_factory("b.ts", "export default 1;\n"),
        ]
        graph = GraphBuilder().build(records)
        assert graph.get("b.ts").imported_by == ["a.ts"]
        assert graph.get("a.ts").imports == ["./b", "./b"]

    def test_unreadable_file_becomes_empty_node(self, tmp_path):
        from lampsreview.files import FileRecord

        record = FileRecord(
            path=str(tmp_path / "gone.ts"), relative_path="gone.ts", extension=".ts", size=10
        )
        graph = GraphBuilder().build([record])
        node = graph.get("gone.ts")
        assert node.imports == []
        assert node.exports == []

    def test_shared_cache_reads_each_file_once(self, project_records):
        cache = ContentCache()
        GraphBuilder(cache=cache).build(project_records)
        assert len(cache) == len(project_records)
        assert "src/lib.ts" in cache

    def test_find_cycles(self, record_factory):
        records = [
            record_factory("a.ts", 'import "./b";\nimport { c } from "./b";\n'),
            record_factory("b.ts", 'import { a } from "./a";\n'),
            record_factory("c.ts", "export const c = 1;\n"),
        ]
        builder = GraphBuilder()
        builder.build(records)
        cycles = builder.find_cycles()
        assert len(cycles) == 1
        assert sorted(cycles[0]) == ["a.ts", "b.ts"]

    def test_stats(self, project_records):
        builder = GraphBuilder()
        builder.build(project_records)
        stats = builder.get_stats()
        assert stats["files"] == len(project_records)
        assert stats["edges"] == 8
        assert stats["categories"]["config"] == 2

    def test_round_trip_dict(self, project_graph: DependencyGraph):
        restored = DependencyGraph.from_dict(project_graph.to_dict())
        assert restored == project_graph
        assert list(restored.files) == list(project_graph.files)


class TestScoring:
    def test_score_components(self):
        node = GraphNode(
            path="src/auth/login.ts",
            imports=["./a"],
            imported_by=["x.ts", "y.ts"],
            exports=["login", "logout"],
        )
        # 2 importers * 10 + 1 import * 2 + 2 exports * 3 + security 50
        assert score_node(node) == 78

    def test_caps(self):
        node = GraphNode(
            path="src/lib/big.ts",
            imports=[f"./m{i}" for i in range(50)],
            exports=[f"e{i}" for i in range(50)],
        )
        assert score_node(node) == 20 + 30

    def test_size_penalties(self):
        node = GraphNode(path="src/server.ts", category=FileCategory.ENTRY, size=150_000)
        assert score_node(node) == 100 - 20 - 30

    def test_never_negative(self):
        node = GraphNode(path="a.test.ts", category=FileCategory.TEST, size=500_000)
        assert score_node(node) == 0

    @pytest.mark.parametrize("category", list(FileCategory))
    @pytest.mark.parametrize("size", [0, 60_000, 200_000])
    def test_non_negative_for_all_categories(self, category, size):
        node = GraphNode(path="x/y.ts", category=category, size=size)
        assert score_node(node) >= 0

    def test_weights_are_tunable(self):
        node = GraphNode(path="src/index.ts", category=FileCategory.ENTRY)
        assert score_node(node, ScoringWeights(entry=5)) == 5

    def test_project_scores(self, project_graph: DependencyGraph):
        priorities = {path: node.priority for path, node in project_graph.files.items()}
        assert priorities["src/index.ts"] == 106
        assert priorities["src/routes/users.ts"] == 89
        assert priorities["src/auth/session.ts"] == 77
        assert priorities["src/utils/format.ts"] == 46
        assert all(p is not None and p >= 0 for p in priorities.values())

    def test_rank_excludes_and_keeps_insertion_order_on_ties(self):
        graph = DependencyGraph()
        for path in ("b.ts", "a.ts", "c.test.ts"):
            category = FileCategory.TEST if "test" in path else FileCategory.OTHER
            graph.add_node(GraphNode(path=path, category=category))
        score_graph(graph)

        ranked = rank_nodes(graph, exclude={FileCategory.TEST})
        assert [n.path for n in ranked] == ["b.ts", "a.ts"]
