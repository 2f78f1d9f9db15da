"""Tests for file collection, framework detection and static rules."""

from __future__ import annotations

import pytest

from lampsreview.config import ScanConfig
from lampsreview.detector import detect_frameworks
from lampsreview.exceptions import ScanError
from lampsreview.graph import GraphBuilder
from lampsreview.scanner import collect_files
from lampsreview.static import LARGE_FILE_BYTES, MAX_CYCLE_FINDINGS, run_static_rules


class TestCollectFiles:
    def test_collects_sorted_relative_paths(self, tmp_project):
        records = collect_files(tmp_project)
        assert [r.relative_path for r in records] == [
            "README.md",
            "package.json",
            "src/__tests__/session.test.ts",
            "src/auth/session.ts",
            "src/index.ts",
            "src/lib.ts",
            "src/routes/users.ts",
            "src/utils/format.ts",
            "tsconfig.json",
        ]

    def test_record_fields(self, tmp_project):
        record = next(r for r in collect_files(tmp_project) if r.relative_path == "src/lib.ts")
        assert record.extension == ".ts"
        assert record.size == (tmp_project / "src" / "lib.ts").stat().st_size
        assert record.path == str(tmp_project.resolve() / "src" / "lib.ts")
        assert record.content is None

    def test_gitignore_can_be_disabled(self, tmp_project):
        paths = {r.relative_path for r in collect_files(tmp_project, ScanConfig(use_gitignore=False))}
        assert "generated/bundle.js" in paths
        assert not any(p.startswith("node_modules/") for p in paths)

    def test_size_limit(self, tmp_project):
        (tmp_project / "src" / "huge.ts").write_text("x" * 3_000)
        paths = {r.relative_path for r in collect_files(tmp_project, ScanConfig(max_file_size_kb=2))}
        assert "src/huge.ts" not in paths
        assert "src/lib.ts" in paths

    def test_extension_allow_list(self, tmp_project):
        (tmp_project / "logo.png").write_bytes(b"\x89PNG")
        (tmp_project / ".env.example").write_text("JWT_SECRET=\n")
        paths = {r.relative_path for r in collect_files(tmp_project)}
        assert "logo.png" not in paths
        assert ".env.example" in paths

    def test_exclude_patterns_match_components(self, tmp_path):
        (tmp_path / "app.log").write_text("x")
        (tmp_path / "dist").mkdir()
        (tmp_path / "dist" / "out.js").write_text("x")
        (tmp_path / "main.ts").write_text("x")
        assert [r.relative_path for r in collect_files(tmp_path)] == ["main.ts"]

    def test_gitignore_comments_and_negations_are_skipped(self, tmp_path):
        (tmp_path / ".gitignore").write_text("# comment\n!keep.ts\n/tmp/\n")
        (tmp_path / "tmp").mkdir()
        (tmp_path / "tmp" / "a.ts").write_text("x")
        (tmp_path / "keep.ts").write_text("x")
        assert [r.relative_path for r in collect_files(tmp_path)] == ["keep.ts"]

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(ScanError):
            collect_files(tmp_path / "missing")


class TestDetectFrameworks:
    def test_project(self, project_records):
        detection = detect_frameworks(project_records)
        names = detection.framework_names
        assert "express" in names
        assert "typescript" in names
        assert detection.primary == "typescript"
        assert detection.languages[:2] == ["Markdown", "JSON"]
        assert "TypeScript" in detection.languages

    def test_react_inside_next_is_demoted(self, record_factory):
        manifest = record_factory(
            "package.json", '{"dependencies": {"next": "14.0.0", "react": "18.2.0"}}'
        )
        detection = detect_frameworks([manifest])
        confidences = {f.name: f.confidence for f in detection.frameworks}
        assert confidences == {"nextjs": 0.95, "react": 0.7}
        assert detection.primary == "nextjs"

    def test_python_manifest(self, record_factory):
        records = [
            record_factory("requirements.txt", "FastAPI==0.110\nuvicorn\n"),
            record_factory("app/main.py", "app = None\n"),
        ]
        names = detect_frameworks(records).framework_names
        assert names[:2] == ["python", "fastapi"]

    def test_invalid_package_json(self, record_factory):
        detection = detect_frameworks([record_factory("package.json", "{not json")])
        assert detection.frameworks == []
        assert detection.primary is None

    def test_empty(self):
        detection = detect_frameworks([])
        assert detection.frameworks == []
        assert detection.languages == []

    def test_fills_an_empty_shared_cache(self, project_records):
        from lampsreview.files import ContentCache

        cache = ContentCache()
        detect_frameworks(project_records, cache)
        assert "package.json" in cache


class TestStaticRules:
    def test_clean_project(self, project_records):
        builder = GraphBuilder()
        builder.build(project_records)
        assert run_static_rules(project_records, builder) == []

    def test_large_file(self, record_factory):
        record = record_factory("src/big.ts", "x")
        record = record.model_copy(update={"size": LARGE_FILE_BYTES + 10 * 1024})
        (finding,) = run_static_rules([record])
        assert finding.rule_id == "static/large-file"
        assert finding.severity.value == "warning"
        assert finding.message == "File is very large (510KB). Consider splitting it."

    @pytest.mark.parametrize(
        ("path", "flagged"),
        [
            ("src/utils/format.test.ts", True),
            ("src/__tests__/format.test.ts", False),
            ("packages/core/test/format.test.ts", False),
            ("packages/core/tests/format.test.ts", False),
            ("src/utils/format.ts", False),
        ],
    )
    def test_misplaced_test(self, record_factory, path, flagged):
        findings = run_static_rules([record_factory(path, "x")])
        assert [f.rule_id for f in findings] == (["static/misplaced-test"] if flagged else [])

    def test_import_cycle(self, record_factory):
        records = [
            record_factory("a.ts", 'import { b } from "./b";\n'),
            record_factory("b.ts", 'import { a } from "./a";\n'),
        ]
        builder = GraphBuilder()
        builder.build(records)
        (finding,) = run_static_rules(records, builder)
        assert finding.rule_id == "static/import-cycle"
        assert finding.severity.value == "info"
        assert finding.message in (
            "Circular import: a.ts -> b.ts -> a.ts",
            "Circular import: b.ts -> a.ts -> b.ts",
        )

    def test_cycles_are_capped(self, record_factory):
        records = []
        for i in range(MAX_CYCLE_FINDINGS + 5):
            records.append(record_factory(f"x{i}.ts", f'import "./y{i}";\nimport {{ y }} from "./y{i}";\n'))
            records.append(record_factory(f"y{i}.ts", f'import {{ x }} from "./x{i}";\n'))
        builder = GraphBuilder()
        builder.build(records)
        findings = run_static_rules(records, builder)
        assert len(findings) == MAX_CYCLE_FINDINGS
