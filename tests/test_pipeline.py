"""End-to-end tests for the review pipeline."""

from __future__ import annotations

import asyncio
import json
import time

import pytest

from lampsreview.config import ReviewConfig
from lampsreview.exceptions import ScanError
from lampsreview.models import Finding, Severity
from lampsreview.pipeline import ReviewPipeline, ReviewReport, health_score, summarize
from lampsreview.review.models import PassResult

INJECTION = json.dumps(
    {
        "findings": [
            {
                "ruleId": "ai/security-injection",
                "severity": "error",
                "file": "src/routes/users.ts",
                "line": 8,
                "message": "SQL injection via req.params.id",
                "suggestion": "Use a parameterized query",
            }
        ],
        "summary": "User lookup concatenates request input into SQL.",
    }
)


def _finding(severity: Severity) -> Finding:
    return Finding(rule_id="x", severity=severity, file="f", message="m")


class TestHealthScore:
    def test_clean(self):
        assert health_score([]) == 100

    def test_weights(self):
        findings = [_finding(Severity.ERROR), _finding(Severity.WARNING), _finding(Severity.INFO), _finding(Severity.HINT)]
        assert health_score(findings) == 100 - 18

    def test_floor(self):
        assert health_score([_finding(Severity.ERROR)] * 20) == 0

    def test_summarize(self):
        summary = summarize([_finding(Severity.HINT)], [_finding(Severity.ERROR), _finding(Severity.ERROR)])
        assert summary.total_findings == 3
        assert summary.by_severity == {"error": 2, "warning": 0, "info": 0, "hint": 1}
        assert summary.by_source == {"static": 1, "ai": 2}
        assert summary.health_score == 79


class TestReviewPipeline:
    @pytest.mark.asyncio
    async def test_full_review(self, tmp_project, make_provider):
        provider = make_provider(replies=["", "", INJECTION])
        report = await ReviewPipeline(ReviewConfig(), provider=provider).run(tmp_project)

        assert report.files_analyzed == 9
        assert report.repository == str(tmp_project.resolve())
        assert report.model == "minimax/minimax-m2.1"
        assert [r.pass_type.value for r in report.pass_results] == ["architecture", "deep-dive", "security"]
        assert report.graph["edges"] == 8
        assert "express" in report.detection.framework_names

        (finding,) = report.findings
        assert finding.rule_id == "ai/security-injection"
        assert report.has_errors
        assert report.summary.health_score == 90
        assert "**security**: User lookup concatenates request input into SQL." in report.ai_summary

    @pytest.mark.asyncio
    async def test_static_findings_come_first(self, tmp_project, make_provider):
        (tmp_project / "src" / "utils" / "format.test.ts").write_text("test('x', () => {});\n")
        report = await ReviewPipeline(ReviewConfig(), provider=make_provider()).run(tmp_project)

        assert report.findings[0].rule_id == "static/misplaced-test"
        assert report.summary.by_source == {"static": 1, "ai": 0}
        assert not report.has_errors

    @pytest.mark.asyncio
    async def test_config_file_is_loaded(self, tmp_project, make_provider):
        (tmp_project / "lamps.config.json").write_text(json.dumps({"ai": {"model": "openai/gpt-4o"}}))
        report = await ReviewPipeline(provider=make_provider()).run(tmp_project)
        assert report.model == "openai/gpt-4o"

    @pytest.mark.asyncio
    async def test_missing_key_still_reports_static_results(self, tmp_project, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        report = await ReviewPipeline(ReviewConfig()).run(tmp_project)

        assert [f.rule_id for f in report.findings] == ["ai/no-api-key"]
        assert report.pass_results == []
        assert report.summary.health_score == 98
        assert not report.has_errors

    @pytest.mark.asyncio
    async def test_timeout(self, tmp_project, make_provider):
        class SlowProvider(make_provider):
            async def complete(self, messages, temperature=0.3, max_tokens=16384):
                await asyncio.sleep(5)
                return await super().complete(messages, temperature, max_tokens)

        config = ReviewConfig(timeout_seconds=0.05)
        with pytest.raises(asyncio.TimeoutError):
            await ReviewPipeline(config, provider=SlowProvider()).run(tmp_project)

    @pytest.mark.asyncio
    async def test_timeout_fires_during_repository_analysis(self, tmp_project, make_provider, monkeypatch):
        import lampsreview.pipeline as pipeline

        real_collect = pipeline.collect_files

        def slow_collect(root, config):
            time.sleep(0.5)
            return real_collect(root, config)

        monkeypatch.setattr(pipeline, "collect_files", slow_collect)
        config = ReviewConfig(timeout_seconds=0.05)

        started = time.monotonic()
        with pytest.raises(asyncio.TimeoutError):
            await ReviewPipeline(config, provider=make_provider()).run(tmp_project)
        assert time.monotonic() - started < 0.4

    @pytest.mark.asyncio
    async def test_one_content_cache_serves_every_stage(self, tmp_project, make_provider, monkeypatch):
        from lampsreview.context.budget import ContextBuilder
        from lampsreview.files import ContentCache

        caches: list[ContentCache] = []
        original_init = ContentCache.__init__

        def tracking_init(self):
            original_init(self)
            caches.append(self)

        monkeypatch.setattr(ContentCache, "__init__", tracking_init)

        context_caches = []
        original_build = ContextBuilder.build

        def tracking_build(self, *args, **kwargs):
            context_caches.append(self.cache)
            return original_build(self, *args, **kwargs)

        monkeypatch.setattr(ContextBuilder, "build", tracking_build)

        await ReviewPipeline(ReviewConfig(), provider=make_provider()).run(tmp_project)

        (cache,) = caches
        assert len(cache) == 9
        assert context_caches and all(c is cache for c in context_caches)

    @pytest.mark.asyncio
    async def test_not_a_directory(self, tmp_path, make_provider):
        with pytest.raises(ScanError):
            await ReviewPipeline(ReviewConfig(), provider=make_provider()).run(tmp_path / "missing")


class TestReviewReport:
    def test_json_round_trip(self):
        report = ReviewReport(
            timestamp="2026-01-01T00:00:00+00:00",
            repository="/repo",
            findings=[_finding(Severity.WARNING)],
            pass_results=[PassResult(pass_type="security", summary="ok")],
        )
        data = json.loads(report.to_json())
        assert data["version"] == "1.0.0"
        assert data["findings"][0]["severity"] == "warning"
        assert data["pass_results"][0]["pass_type"] == "security"
        assert ReviewReport.model_validate(data) == report
