"""Multi-pass AI review: architecture, then deep-dive, then security.

Each pass builds its own token-budgeted context, makes one chat exchange
with the provider and parses the reply. Findings of all passes are
deduplicated at the end.
"""

from __future__ import annotations

import logging
import time

from lampsreview.config import ReviewConfig
from lampsreview.context.budget import ContextBuilder
from lampsreview.context.models import ReviewContext
from lampsreview.exceptions import LLMError
from lampsreview.files import ContentCache, FileRecord
from lampsreview.graph.models import DependencyGraph
from lampsreview.llm.base import LLMProvider
from lampsreview.models import PASS_ORDER, DetectionResult, Finding, Severity
from lampsreview.review.dedup import deduplicate_findings
from lampsreview.review.models import FileInclusion, PassResult, ReviewOutcome
from lampsreview.review.parsing import parse_review_response
from lampsreview.review.prompts import PASS_SYSTEM_PROMPTS, build_pass_prompt

logger = logging.getLogger(__name__)

ARCHITECTURE_RULE_PREFIX = "ai/arch"


class MultiPassReviewer:
    """Runs the three review passes against one provider.

    Args:
        config: Full review configuration; ``ai`` and ``budget`` are used.
        provider: Injected provider. When omitted one is created from
            ``config.ai`` after the credential check.
    """

    def __init__(self, config: ReviewConfig | None = None, provider: LLMProvider | None = None) -> None:
        self.config = config or ReviewConfig()
        self.provider = provider

    async def run(
        self,
        records: list[FileRecord],
        graph: DependencyGraph,
        static_findings: list[Finding] | None = None,
        detection: DetectionResult | None = None,
        cache: ContentCache | None = None,
    ) -> ReviewOutcome:
        started = time.monotonic()
        ai = self.config.ai
        static_findings = static_findings or []

        provider = self.provider
        if provider is None:
            if ai.provider != "local" and not ai.api_key:
                env_var = ai.api_key_var or "API key"
                logger.warning("%s not set - skipping AI analysis", env_var)
                return ReviewOutcome(
                    findings=[
                        Finding(
                            rule_id="ai/no-api-key",
                            severity=Severity.INFO,
                            file="",
                            message=f"AI analysis skipped: {env_var} environment variable not set",
                        )
                    ],
                    model=ai.model,
                    skipped=True,
                    skip_reason="no-api-key",
                )
            from lampsreview.llm.factory import create_provider

            try:
                provider = create_provider(ai)
            except (LLMError, ValueError) as e:
                logger.warning("AI analysis failed: %s", e)
                return ReviewOutcome(findings=[_error_finding(str(e))], model=ai.model)

        if not records:
            logger.warning("No files to analyze")
            return ReviewOutcome(model=ai.model, skipped=True, skip_reason="no-files")

        logger.info("AI analysis (multi-pass), model %s, %d files", ai.model, len(records))
        logger.info(
            "Dependency graph: %d entry points, %d configs, %d API routes",
            len(graph.entry_points),
            len(graph.config_files),
            len(graph.api_files),
        )
        if static_findings:
            logger.info("Static findings to incorporate: %d", len(static_findings))

        builder = ContextBuilder(records, graph, cache=cache, config=self.config.budget, detection=detection)

        results: list[PassResult] = []
        all_findings: list[Finding] = []
        aborted: Finding | None = None

        for index, pass_type in enumerate(PASS_ORDER, start=1):
            logger.info("Pass %d/%d: %s review", index, len(PASS_ORDER), pass_type.value)
            architecture_findings = [f for f in all_findings if f.rule_id.startswith(ARCHITECTURE_RULE_PREFIX)]
            context = builder.build(pass_type, static_findings, architecture_findings)

            try:
                result = await self.run_pass(context, provider)
            except LLMError as e:
                message = getattr(e, "message", None) or str(e) or "Unknown error during AI analysis"
                logger.warning("AI analysis failed during %s pass: %s", pass_type.value, message)
                error = _error_finding(message)
                result = PassResult(
                    pass_type=pass_type,
                    findings=[error],
                    summary=f"AI analysis failed: {message}",
                    files=_inclusions(context),
                    token_estimate=context.metadata.total_token_estimate,
                    error=message,
                )
                if not self.config.ai.isolate_pass_failures:
                    results.append(result)
                    aborted = error
                    break

            results.append(result)
            all_findings.extend(result.findings)
            logger.info("%s: %d findings", pass_type.value, len(result.findings))

        if aborted is not None:
            findings = [aborted]
        else:
            findings = deduplicate_findings(all_findings)
            if len(findings) != len(all_findings):
                logger.info("Deduplicated: %d -> %d findings", len(all_findings), len(findings))

        duration = time.monotonic() - started
        logger.info("AI analysis complete in %.1fs", duration)

        return ReviewOutcome(
            findings=findings,
            pass_results=results,
            summary=combine_summaries(results),
            model=ai.model,
            files_analyzed=len(records),
            raw_finding_count=len(all_findings),
            duration_seconds=duration,
        )

    async def run_pass(self, context: ReviewContext, provider: LLMProvider) -> PassResult:
        """One exchange for one pass. Provider errors propagate."""
        pass_type = context.pass_type
        files = _inclusions(context)
        logger.info(context.summary())

        if not context.files:
            logger.warning("No relevant files for %s review", pass_type.value)
            return PassResult(
                pass_type=pass_type,
                summary=f"No relevant files for {pass_type.value} review",
                skipped=True,
            )

        system_prompt = PASS_SYSTEM_PROMPTS[pass_type]
        user_prompt = build_pass_prompt(context, self.config.ai.custom_prompt)

        started = time.monotonic()
        response = await provider.chat(
            system_prompt,
            user_prompt,
            max_tokens=self.config.ai.max_tokens,
            temperature=self.config.ai.temperature,
        )
        duration = time.monotonic() - started
        logger.debug("AI responded in %.1fs", duration)

        parsed = parse_review_response(response.content)
        return PassResult(
            pass_type=pass_type,
            findings=parsed.findings,
            summary=parsed.summary,
            files=files,
            token_estimate=context.metadata.total_token_estimate,
            usage=response.usage,
            duration_seconds=duration,
        )


def combine_summaries(results: list[PassResult]) -> str:
    return "\n\n".join(f"**{r.pass_type.value}**: {r.summary}" for r in results)


def _inclusions(context: ReviewContext) -> list[FileInclusion]:
    return [
        FileInclusion(
            path=f.path,
            reason=f.reason,
            sliced=f.is_sliced,
            char_count=f.char_count,
            token_estimate=f.token_estimate,
        )
        for f in context.files
    ]


def _error_finding(message: str) -> Finding:
    return Finding(
        rule_id="ai/error",
        severity=Severity.WARNING,
        file="",
        message=f"AI analysis failed: {message}",
    )

