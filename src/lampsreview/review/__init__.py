"""Multi-pass AI review: prompts, response parsing, deduplication."""

from lampsreview.review.dedup import deduplicate_findings, normalize_message
from lampsreview.review.models import FileInclusion, PassResult, ReviewOutcome
from lampsreview.review.parsing import ParsedResponse, normalize_severity, parse_review_response
from lampsreview.review.passes import MultiPassReviewer, combine_summaries

__all__ = [
    "FileInclusion",
    "MultiPassReviewer",
    "ParsedResponse",
    "PassResult",
    "ReviewOutcome",
    "combine_summaries",
    "deduplicate_findings",
    "normalize_message",
    "normalize_severity",
    "parse_review_response",
]
