"""Per-pass review context: token-budgeted file selection and code slicing.

Usage:
    from lampsreview.context import ContextBuilder

    builder = ContextBuilder(records, graph, cache)
    context = builder.build_architecture_context()
    print(context.summary())
"""

from lampsreview.context.budget import ContextBuilder
from lampsreview.context.models import (
    CodeSlice,
    ContextFile,
    ContextMetadata,
    ReviewContext,
    TokenEstimator,
    estimate_tokens,
)
from lampsreview.context.slices import SliceOptions, extract_slices, merge_slices

__all__ = [
    "CodeSlice",
    "ContextBuilder",
    "ContextFile",
    "ContextMetadata",
    "ReviewContext",
    "SliceOptions",
    "TokenEstimator",
    "estimate_tokens",
    "extract_slices",
    "merge_slices",
]
