"""lampsreview - context-curated, multi-pass AI code review."""

__version__ = "0.1.0"
