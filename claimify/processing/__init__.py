"""Post-processing and aggregation of evaluation results."""

from .coverage_metrics import (
    CoverageSummary,
    EntailmentSummary,
    confusion_counts,
    summarize_coverage,
    summarize_entailment,
)

__all__ = [
    "CoverageSummary",
    "EntailmentSummary",
    "confusion_counts",
    "summarize_coverage",
    "summarize_entailment",
]
