"""Coverage and entailment aggregation.

Per-sentence confusion counts are derived from the five-way coverage status;
run-level summaries fold those counts (and entailment verdicts) across every
populated slot of an artifact.
"""

from typing import Iterable

from pydantic import BaseModel, Field

from claimify.models.enums import CoverageStatus
from claimify.models.evaluation import CoverageMetrics, CoverageRecord, ElementCoverage, EntailmentRecord
from claimify.models.slots import Artifact, Populated

# Confusion-matrix cell for each coverage status
_STATUS_CELL = {
    CoverageStatus.FULLY_COVERED: "true_positives",
    CoverageStatus.PARTIALLY_COVERED: "false_negatives",
    CoverageStatus.NOT_COVERED: "false_negatives",
    CoverageStatus.INCORRECTLY_INCLUDED: "false_positives",
    CoverageStatus.CORRECTLY_EXCLUDED: "true_negatives",
}


def confusion_counts(results: Iterable[ElementCoverage]) -> CoverageMetrics:
    """Count true/false positives/negatives from element coverage statuses."""
    counts = dict.fromkeys(_STATUS_CELL.values(), 0)
    for result in results:
        counts[_STATUS_CELL[result.coverage_status]] += 1
    return CoverageMetrics(**counts)


def _ratio(numerator: int, denominator: int) -> float | None:
    return round(numerator / denominator, 4) if denominator else None


class CoverageSummary(BaseModel):
    """Run-level coverage totals."""

    sentences_evaluated: int = 0
    sentences_failed: int = 0
    elements: int = 0
    totals: CoverageMetrics = Field(default_factory=CoverageMetrics)
    precision: float | None = Field(None, description="TP / (TP + FP)")
    recall: float | None = Field(None, description="TP / (TP + FN)")
    f1: float | None = None
    failed_sentences: list[dict] = Field(default_factory=list)


class EntailmentSummary(BaseModel):
    """Run-level entailment totals."""

    sentences_evaluated: int = 0
    claims_evaluated: int = 0
    claims_entailed: int = 0
    claims_failed: int = 0
    entailment_rate: float | None = Field(None, description="Entailed / evaluated claims")


def summarize_coverage(artifact: Artifact[CoverageRecord]) -> CoverageSummary:
    """Aggregate coverage metrics over all populated, non-failed slots."""
    summary = CoverageSummary()
    tp = fn = fp = tn = 0

    for doc_idx, slots in enumerate(artifact):
        for sent_idx, slot in enumerate(slots):
            if not isinstance(slot, Populated):
                continue
            record = slot.record
            if record.failed:
                summary.sentences_failed += 1
                summary.failed_sentences.append(
                    {"doc_index": doc_idx, "sentence_index": sent_idx, "error": record.error}
                )
                continue

            summary.sentences_evaluated += 1
            summary.elements += len(record.element_coverage_results)
            tp += record.metrics.true_positives
            fn += record.metrics.false_negatives
            fp += record.metrics.false_positives
            tn += record.metrics.true_negatives

    summary.totals = CoverageMetrics(
        true_positives=tp, false_negatives=fn, false_positives=fp, true_negatives=tn
    )
    summary.precision = _ratio(tp, tp + fp)
    summary.recall = _ratio(tp, tp + fn)
    if summary.precision is not None and summary.recall is not None and (summary.precision + summary.recall):
        summary.f1 = round(2 * summary.precision * summary.recall / (summary.precision + summary.recall), 4)
    return summary


def summarize_entailment(artifact: Artifact[EntailmentRecord]) -> EntailmentSummary:
    """Count evaluated, entailed and failed claims across an entailment artifact."""
    summary = EntailmentSummary()

    for slots in artifact:
        for slot in slots:
            if not isinstance(slot, Populated):
                continue
            summary.sentences_evaluated += 1
            for evaluation in slot.record.claim_evaluations:
                summary.claims_evaluated += 1
                if evaluation.failed:
                    summary.claims_failed += 1
                elif evaluation.entailed:
                    summary.claims_entailed += 1

    summary.entailment_rate = _ratio(summary.claims_entailed, summary.claims_evaluated)
    return summary
