"""Evaluation: Coverage - How well does the claim set express each element?

Responsibilities:
- Classify every element into one of five coverage states
- Derive the 2x2 confusion counts from those states (the model's own counts
  are kept as ``reported_metrics`` and disagreements are logged)
- Skip, without a generation call, sentences whose element extraction failed
"""

from typing import Sequence

import structlog

from claimify.config.prompts import COVERAGE_SYSTEM_PROMPT, COVERAGE_USER_PROMPT
from claimify.llm.generator import StructuredGenerator
from claimify.models.enums import SKIPPED_PREFIX, error_marker
from claimify.models.evaluation import (
    CoverageOutput,
    CoverageRecord,
    ElementExtractionRecord,
    SentenceElement,
)
from claimify.models.slots import Artifact
from claimify.pipeline.step import GenerativeStep, StepTrace
from claimify.processing.coverage_metrics import confusion_counts

logger = structlog.get_logger(__name__)


def format_claims(claims: Sequence[str]) -> str:
    """Numbered claim list, one per line."""
    return "\n".join(f"{i}. {claim}" for i, claim in enumerate(claims, start=1))


def format_elements(elements: Sequence[SentenceElement]) -> str:
    """Numbered element list with verifiability, one per line."""
    return "\n".join(
        f"{i}. {element.element} -> {element.verifiability.value}"
        for i, element in enumerate(elements, start=1)
    )


class CoverageStep(GenerativeStep[ElementExtractionRecord, CoverageRecord]):
    name = "coverage"
    output_schema = CoverageOutput

    def build_prompt(self, record: ElementExtractionRecord) -> tuple[str, str]:
        return COVERAGE_SYSTEM_PROMPT, COVERAGE_USER_PROMPT.format(
            question=record.query,
            excerpt=record.excerpt,
            claims=format_claims(record.claims),
            elements=format_elements(record.elements),
        )

    def process(self, record: ElementExtractionRecord) -> CoverageRecord:
        if record.failed:
            detail = f"element extraction failed - {record.error}"
            logger.warning("coverage_skipped", reason=detail, preview=record.sentence[:80])
            return CoverageRecord(
                sentence=record.sentence,
                original_sentence=record.original_sentence,
                query=record.query,
                excerpt=record.excerpt,
                claims=record.claims,
                elements=record.elements,
                overall_summary=f"{SKIPPED_PREFIX}{detail}",
                error=detail,
            )
        return super().process(record)

    def merge(self, record: ElementExtractionRecord, output: CoverageOutput) -> CoverageRecord:
        metrics = confusion_counts(output.element_coverage_results)

        if output.metrics is not None and output.metrics != metrics:
            logger.warning(
                "coverage_metrics_disagree",
                preview=record.sentence[:80],
                reported=output.metrics.model_dump(),
                derived=metrics.model_dump(),
            )
        if len(output.element_coverage_results) != len(record.elements):
            logger.warning(
                "coverage_element_count_mismatch",
                preview=record.sentence[:80],
                elements=len(record.elements),
                results=len(output.element_coverage_results),
            )

        return CoverageRecord(
            sentence=record.sentence,
            original_sentence=record.original_sentence,
            query=record.query,
            excerpt=record.excerpt,
            claims=record.claims,
            elements=record.elements,
            element_coverage_results=output.element_coverage_results,
            overall_summary=output.overall_summary,
            metrics=metrics,
            reported_metrics=output.metrics,
        )

    def sentinel(self, record: ElementExtractionRecord, error: str) -> CoverageRecord:
        return CoverageRecord(
            sentence=record.sentence,
            original_sentence=record.original_sentence,
            query=record.query,
            excerpt=record.excerpt,
            claims=record.claims,
            elements=record.elements,
            overall_summary=error_marker(error),
            error=error,
        )


def evaluate_coverage(
    element_extractions: Artifact[ElementExtractionRecord],
    generator: StructuredGenerator,
    max_concurrency: int = 1,
) -> tuple[Artifact[CoverageRecord], StepTrace]:
    """Evaluate element coverage for every extracted sentence.

    Returns:
        Tuple of (coverage artifact, step trace).
    """
    return CoverageStep(generator, max_concurrency=max_concurrency).run_traced(element_extractions)
