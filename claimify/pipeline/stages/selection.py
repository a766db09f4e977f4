"""Stage 1: Selection - Keep sentences that contain a specific, verifiable proposition.

Responsibilities:
- Classify each sentence (in the context of its excerpt and the query)
- Rewrite it down to its verifiable content, or mark it unchanged / None
- Fail closed: a failed call is treated as "no verifiable proposition"
"""

import structlog

from claimify.config.prompts import SELECTION_SYSTEM_PROMPT, SELECTION_USER_PROMPT
from claimify.llm.generator import StructuredGenerator
from claimify.models.enums import REWRITE_NONE, SelectionVerdict, error_marker
from claimify.models.records import SelectionOutput, SelectionRecord, SentenceContext
from claimify.models.slots import Artifact
from claimify.pipeline.step import GenerativeStep, StepTrace

logger = structlog.get_logger(__name__)


class SelectionStep(GenerativeStep[SentenceContext, SelectionRecord]):
    name = "selection"
    output_schema = SelectionOutput

    def build_prompt(self, record: SentenceContext) -> tuple[str, str]:
        return SELECTION_SYSTEM_PROMPT, SELECTION_USER_PROMPT.format(
            question=record.query,
            excerpt=record.excerpt,
            sentence=record.sentence,
        )

    def merge(self, record: SentenceContext, output: SelectionOutput) -> SelectionRecord:
        rewrite = output.sentence_with_only_verifiable_information.strip()
        if output.final_submission == SelectionVerdict.DOES_NOT_CONTAIN and rewrite != REWRITE_NONE:
            # Verdict wins over a stray rewrite
            logger.debug(
                "selection_rewrite_overridden",
                preview=record.sentence[:80],
                rewrite=rewrite[:80],
            )
            rewrite = REWRITE_NONE

        return SelectionRecord(
            sentence=record.sentence,
            query=record.query,
            excerpt=record.excerpt,
            verdict=output.final_submission,
            verifiable_rewrite=rewrite,
            model_sentence=output.sentence,
        )

    def sentinel(self, record: SentenceContext, error: str) -> SelectionRecord:
        return SelectionRecord(
            sentence=record.sentence,
            query=record.query,
            excerpt=record.excerpt,
            verdict=SelectionVerdict.DOES_NOT_CONTAIN,
            verifiable_rewrite=error_marker(error),
            model_sentence=error_marker(error),
            error=error,
        )


def select_sentences(
    contexts: Artifact[SentenceContext],
    generator: StructuredGenerator,
    max_concurrency: int = 1,
) -> tuple[Artifact[SelectionRecord], StepTrace]:
    """Run selection over every populated sentence context.

    Returns:
        Tuple of (selection artifact, step trace).
    """
    return SelectionStep(generator, max_concurrency=max_concurrency).run_traced(contexts)
