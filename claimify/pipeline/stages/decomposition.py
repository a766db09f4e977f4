"""Stage 3: Decomposition - Split each decontextualized sentence into propositions.

Responsibilities:
- Prune sentences that cannot be disambiguated (no call is issued for them)
- Extract atomic, verifiable propositions, preserving attribution
- Produce the parallel "with essential context" phrasing, same count and order
"""

from claimify.config.prompts import DECOMPOSITION_SYSTEM_PROMPT, DECOMPOSITION_USER_PROMPT
from claimify.llm.generator import StructuredGenerator
from claimify.models.enums import PruneReason, error_marker
from claimify.models.records import DecompositionOutput, DecompositionRecord, DisambiguationRecord
from claimify.models.slots import Artifact
from claimify.pipeline.step import GenerativeStep, StepTrace


class DecompositionStep(GenerativeStep[DisambiguationRecord, DecompositionRecord]):
    name = "decomposition"
    output_schema = DecompositionOutput

    def should_prune(self, record: DisambiguationRecord) -> PruneReason | None:
        if not record.can_be_disambiguated:
            return PruneReason.NOT_DISAMBIGUATABLE
        return None

    def build_prompt(self, record: DisambiguationRecord) -> tuple[str, str]:
        return DECOMPOSITION_SYSTEM_PROMPT, DECOMPOSITION_USER_PROMPT.format(
            question=record.query,
            excerpt=record.excerpt,
            sentence=record.sentence_for_decomposition,
        )

    def merge(self, record: DisambiguationRecord, output: DecompositionOutput) -> DecompositionRecord:
        return DecompositionRecord(
            sentence=record.sentence_for_decomposition,
            original_sentence=record.sentence,
            query=record.query,
            excerpt=record.excerpt,
            referential_terms_analysis=output.referential_terms_analysis,
            max_clarified_sentence=output.max_clarified_sentence,
            proposition_range=output.proposition_range,
            propositions=output.specific_verifiable_propositions,
            propositions_with_context=output.propositions_with_context,
        )

    def sentinel(self, record: DisambiguationRecord, error: str) -> DecompositionRecord:
        marker = error_marker(error)
        return DecompositionRecord(
            sentence=record.sentence_for_decomposition,
            original_sentence=record.sentence,
            query=record.query,
            excerpt=record.excerpt,
            referential_terms_analysis=marker,
            max_clarified_sentence=marker,
            proposition_range=marker,
            propositions=[],
            propositions_with_context=[],
            error=error,
        )


def decompose_sentences(
    disambiguations: Artifact[DisambiguationRecord],
    generator: StructuredGenerator,
    max_concurrency: int = 1,
) -> tuple[Artifact[DecompositionRecord], StepTrace]:
    """Run decomposition, pruning sentences that cannot be disambiguated.

    Returns:
        Tuple of (decomposition artifact, step trace).
    """
    return DecompositionStep(generator, max_concurrency=max_concurrency).run_traced(disambiguations)
