"""Evaluation: Element extraction - Break a sentence into its most granular elements.

Each element is tagged as verifiable, not verifiable, or a generic statement.
The sentence's claims ride along so coverage can run from this artifact alone.
"""

from claimify.config.prompts import ELEMENT_EXTRACTION_SYSTEM_PROMPT, ELEMENT_EXTRACTION_USER_PROMPT
from claimify.llm.generator import StructuredGenerator
from claimify.models.enums import error_marker
from claimify.models.evaluation import ElementExtractionOutput, ElementExtractionRecord
from claimify.models.records import DecompositionRecord
from claimify.models.slots import Artifact
from claimify.pipeline.step import GenerativeStep, StepTrace


class ElementExtractionStep(GenerativeStep[DecompositionRecord, ElementExtractionRecord]):
    name = "element_extraction"
    output_schema = ElementExtractionOutput

    def build_prompt(self, record: DecompositionRecord) -> tuple[str, str]:
        return ELEMENT_EXTRACTION_SYSTEM_PROMPT, ELEMENT_EXTRACTION_USER_PROMPT.format(
            question=record.query,
            excerpt=record.excerpt,
            sentence=record.sentence,
        )

    def merge(self, record: DecompositionRecord, output: ElementExtractionOutput) -> ElementExtractionRecord:
        return ElementExtractionRecord(
            sentence=record.sentence,
            original_sentence=record.original_sentence,
            query=record.query,
            excerpt=record.excerpt,
            clarifications_needed=output.clarifications_needed,
            restated_sentence=output.restated_sentence,
            statements_and_actions_rule_applies=output.statements_and_actions_rule_applies,
            statements_and_actions_rule_explanation=output.statements_and_actions_rule_explanation,
            elements=output.elements,
            claims=record.propositions_with_context,
        )

    def sentinel(self, record: DecompositionRecord, error: str) -> ElementExtractionRecord:
        marker = error_marker(error)
        return ElementExtractionRecord(
            sentence=record.sentence,
            original_sentence=record.original_sentence,
            query=record.query,
            excerpt=record.excerpt,
            clarifications_needed=marker,
            restated_sentence=marker,
            statements_and_actions_rule_applies=False,
            statements_and_actions_rule_explanation=marker,
            elements=[],
            claims=record.propositions_with_context,
            error=error,
        )


def extract_elements(
    decompositions: Artifact[DecompositionRecord],
    generator: StructuredGenerator,
    max_concurrency: int = 1,
) -> tuple[Artifact[ElementExtractionRecord], StepTrace]:
    """Extract elements for every decomposed sentence.

    Returns:
        Tuple of (element extraction artifact, step trace).
    """
    return ElementExtractionStep(generator, max_concurrency=max_concurrency).run_traced(decompositions)
