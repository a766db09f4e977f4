"""Evaluation: Entailment - Does the sentence entail every element of each claim?

Each claim of a decomposed sentence is evaluated in its own generation call.
A failing claim gets its own fail-closed verdict; its siblings still run.
"""

import structlog

from claimify.config.prompts import ENTAILMENT_SYSTEM_PROMPT, ENTAILMENT_USER_PROMPT
from claimify.llm.generator import StructuredGenerator
from claimify.models.enums import EntailmentConclusion, error_marker
from claimify.models.evaluation import ClaimEntailment, EntailmentOutput, EntailmentRecord
from claimify.models.records import DecompositionRecord
from claimify.models.slots import Artifact
from claimify.pipeline.step import GenerativeStep, StepTrace

logger = structlog.get_logger(__name__)


def _failed_claim(claim: str, error: str) -> ClaimEntailment:
    marker = error_marker(error)
    return ClaimEntailment(
        claim=claim,
        conclusion=EntailmentConclusion.DOES_NOT_ENTAIL,
        statements_and_actions_rule_applies=False,
        statements_and_actions_rule_reasoning=marker,
        context_description=marker,
        claim_interpretation=marker,
        element_analysis=marker,
        error=error,
    )


class EntailmentStep(GenerativeStep[DecompositionRecord, EntailmentRecord]):
    name = "entailment"
    output_schema = EntailmentOutput

    def build_prompt(self, record: DecompositionRecord, claim: str = "") -> tuple[str, str]:
        return ENTAILMENT_SYSTEM_PROMPT, ENTAILMENT_USER_PROMPT.format(
            question=record.query,
            excerpt=record.excerpt,
            sentence=record.sentence,
            claim=claim,
        )

    def _evaluate_claim(self, record: DecompositionRecord, claim: str) -> ClaimEntailment:
        system_prompt, user_prompt = self.build_prompt(record, claim)
        try:
            output = self.generate(system_prompt, user_prompt, EntailmentOutput)
        except Exception as e:
            logger.error(
                "claim_entailment_failed",
                error=str(e),
                claim_preview=claim[:80],
            )
            return _failed_claim(claim, str(e))

        return ClaimEntailment(
            claim=claim,
            conclusion=output.final_conclusion,
            elements_of_claim=output.elements_of_c,
            statements_and_actions_rule_applies=output.statements_and_actions_rule_applies,
            statements_and_actions_rule_reasoning=output.statements_and_actions_rule_reasoning,
            context_description=output.context_description,
            claim_interpretation=output.claim_interpretation,
            element_analysis=output.element_analysis,
        )

    def process(self, record: DecompositionRecord) -> EntailmentRecord:
        evaluations = [self._evaluate_claim(record, claim) for claim in record.propositions_with_context]
        return self.merge(record, evaluations)

    def merge(self, record: DecompositionRecord, evaluations: list[ClaimEntailment]) -> EntailmentRecord:
        return EntailmentRecord(
            sentence=record.sentence,
            original_sentence=record.original_sentence,
            query=record.query,
            excerpt=record.excerpt,
            claim_evaluations=evaluations,
        )

    def sentinel(self, record: DecompositionRecord, error: str) -> EntailmentRecord:
        return EntailmentRecord(
            sentence=record.sentence,
            original_sentence=record.original_sentence,
            query=record.query,
            excerpt=record.excerpt,
            claim_evaluations=[_failed_claim(claim, error) for claim in record.propositions_with_context],
            error=error,
        )


def evaluate_entailment(
    decompositions: Artifact[DecompositionRecord],
    generator: StructuredGenerator,
    max_concurrency: int = 1,
) -> tuple[Artifact[EntailmentRecord], StepTrace]:
    """Evaluate every claim of every decomposed sentence.

    Returns:
        Tuple of (entailment artifact, step trace).
    """
    return EntailmentStep(generator, max_concurrency=max_concurrency).run_traced(decompositions)
