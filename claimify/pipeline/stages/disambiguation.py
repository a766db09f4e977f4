"""Stage 2: Disambiguation - Decontextualize each surviving sentence.

Responsibilities:
- Resolve partial names, acronyms and abbreviations from the query and excerpt
- Resolve referential and structural ambiguity, or declare it unresolvable
- Treat ``can_be_disambiguated`` as authoritative and flag disagreement with
  the "Cannot be decontextualized" text as a validation warning
"""

import structlog

from claimify.config.prompts import DISAMBIGUATION_SYSTEM_PROMPT, DISAMBIGUATION_USER_PROMPT
from claimify.llm.generator import StructuredGenerator
from claimify.models.enums import CANNOT_DECONTEXTUALIZE, error_marker
from claimify.models.records import DisambiguationOutput, DisambiguationRecord, SelectionRecord
from claimify.models.slots import Artifact
from claimify.pipeline.step import GenerativeStep, StepTrace

logger = structlog.get_logger(__name__)


def _consistency_warnings(record: DisambiguationRecord) -> list[str]:
    """Disagreements between the boolean and the sentinel text."""
    if record.can_be_disambiguated and record.has_cannot_decontextualize_marker:
        return [
            "can_be_disambiguated is true but decontextualized_sentence is "
            f"'{CANNOT_DECONTEXTUALIZE}'; sentence kept"
        ]
    if not record.can_be_disambiguated and not record.has_cannot_decontextualize_marker:
        return [
            "can_be_disambiguated is false but a decontextualized sentence was "
            "returned; sentence pruned"
        ]
    return []


class DisambiguationStep(GenerativeStep[SelectionRecord, DisambiguationRecord]):
    name = "disambiguation"
    output_schema = DisambiguationOutput

    def build_prompt(self, record: SelectionRecord) -> tuple[str, str]:
        return DISAMBIGUATION_SYSTEM_PROMPT, DISAMBIGUATION_USER_PROMPT.format(
            question=record.query,
            excerpt=record.excerpt,
            sentence=record.sentence_for_disambiguation,
        )

    def merge(self, record: SelectionRecord, output: DisambiguationOutput) -> DisambiguationRecord:
        result = DisambiguationRecord(
            sentence=record.sentence,
            query=record.query,
            excerpt=record.excerpt,
            incomplete_names_analysis=output.incomplete_names_analysis,
            linguistic_ambiguity_analysis=output.linguistic_ambiguity_analysis,
            can_be_disambiguated=output.can_be_disambiguated,
            changes_needed=output.changes_needed,
            decontextualized_sentence=output.decontextualized_sentence,
            selected_sentence=record.sentence_for_disambiguation,
        )

        warnings = _consistency_warnings(result)
        if warnings:
            logger.warning(
                "disambiguation_signals_disagree",
                preview=record.sentence[:80],
                can_be_disambiguated=result.can_be_disambiguated,
                decontextualized_sentence=result.decontextualized_sentence[:80],
            )
            result = result.model_copy(update={"validation_warnings": warnings})
        return result

    def sentinel(self, record: SelectionRecord, error: str) -> DisambiguationRecord:
        marker = error_marker(error)
        return DisambiguationRecord(
            sentence=record.sentence,
            query=record.query,
            excerpt=record.excerpt,
            incomplete_names_analysis=marker,
            linguistic_ambiguity_analysis=marker,
            can_be_disambiguated=False,
            changes_needed=marker,
            decontextualized_sentence=marker,
            selected_sentence=record.sentence_for_disambiguation,
            error=error,
        )


def disambiguate_sentences(
    selections: Artifact[SelectionRecord],
    generator: StructuredGenerator,
    max_concurrency: int = 1,
) -> tuple[Artifact[DisambiguationRecord], StepTrace]:
    """Run disambiguation over the filtered, re-windowed selection artifact.

    Returns:
        Tuple of (disambiguation artifact, step trace).
    """
    return DisambiguationStep(generator, max_concurrency=max_concurrency).run_traced(selections)
