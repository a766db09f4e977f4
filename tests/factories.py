"""Generator double and canned model outputs shared by the tests."""

from typing import Callable

from pydantic import BaseModel

from claimify.llm.generator import GenerationError, StructuredGenerator
from claimify.models import (
    CoverageOutput,
    DecompositionOutput,
    DisambiguationOutput,
    ElementExtractionOutput,
    EntailmentOutput,
    SelectionOutput,
)


class ScriptedGenerator(StructuredGenerator):
    """Generator double driven by a responder ``(schema, user_prompt) -> output``.

    The responder may return a dict (validated against the schema), a schema
    instance, or an exception instance, which is raised. Every call is
    recorded in ``calls``.
    """

    def __init__(self, responder: Callable[[type, str], object]):
        self.responder = responder
        self.calls: list[dict] = []

    def generate(self, system_prompt: str, user_prompt: str, schema: type[BaseModel]):
        self.calls.append({"schema": schema, "system": system_prompt, "user": user_prompt})
        result = self.responder(schema, user_prompt)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, dict):
            return schema.model_validate(result)
        return result

    def calls_for(self, schema: type[BaseModel]) -> list[dict]:
        return [call for call in self.calls if call["schema"] is schema]


# =============================================================================
# Canned model outputs
# =============================================================================

def selection_output(sentence: str, verifiable: bool = True, rewrite: str = "remains unchanged") -> dict:
    if verifiable:
        return {
            "sentence": sentence,
            "final_submission": "Contains a specific and verifiable proposition",
            "sentence_with_only_verifiable_information": rewrite,
        }
    return {
        "sentence": sentence,
        "final_submission": "Does NOT contain a specific and verifiable proposition",
        "sentence_with_only_verifiable_information": "None",
    }


def disambiguation_output(decontextualized: str, can_be_disambiguated: bool = True) -> dict:
    return {
        "incomplete_names_analysis": "No partial names.",
        "linguistic_ambiguity_analysis": "No ambiguity.",
        "can_be_disambiguated": can_be_disambiguated,
        "changes_needed": "None.",
        "decontextualized_sentence": decontextualized,
    }


def decomposition_output(sentence: str, propositions: list[str]) -> dict:
    return {
        "sentence": sentence,
        "referential_terms_analysis": "No referential terms.",
        "max_clarified_sentence": sentence,
        "proposition_range": f"{len(propositions)} - {len(propositions)}",
        "specific_verifiable_propositions": propositions,
        "propositions_with_context": [f"{p} - true or false?" for p in propositions],
    }


def entailment_output(sentence: str, claim: str, entails: bool = True) -> dict:
    return {
        "sentence_s": sentence,
        "context_description": "Read in context.",
        "claim_c": claim,
        "claim_interpretation": "Literal.",
        "elements_of_c": [claim],
        "statements_and_actions_rule_applies": False,
        "statements_and_actions_rule_reasoning": "No attribution.",
        "element_analysis": "All elements present.",
        "final_conclusion": (
            "S entails all elements of C" if entails else "S does not entail all elements of C"
        ),
    }


def element_output(sentence: str, elements: list[tuple[str, str]]) -> dict:
    return {
        "original_sentence": sentence,
        "clarifications_needed": "No.",
        "restated_sentence": sentence,
        "statements_and_actions_rule_applies": False,
        "statements_and_actions_rule_explanation": "No attribution.",
        "elements": [{"element": e, "verifiability": v} for e, v in elements],
    }


def coverage_output(results: list[tuple[str, str]], metrics: dict | None = None) -> dict:
    return {
        "element_coverage_results": [
            {"element": e, "coverage_status": s, "reasoning": "checked"} for e, s in results
        ],
        "overall_summary": "Evaluated.",
        "metrics": metrics,
    }


def sentence_of(user_prompt: str) -> str:
    """Pull the sentence of interest back out of a rendered user prompt."""
    for marker in ("Sentence of interest:\n", "Sentence:\n"):
        if marker in user_prompt:
            return user_prompt.split(marker, 1)[1].split("\n\n", 1)[0].strip()
    return ""


UNVERIFIABLE = {"This is an impressive result.", "It remains an important topic."}


def happy_path_responder(schema: type, user_prompt: str) -> object:
    """Answer every stage plausibly; opinion/filler sentences are unverifiable."""
    sentence = sentence_of(user_prompt)

    if schema is SelectionOutput:
        return selection_output(sentence, verifiable=sentence not in UNVERIFIABLE)
    if schema is DisambiguationOutput:
        return disambiguation_output(sentence)
    if schema is DecompositionOutput:
        return decomposition_output(sentence, [sentence.rstrip(".")])
    if schema is EntailmentOutput:
        claim = user_prompt.split("Claim:\n", 1)[1].split("\n\n", 1)[0].strip()
        return entailment_output(sentence, claim)
    if schema is ElementExtractionOutput:
        return element_output(
            sentence,
            [(sentence.rstrip("."), "contains verifiable information")],
        )
    if schema is CoverageOutput:
        element = user_prompt.split("Elements (E):\n", 1)[1].split("\n")[0]
        element = element.split(". ", 1)[1].split(" -> ")[0]
        return coverage_output([(element, "fully covered by C")])
    return GenerationError(f"unexpected schema {schema.__name__}")
