"""Per-sentence records and model output schemas for the extraction stages.

Stage Flow:
1. Context window     → SentenceContext
2. Selection          → SelectionRecord      (prune: no verifiable content)
3. Disambiguation     → DisambiguationRecord (prune: cannot be disambiguated)
4. Decomposition      → DecompositionRecord

``*Output`` classes are the schemas handed to the generation capability;
``*Record`` classes are what the stage stores in a slot (model output merged
with the fields carried over from the previous stage).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from claimify.models.enums import (
    CANNOT_DECONTEXTUALIZE,
    REWRITE_NONE,
    REWRITE_UNCHANGED,
    SelectionVerdict,
    normalize_sentinel,
)


class StageRecord(BaseModel):
    """Base for slot records: immutable, carries query and excerpt."""

    model_config = ConfigDict(frozen=True)

    sentence: str = Field(..., description="Sentence this record describes")
    query: str = Field(default="", description="Question the response answers")
    excerpt: str = Field(default="", description="Context window around the sentence")
    error: Optional[str] = Field(
        None, description="Generation failure detail; set only on sentinel records"
    )

    @property
    def failed(self) -> bool:
        return self.error is not None


# =============================================================================
# Stage 0: Context window
# =============================================================================

class SentenceContext(StageRecord):
    """Sentence with its excerpt, the input of Selection."""


# =============================================================================
# Stage 1: Selection
# =============================================================================

class SelectionOutput(BaseModel):
    """Model output for the selection stage."""

    sentence: str = Field(..., description="The original sentence unchanged")
    final_submission: SelectionVerdict = Field(
        ...,
        description=(
            '"Contains a specific and verifiable proposition" or '
            '"Does NOT contain a specific and verifiable proposition"'
        ),
    )
    sentence_with_only_verifiable_information: str = Field(
        ...,
        description=(
            "The changed sentence, OR 'remains unchanged' if no changes are needed, "
            "OR 'None' if the sentence does NOT contain a specific and verifiable proposition"
        ),
    )


class SelectionRecord(StageRecord):
    """Selection verdict for one sentence."""

    verdict: SelectionVerdict
    verifiable_rewrite: str = Field(
        ..., description="Rewrite, 'remains unchanged', or 'None'"
    )
    model_sentence: Optional[str] = Field(
        None, description="Sentence as echoed back by the model"
    )

    @property
    def is_unchanged(self) -> bool:
        return normalize_sentinel(self.verifiable_rewrite) in (
            normalize_sentinel(REWRITE_UNCHANGED),
            "unchanged",
        )

    @property
    def has_no_verifiable_content(self) -> bool:
        return normalize_sentinel(self.verifiable_rewrite) == normalize_sentinel(REWRITE_NONE)

    @property
    def sentence_for_disambiguation(self) -> str:
        """The rewrite, or the original sentence when no rewrite was needed."""
        return self.sentence if self.is_unchanged else self.verifiable_rewrite


# =============================================================================
# Stage 2: Disambiguation
# =============================================================================

class DisambiguationOutput(BaseModel):
    """Model output for the disambiguation stage."""

    incomplete_names_analysis: str = Field(
        ..., description="Analysis of partial names, acronyms, and abbreviations in the sentence"
    )
    linguistic_ambiguity_analysis: str = Field(
        ..., description="Analysis of referential and structural ambiguity in the sentence"
    )
    can_be_disambiguated: bool = Field(
        ..., description="Whether readers would likely reach consensus on the correct interpretation"
    )
    changes_needed: str = Field(
        ..., description="List of changes needed to decontextualize the sentence"
    )
    decontextualized_sentence: str = Field(
        ..., description="The final decontextualized sentence or 'Cannot be decontextualized'"
    )


class DisambiguationRecord(StageRecord):
    """Disambiguation result; ``can_be_disambiguated`` is authoritative."""

    incomplete_names_analysis: str = ""
    linguistic_ambiguity_analysis: str = ""
    can_be_disambiguated: bool
    changes_needed: str = ""
    decontextualized_sentence: str
    selected_sentence: Optional[str] = Field(
        None, description="Sentence that was disambiguated: the selection rewrite or the original"
    )
    validation_warnings: list[str] = Field(default_factory=list)

    @property
    def has_cannot_decontextualize_marker(self) -> bool:
        return normalize_sentinel(self.decontextualized_sentence) == normalize_sentinel(
            CANNOT_DECONTEXTUALIZE
        )

    @property
    def sentence_for_decomposition(self) -> str:
        """Decontextualized sentence, or the disambiguated input if only the marker came back."""
        if self.has_cannot_decontextualize_marker:
            return self.selected_sentence or self.sentence
        return self.decontextualized_sentence


# =============================================================================
# Stage 3: Decomposition
# =============================================================================

class DecompositionOutput(BaseModel):
    """Model output for the decomposition stage."""

    sentence: str = Field(..., description="The original sentence being decomposed")
    referential_terms_analysis: str = Field(
        ..., description="Analysis of referential terms that need clarification"
    )
    max_clarified_sentence: str = Field(
        ..., description="Sentence with discrete units of information and clarified referents"
    )
    proposition_range: str = Field(
        ..., description="Range of possible number of propositions (e.g., '3 - 4')"
    )
    specific_verifiable_propositions: list[str] = Field(
        default_factory=list,
        description="Specific, verifiable, and decontextualized propositions",
    )
    propositions_with_context: list[str] = Field(
        default_factory=list,
        description="The same propositions with essential context and ' - true or false?' suffix",
    )

    @model_validator(mode="after")
    def _parallel_lists(self) -> "DecompositionOutput":
        if len(self.specific_verifiable_propositions) != len(self.propositions_with_context):
            raise ValueError(
                "specific_verifiable_propositions and propositions_with_context differ in length "
                f"({len(self.specific_verifiable_propositions)} != {len(self.propositions_with_context)})"
            )
        return self


class DecompositionRecord(StageRecord):
    """Propositions decomposed from one decontextualized sentence."""

    original_sentence: str = Field(default="", description="Source sentence from the document")
    referential_terms_analysis: str = ""
    max_clarified_sentence: str = ""
    proposition_range: str = ""
    propositions: list[str] = Field(default_factory=list)
    propositions_with_context: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _parallel_lists(self) -> "DecompositionRecord":
        if len(self.propositions) != len(self.propositions_with_context):
            raise ValueError("propositions and propositions_with_context differ in length")
        return self


class ClarifiedSentence(BaseModel):
    """Projection of a decomposition record used for coverage inspection."""

    model_config = ConfigDict(frozen=True)

    sentence: str
    max_clarified_sentence: str
