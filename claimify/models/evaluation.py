"""Records and model output schemas for the evaluation stages.

Evaluation runs downstream of decomposition:
- Entailment         → EntailmentRecord (one evaluation per claim)
- Element extraction → ElementExtractionRecord
- Coverage           → CoverageRecord (five-way status + confusion counts)
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from claimify.models.enums import CoverageStatus, EntailmentConclusion, VerifiabilityClass
from claimify.models.records import StageRecord


# =============================================================================
# Entailment
# =============================================================================

class EntailmentOutput(BaseModel):
    """Model output for entailment of one claim by its sentence."""

    sentence_s: str = Field(..., description="The sentence of interest (S) exactly as written")
    context_description: str = Field(
        ..., description="Description of how S would be interpreted in context"
    )
    claim_c: str = Field(..., description="The claim (C) exactly as written")
    claim_interpretation: str = Field(..., description="How a reader would interpret the claim")
    elements_of_c: list[str] = Field(
        default_factory=list, description="All elements/components of claim C"
    )
    statements_and_actions_rule_applies: bool = Field(
        ..., description="Whether the Statements and Actions Rule applies to S"
    )
    statements_and_actions_rule_reasoning: str = Field(
        ..., description="Reasoning for whether the rule applies or qualifies as exception"
    )
    element_analysis: str = Field(..., description="Step-by-step reasoning for each element of C")
    final_conclusion: EntailmentConclusion = Field(..., description="Final entailment conclusion")


class ClaimEntailment(BaseModel):
    """Entailment verdict for a single claim."""

    model_config = ConfigDict(frozen=True)

    claim: str
    conclusion: EntailmentConclusion
    elements_of_claim: list[str] = Field(default_factory=list)
    statements_and_actions_rule_applies: bool = False
    statements_and_actions_rule_reasoning: str = ""
    context_description: str = ""
    claim_interpretation: str = ""
    element_analysis: str = ""
    error: Optional[str] = None

    @property
    def entailed(self) -> bool:
        return self.conclusion == EntailmentConclusion.ENTAILS

    @property
    def failed(self) -> bool:
        return self.error is not None


class EntailmentRecord(StageRecord):
    """Entailment verdicts for every claim decomposed from one sentence."""

    original_sentence: str = Field(default="", description="Source sentence from the document")
    claim_evaluations: list[ClaimEntailment] = Field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.error is not None or any(e.failed for e in self.claim_evaluations)


# =============================================================================
# Element extraction
# =============================================================================

class SentenceElement(BaseModel):
    """Most granular unit of information in a sentence."""

    model_config = ConfigDict(frozen=True)

    element: str = Field(..., description="The extracted element from the sentence")
    verifiability: VerifiabilityClass = Field(
        ..., description="Whether the element contains verifiable information"
    )

    @property
    def verifiable(self) -> bool:
        return self.verifiability == VerifiabilityClass.VERIFIABLE


class ElementExtractionOutput(BaseModel):
    """Model output for element extraction."""

    original_sentence: str = Field(..., description="The original sentence S, exactly as written")
    clarifications_needed: str = Field(
        ..., description="Whether clarifications are needed to understand S based on its context"
    )
    restated_sentence: str = Field(
        ..., description="S restated with clarifications if needed"
    )
    statements_and_actions_rule_applies: bool = Field(
        ..., description="Whether the Statements and Actions Rule applies"
    )
    statements_and_actions_rule_explanation: str = Field(
        ..., description="Why the Statements and Actions Rule does or doesn't apply"
    )
    elements: list[SentenceElement] = Field(
        default_factory=list,
        description="All elements extracted from the restated sentence with their verifiability",
    )


class ElementExtractionRecord(StageRecord):
    """Elements of one sentence plus the claims to score them against."""

    original_sentence: str = Field(default="", description="Source sentence from the document")
    clarifications_needed: str = ""
    restated_sentence: str = ""
    statements_and_actions_rule_applies: bool = False
    statements_and_actions_rule_explanation: str = ""
    elements: list[SentenceElement] = Field(default_factory=list)
    claims: list[str] = Field(default_factory=list)


# =============================================================================
# Coverage
# =============================================================================

class ElementCoverage(BaseModel):
    """Coverage status of one element."""

    model_config = ConfigDict(frozen=True)

    element: str = Field(..., description="The element being evaluated")
    coverage_status: CoverageStatus = Field(
        ..., description="Whether and how the element is covered by the claims"
    )
    reasoning: Optional[str] = Field(None, description="Reasoning for the coverage decision")


class CoverageMetrics(BaseModel):
    """2x2 confusion counts over verifiable-vs-covered."""

    model_config = ConfigDict(frozen=True)

    true_positives: int = Field(default=0, ge=0, description="Verifiable elements covered")
    false_negatives: int = Field(default=0, ge=0, description="Verifiable elements not covered")
    false_positives: int = Field(
        default=0, ge=0, description="Non-verifiable elements incorrectly covered"
    )
    true_negatives: int = Field(
        default=0, ge=0, description="Non-verifiable elements correctly not covered"
    )

    @property
    def total(self) -> int:
        return self.true_positives + self.false_negatives + self.false_positives + self.true_negatives


class CoverageOutput(BaseModel):
    """Model output for element coverage evaluation."""

    element_coverage_results: list[ElementCoverage] = Field(
        default_factory=list, description="Coverage evaluation for each element"
    )
    overall_summary: str = Field(..., description="Overall summary of the coverage evaluation")
    metrics: Optional[CoverageMetrics] = Field(None, description="Coverage metrics")


class CoverageRecord(StageRecord):
    """Coverage of one sentence's elements by its claims."""

    original_sentence: str = Field(default="", description="Source sentence from the document")
    claims: list[str] = Field(default_factory=list)
    elements: list[SentenceElement] = Field(default_factory=list)
    element_coverage_results: list[ElementCoverage] = Field(default_factory=list)
    overall_summary: str = ""
    metrics: CoverageMetrics = Field(default_factory=CoverageMetrics)
    reported_metrics: Optional[CoverageMetrics] = None


# =============================================================================
# Baseline single-turn extraction
# =============================================================================

class BaselineExtractionOutput(BaseModel):
    """Model output for whole-response claim extraction."""

    extracted_claims: list[str] = Field(
        default_factory=list,
        description="Decontextualized factual claims formatted as 'true or false?' questions",
    )


class BaselineClaim(BaseModel):
    """A baseline claim attributed to its best-matching sentence."""

    model_config = ConfigDict(frozen=True)

    claim: str
    sentence: str
    excerpt: str
    query: str
    filename: str
    sentence_index: int = Field(..., ge=0)
