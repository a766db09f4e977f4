"""Pipeline stages - each stage maps one slot-aligned artifact to the next.

Extraction: selection -> disambiguation -> decomposition
Evaluation: entailment, element extraction -> coverage
Comparison: single-turn baseline extraction
"""

from claimify.pipeline.stages.selection import SelectionStep, select_sentences
from claimify.pipeline.stages.disambiguation import DisambiguationStep, disambiguate_sentences
from claimify.pipeline.stages.decomposition import DecompositionStep, decompose_sentences
from claimify.pipeline.stages.entailment import EntailmentStep, evaluate_entailment
from claimify.pipeline.stages.elements import ElementExtractionStep, extract_elements
from claimify.pipeline.stages.coverage import CoverageStep, evaluate_coverage
from claimify.pipeline.stages.baseline import (
    baseline_to_decomposition,
    best_matching_sentence,
    extract_baseline_claims,
)

__all__ = [
    # Step classes
    "SelectionStep",
    "DisambiguationStep",
    "DecompositionStep",
    "EntailmentStep",
    "ElementExtractionStep",
    "CoverageStep",
    # Stage functions
    "select_sentences",
    "disambiguate_sentences",
    "decompose_sentences",
    "evaluate_entailment",
    "extract_elements",
    "evaluate_coverage",
    "extract_baseline_claims",
    "baseline_to_decomposition",
    "best_matching_sentence",
]
