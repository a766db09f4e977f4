"""Pydantic data models for the pipeline."""

from .enums import (
    CANNOT_DECONTEXTUALIZE,
    ERROR_PREFIX,
    REWRITE_NONE,
    REWRITE_UNCHANGED,
    SKIPPED_PREFIX,
    CoverageStatus,
    EntailmentConclusion,
    PruneReason,
    SelectionVerdict,
    VerifiabilityClass,
    error_marker,
    normalize_sentinel,
)
from .documents import Document, ExtractedClaim
from .slots import Artifact, DocumentSlots, Populated, Pruned, Slot, count_populated, populated_records
from .records import (
    ClarifiedSentence,
    DecompositionOutput,
    DecompositionRecord,
    DisambiguationOutput,
    DisambiguationRecord,
    SelectionOutput,
    SelectionRecord,
    SentenceContext,
    StageRecord,
)
from .evaluation import (
    BaselineClaim,
    BaselineExtractionOutput,
    ClaimEntailment,
    CoverageMetrics,
    CoverageOutput,
    CoverageRecord,
    ElementCoverage,
    ElementExtractionOutput,
    ElementExtractionRecord,
    EntailmentOutput,
    EntailmentRecord,
    SentenceElement,
)

__all__ = [
    # Enums and sentinels
    "SelectionVerdict",
    "VerifiabilityClass",
    "CoverageStatus",
    "EntailmentConclusion",
    "PruneReason",
    "REWRITE_UNCHANGED",
    "REWRITE_NONE",
    "CANNOT_DECONTEXTUALIZE",
    "ERROR_PREFIX",
    "SKIPPED_PREFIX",
    "error_marker",
    "normalize_sentinel",
    # Documents
    "Document",
    "ExtractedClaim",
    # Slots
    "Populated",
    "Pruned",
    "Slot",
    "DocumentSlots",
    "Artifact",
    "populated_records",
    "count_populated",
    # Extraction records
    "StageRecord",
    "SentenceContext",
    "SelectionOutput",
    "SelectionRecord",
    "DisambiguationOutput",
    "DisambiguationRecord",
    "DecompositionOutput",
    "DecompositionRecord",
    "ClarifiedSentence",
    # Evaluation records
    "EntailmentOutput",
    "ClaimEntailment",
    "EntailmentRecord",
    "SentenceElement",
    "ElementExtractionOutput",
    "ElementExtractionRecord",
    "ElementCoverage",
    "CoverageMetrics",
    "CoverageOutput",
    "CoverageRecord",
    "BaselineExtractionOutput",
    "BaselineClaim",
]
