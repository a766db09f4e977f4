"""Claim-extraction pipeline - slot-aligned stages over tokenized responses.

Every artifact holds one slot list per document and one slot per original
sentence; a slot is either ``Populated(record)`` or ``Pruned(reason)``.

Usage:
    from claimify.pipeline.orchestrator import run_pipeline

    state = run_pipeline(documents, generator)
    print(f"Decomposed {len(flatten_claims(documents, state.decomposition))} claims")
"""

from claimify.pipeline.alignment import (
    AlignmentError,
    StructuralError,
    build_artifact,
    check_alignment,
    dump_artifact,
    map_populated,
    parse_documents,
    prune_where,
)
from claimify.pipeline.context import build_sentence_contexts, create_excerpt, rewindow
from claimify.pipeline.filters import flatten_claims, project_clarified_sentences, prune_unverifiable
from claimify.pipeline.step import GenerativeStep, StepTrace

__all__ = [
    # Alignment
    "StructuralError",
    "AlignmentError",
    "map_populated",
    "prune_where",
    "check_alignment",
    "parse_documents",
    "build_artifact",
    "dump_artifact",
    # Context windows
    "create_excerpt",
    "build_sentence_contexts",
    "rewindow",
    # Filters
    "prune_unverifiable",
    "flatten_claims",
    "project_clarified_sentences",
    # Generic step
    "GenerativeStep",
    "StepTrace",
]
