"""Deterministic transforms between stages (no generation calls)."""

from typing import Sequence

import structlog

from claimify.models.documents import Document, ExtractedClaim
from claimify.models.enums import PruneReason, SelectionVerdict
from claimify.models.records import ClarifiedSentence, DecompositionRecord, SelectionRecord
from claimify.models.slots import Artifact, Populated
from claimify.pipeline.alignment import check_alignment, map_populated, prune_where

logger = structlog.get_logger(__name__)


def _lacks_verifiable_content(record: SelectionRecord) -> bool:
    # Verdict check also catches error sentinels, whose rewrite is an error marker
    return record.has_no_verifiable_content or record.verdict == SelectionVerdict.DOES_NOT_CONTAIN


def prune_unverifiable(selections: Artifact[SelectionRecord]) -> Artifact[SelectionRecord]:
    """Prune slots whose selection found no specific, verifiable proposition."""
    filtered = [
        prune_where(slots, _lacks_verifiable_content, PruneReason.NO_VERIFIABLE_CONTENT)
        for slots in selections
    ]
    logger.info(
        "selection_filter_complete",
        kept=sum(1 for slots in filtered for slot in slots if isinstance(slot, Populated)),
        before=sum(1 for slots in selections for slot in slots if isinstance(slot, Populated)),
    )
    return filtered


def flatten_claims(
    documents: Sequence[Document],
    decompositions: Artifact[DecompositionRecord],
) -> list[ExtractedClaim]:
    """List every decomposed claim in document, sentence, claim order."""
    check_alignment(documents, decompositions, "flatten_claims")

    claims = []
    for document, slots in zip(documents, decompositions):
        for sent_idx, slot in enumerate(slots):
            if not isinstance(slot, Populated):
                continue
            record = slot.record
            for claim_idx, (proposition, with_context) in enumerate(
                zip(record.propositions, record.propositions_with_context)
            ):
                claims.append(
                    ExtractedClaim(
                        claim_id=f"{document.filename}:{sent_idx}:{claim_idx}",
                        filename=document.filename,
                        sentence_index=sent_idx,
                        claim_index=claim_idx,
                        sentence=record.sentence,
                        original_sentence=record.original_sentence or record.sentence,
                        proposition=proposition,
                        proposition_with_context=with_context,
                    )
                )
    return claims


def project_clarified_sentences(
    decompositions: Artifact[DecompositionRecord],
) -> Artifact[ClarifiedSentence]:
    """Reduce each decomposition to its sentence and maximally clarified form."""
    return [
        map_populated(
            slots,
            lambda record: ClarifiedSentence(
                sentence=record.sentence,
                max_clarified_sentence=record.max_clarified_sentence,
            ),
        )
        for slots in decompositions
    ]
