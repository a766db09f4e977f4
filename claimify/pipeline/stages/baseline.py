"""Baseline: single-turn claim extraction for comparison with the staged pipeline.

One generation call per document over the whole response. Each claim is
attributed to the sentence sharing the most words with it, so baseline claims
can be regrouped into a slot-aligned artifact and scored by the same
evaluation stages.
"""

import time
from typing import Sequence

import structlog

from claimify.config.prompts import BASELINE_SYSTEM_PROMPT, BASELINE_USER_PROMPT
from claimify.llm.generator import StructuredGenerator
from claimify.models.documents import Document
from claimify.models.enums import PruneReason
from claimify.models.evaluation import BaselineClaim, BaselineExtractionOutput
from claimify.models.records import DecompositionRecord
from claimify.models.slots import Artifact, DocumentSlots, Populated, Pruned
from claimify.pipeline.alignment import AlignmentError
from claimify.pipeline.context import create_excerpt
from claimify.pipeline.step import StepTrace

logger = structlog.get_logger(__name__)


def word_overlap(claim: str, sentence: str) -> int:
    """Number of claim words that contain, or are contained in, a sentence word."""
    sentence_words = sentence.lower().split()
    return sum(
        1
        for word in claim.lower().split()
        if any(word in sent_word or sent_word in word for sent_word in sentence_words)
    )


def best_matching_sentence(claim: str, sentences: Sequence[str]) -> int:
    """Index of the sentence with the highest word overlap (first wins ties, default 0)."""
    best_index = 0
    max_overlap = 0
    for index, sentence in enumerate(sentences):
        overlap = word_overlap(claim, sentence)
        if overlap > max_overlap:
            max_overlap = overlap
            best_index = index
    return best_index


def _extract_document_claims(
    document: Document,
    generator: StructuredGenerator,
    preceding: int,
    following: int,
) -> list[BaselineClaim]:
    output = generator.generate(
        BASELINE_SYSTEM_PROMPT,
        BASELINE_USER_PROMPT.format(question=document.query, response=document.response),
        BaselineExtractionOutput,
    )

    claims = []
    for claim in output.extracted_claims:
        if not document.sentences:
            break
        index = best_matching_sentence(claim, document.sentences)
        claims.append(
            BaselineClaim(
                claim=claim,
                sentence=document.sentences[index],
                excerpt=create_excerpt(document.sentences, index, preceding, following),
                query=document.query,
                filename=document.filename,
                sentence_index=index,
            )
        )
    return claims


def extract_baseline_claims(
    documents: Sequence[Document],
    generator: StructuredGenerator,
    preceding: int = 5,
    following: int = 5,
) -> tuple[list[list[BaselineClaim]], StepTrace]:
    """Extract a flat claim list per document in one call each.

    A failing document yields an empty claim list; the run continues.

    Returns:
        Tuple of (claims per document, step trace).
    """
    start_time = time.perf_counter()
    trace = StepTrace(stage="baseline", documents=len(documents))
    results: list[list[BaselineClaim]] = []

    logger.info("baseline_stage_start", documents=len(documents))

    for doc_idx, document in enumerate(documents):
        trace.slots_total += document.sentence_count
        trace.processed += 1
        trace.llm_calls += 1
        try:
            claims = _extract_document_claims(document, generator, preceding, following)
        except Exception as e:
            logger.error(
                "baseline_extraction_failed",
                doc_index=doc_idx,
                filename=document.filename,
                error=str(e),
            )
            trace.failed += 1
            trace.failures.append({"doc_index": doc_idx, "error": str(e)})
            claims = []

        logger.debug("baseline_document_complete", doc_index=doc_idx, claims=len(claims))
        results.append(claims)

    trace.duration_seconds = round(time.perf_counter() - start_time, 3)
    logger.info(
        "baseline_stage_complete",
        claims=sum(len(claims) for claims in results),
        failed=trace.failed,
        duration_seconds=trace.duration_seconds,
    )
    return results, trace


def baseline_to_decomposition(
    documents: Sequence[Document],
    baseline: Sequence[Sequence[BaselineClaim]],
) -> Artifact[DecompositionRecord]:
    """Regroup baseline claims by sentence into a slot-aligned decomposition artifact.

    Sentences without any attributed claim are pruned.

    Raises:
        AlignmentError: If there is not one claim list per document.
    """
    if len(baseline) != len(documents):
        raise AlignmentError(
            f"baseline: expected {len(documents)} claim lists, got {len(baseline)}"
        )

    artifact: Artifact[DecompositionRecord] = []
    for document, claims in zip(documents, baseline):
        by_sentence: dict[int, list[BaselineClaim]] = {}
        for claim in claims:
            by_sentence.setdefault(claim.sentence_index, []).append(claim)

        slots: DocumentSlots[DecompositionRecord] = []
        for index, sentence in enumerate(document.sentences):
            grouped = by_sentence.get(index)
            if not grouped:
                slots.append(Pruned(PruneReason.NO_BASELINE_CLAIMS))
                continue
            texts = [claim.claim for claim in grouped]
            slots.append(
                Populated(
                    DecompositionRecord(
                        sentence=sentence,
                        original_sentence=sentence,
                        query=document.query,
                        excerpt=grouped[0].excerpt,
                        propositions=texts,
                        propositions_with_context=texts,
                    )
                )
            )
        artifact.append(slots)
    return artifact
