"""Excerpt windows around a target sentence."""

from typing import Sequence

from claimify.models.documents import Document
from claimify.models.records import SentenceContext
from claimify.models.slots import Artifact, Populated
from claimify.pipeline.alignment import check_alignment


def create_excerpt(sentences: Sequence[str], target_index: int, preceding: int, following: int) -> str:
    """Join ``preceding`` sentences before and ``following`` after the target.

    The window is clipped at document boundaries and always includes the
    target sentence itself.

    Args:
        sentences: Ordered sentences of one document.
        target_index: 0-based index of the sentence of interest.
        preceding: Number of sentences before the target (``p``).
        following: Number of sentences after the target (``f``).

    Returns:
        The window joined by single spaces.
    """
    start = max(0, target_index - max(preceding, 0))
    end = min(len(sentences), target_index + max(following, 0) + 1)
    return " ".join(sentences[start:end])


def build_sentence_contexts(
    documents: Sequence[Document],
    preceding: int,
    following: int,
) -> Artifact[SentenceContext]:
    """Produce the fully populated Selection input for every document."""
    return [
        [
            Populated(
                SentenceContext(
                    sentence=sentence,
                    query=document.query,
                    excerpt=create_excerpt(document.sentences, index, preceding, following),
                )
            )
            for index, sentence in enumerate(document.sentences)
        ]
        for document in documents
    ]


def rewindow(
    artifact: Artifact,
    documents: Sequence[Document],
    preceding: int,
    following: int,
    stage: str = "rewindow",
) -> Artifact:
    """Replace excerpt and query of every populated record from the source documents.

    Pruned slots pass through unchanged. Raises ``AlignmentError`` if the
    artifact does not line up with ``documents``.
    """
    check_alignment(documents, artifact, stage)

    return [
        [
            Populated(
                slot.record.model_copy(
                    update={
                        "query": document.query,
                        "excerpt": create_excerpt(document.sentences, index, preceding, following),
                    }
                )
            )
            if isinstance(slot, Populated)
            else slot
            for index, slot in enumerate(slots)
        ]
        for document, slots in zip(documents, artifact)
    ]
