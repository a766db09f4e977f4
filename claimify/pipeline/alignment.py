"""Slot alignment: positional combinators and artifact construction.

Every stage artifact is a list (one per document) of slot lists (one per
original sentence). The helpers here never change list lengths or order;
``check_alignment`` and ``build_artifact`` reject anything that would.
"""

from typing import Any, Callable, Sequence, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from claimify.models.documents import Document
from claimify.models.enums import PruneReason
from claimify.models.slots import Artifact, DocumentSlots, Populated, Pruned

logger = structlog.get_logger(__name__)

InT = TypeVar("InT")
OutT = TypeVar("OutT")
RecordModelT = TypeVar("RecordModelT", bound=BaseModel)


class StructuralError(Exception):
    """Input cannot be trusted to be positionally aligned; the stage run aborts."""

    pass


class AlignmentError(StructuralError):
    """Slot counts do not match the source documents."""

    pass


# =============================================================================
# Combinators
# =============================================================================

def map_populated(slots: DocumentSlots[InT], fn: Callable[[InT], OutT]) -> DocumentSlots[OutT]:
    """Apply ``fn`` to every populated record; pruned slots pass through."""
    return [Populated(fn(slot.record)) if isinstance(slot, Populated) else slot for slot in slots]


def prune_where(
    slots: DocumentSlots[InT],
    predicate: Callable[[InT], bool],
    reason: PruneReason,
) -> DocumentSlots[InT]:
    """Turn populated slots whose record matches ``predicate`` into ``Pruned(reason)``."""
    return [
        Pruned(reason) if isinstance(slot, Populated) and predicate(slot.record) else slot
        for slot in slots
    ]


def check_alignment(documents: Sequence[Document], artifact: Artifact, stage: str) -> None:
    """Verify one slot list per document and one slot per sentence.

    Raises:
        AlignmentError: On any count mismatch.
    """
    if len(artifact) != len(documents):
        logger.error(
            "alignment_error",
            stage=stage,
            expected_documents=len(documents),
            actual_documents=len(artifact),
        )
        raise AlignmentError(
            f"{stage}: expected {len(documents)} documents, got {len(artifact)}"
        )

    for doc_idx, (document, slots) in enumerate(zip(documents, artifact)):
        if len(slots) != document.sentence_count:
            logger.error(
                "alignment_error",
                stage=stage,
                doc_index=doc_idx,
                filename=document.filename,
                expected_slots=document.sentence_count,
                actual_slots=len(slots),
            )
            raise AlignmentError(
                f"{stage}: document {doc_idx} ({document.filename}) has "
                f"{document.sentence_count} sentences but {len(slots)} slots"
            )


# =============================================================================
# Construction from / rendering to raw JSON
# =============================================================================

def parse_documents(raw: Any) -> list[Document]:
    """Validate the raw document input array.

    Raises:
        StructuralError: If ``raw`` is not an array or a document is malformed.
    """
    if not isinstance(raw, list):
        raise StructuralError(f"Expected a JSON array of documents, got {type(raw).__name__}")

    documents = []
    for doc_idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise StructuralError(f"Document {doc_idx} is not an object")
        try:
            documents.append(Document.model_validate(item))
        except ValidationError as e:
            raise StructuralError(f"Document {doc_idx} is malformed: {e}") from e
    return documents


def build_artifact(
    raw: Any,
    record_type: type[RecordModelT],
    documents: Sequence[Document] | None = None,
    stage: str = "artifact",
) -> Artifact[RecordModelT]:
    """Construct a typed artifact from its JSON shape.

    ``null`` and the legacy empty object ``{}`` both load as pruned slots.
    When ``documents`` is given, slot counts are checked against them.

    Raises:
        StructuralError: Wrong nesting, or a record that fails validation.
        AlignmentError: Slot counts differ from ``documents``.
    """
    if not isinstance(raw, list):
        raise StructuralError(f"{stage}: expected a JSON array, got {type(raw).__name__}")

    artifact: Artifact[RecordModelT] = []
    for doc_idx, raw_slots in enumerate(raw):
        if not isinstance(raw_slots, list):
            raise StructuralError(f"{stage}: entry {doc_idx} is not an array of slots")

        slots: DocumentSlots[RecordModelT] = []
        for sent_idx, raw_slot in enumerate(raw_slots):
            if raw_slot is None or raw_slot == {}:
                slots.append(Pruned())
                continue
            if not isinstance(raw_slot, dict):
                raise StructuralError(f"{stage}: slot [{doc_idx}][{sent_idx}] is not an object")
            try:
                slots.append(Populated(record_type.model_validate(raw_slot)))
            except ValidationError as e:
                raise StructuralError(
                    f"{stage}: slot [{doc_idx}][{sent_idx}] is not a valid {record_type.__name__}: {e}"
                ) from e
        artifact.append(slots)

    if documents is not None:
        check_alignment(documents, artifact, stage)
    return artifact


def dump_artifact(artifact: Artifact[BaseModel]) -> list[list[dict | None]]:
    """Render an artifact to its JSON shape (pruned slots become ``null``)."""
    return [
        [slot.record.model_dump(mode="json") if isinstance(slot, Populated) else None for slot in slots]
        for slots in artifact
    ]
