"""Positional slot container tracking one original sentence through every stage.

A slot is either ``Populated(record)`` or ``Pruned(reason)``. A document's slot
list always has one entry per original sentence, in order, so index ``i`` at
any stage refers to ``document.sentences[i]``.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from claimify.models.enums import PruneReason

RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class Populated(Generic[RecordT]):
    """Slot holding the record produced for this sentence."""

    record: RecordT

    @property
    def is_pruned(self) -> bool:
        return False


@dataclass(frozen=True)
class Pruned:
    """Slot whose sentence yields nothing further."""

    reason: PruneReason = PruneReason.LOADED

    @property
    def is_pruned(self) -> bool:
        return True


Slot = Union[Populated[RecordT], Pruned]

# One document's slots, and one slot list per document
DocumentSlots = list[Slot[RecordT]]
Artifact = list[DocumentSlots[RecordT]]


def populated_records(slots: DocumentSlots) -> list:
    """Records of the populated slots, in index order."""
    return [slot.record for slot in slots if isinstance(slot, Populated)]


def count_populated(artifact: Artifact) -> int:
    return sum(1 for slots in artifact for slot in slots if isinstance(slot, Populated))
