"""Unit tests for the deterministic stage transforms."""

import pytest

from claimify.models import (
    DecompositionRecord,
    Populated,
    Pruned,
    PruneReason,
    SelectionRecord,
    SelectionVerdict,
)
from claimify.pipeline import AlignmentError, flatten_claims, project_clarified_sentences, prune_unverifiable


def _selection(verdict: SelectionVerdict, rewrite: str, error: str | None = None) -> Populated:
    return Populated(
        SelectionRecord(sentence="s", verdict=verdict, verifiable_rewrite=rewrite, error=error)
    )


class TestPruneUnverifiable:
    """Tests for prune_unverifiable."""

    def test_keeps_verifiable(self):
        kept = _selection(SelectionVerdict.CONTAINS, "remains unchanged")
        rewritten = _selection(SelectionVerdict.CONTAINS, "Shorter sentence.")
        assert prune_unverifiable([[kept, rewritten]]) == [[kept, rewritten]]

    def test_prunes_none_rewrite(self):
        slots = [_selection(SelectionVerdict.DOES_NOT_CONTAIN, "None")]
        assert prune_unverifiable([slots]) == [[Pruned(PruneReason.NO_VERIFIABLE_CONTENT)]]

    def test_prunes_error_sentinel(self):
        slots = [_selection(SelectionVerdict.DOES_NOT_CONTAIN, "ERROR: timeout", error="timeout")]
        assert prune_unverifiable([slots]) == [[Pruned(PruneReason.NO_VERIFIABLE_CONTENT)]]

    def test_already_pruned_untouched(self):
        assert prune_unverifiable([[Pruned()]]) == [[Pruned()]]


class TestFlattenClaims:
    """Tests for flatten_claims."""

    def test_ids_and_order(self, acme_document):
        record = DecompositionRecord(
            sentence=acme_document.sentences[2],
            propositions=["The CEO said growth came from cloud sales"],
            propositions_with_context=["The CEO [of ACME] said growth came from cloud sales - true or false?"],
        )
        artifact = [[Pruned(), Pruned(), Populated(record)]]

        [claim] = flatten_claims([acme_document], artifact)

        assert claim.claim_id == "acme.json:2:0"
        assert claim.sentence_index == 2
        assert claim.claim_index == 0
        assert claim.proposition_with_context.endswith(" - true or false?")

    def test_source_sentence_carried(self, acme_document):
        record = DecompositionRecord(
            sentence="ACME's CEO said growth came from cloud sales.",
            original_sentence=acme_document.sentences[2],
            propositions=["ACME's CEO said growth came from cloud sales"],
            propositions_with_context=["ACME's CEO said growth came from cloud sales - true or false?"],
        )

        [claim] = flatten_claims([acme_document], [[Pruned(), Pruned(), Populated(record)]])

        assert claim.sentence == "ACME's CEO said growth came from cloud sales."
        assert claim.original_sentence == acme_document.sentences[2]

    def test_misaligned(self, acme_document):
        with pytest.raises(AlignmentError):
            flatten_claims([acme_document], [[Pruned()]])


class TestProjectClarifiedSentences:
    """Tests for project_clarified_sentences."""

    def test_projection(self):
        record = DecompositionRecord(sentence="It grew.", max_clarified_sentence="ACME's revenue grew.")
        [[pruned, slot]] = project_clarified_sentences([[Pruned(), Populated(record)]])

        assert pruned == Pruned()
        assert slot.record.max_clarified_sentence == "ACME's revenue grew."
