"""Unit tests for slot alignment helpers."""

import pytest

from claimify.models import Populated, Pruned, PruneReason, SentenceContext
from claimify.pipeline import (
    AlignmentError,
    StructuralError,
    build_artifact,
    check_alignment,
    dump_artifact,
    map_populated,
    parse_documents,
    prune_where,
)


class TestCombinators:
    """Tests for map_populated and prune_where."""

    def test_map_populated_keeps_pruned(self):
        slots = [Populated(1), Pruned(PruneReason.NO_VERIFIABLE_CONTENT), Populated(3)]
        assert map_populated(slots, lambda x: x * 10) == [
            Populated(10),
            Pruned(PruneReason.NO_VERIFIABLE_CONTENT),
            Populated(30),
        ]

    def test_prune_where_preserves_length(self):
        slots = [Populated(1), Populated(2), Pruned()]
        result = prune_where(slots, lambda x: x == 2, PruneReason.NOT_DISAMBIGUATABLE)
        assert result == [Populated(1), Pruned(PruneReason.NOT_DISAMBIGUATABLE), Pruned()]


class TestCheckAlignment:
    """Tests for check_alignment."""

    def test_aligned(self, documents):
        check_alignment(documents, [[Pruned()] * 3, [Pruned()] * 2], "test")

    def test_document_count_mismatch(self, documents):
        with pytest.raises(AlignmentError, match="expected 2 documents"):
            check_alignment(documents, [[Pruned()] * 3], "test")

    def test_slot_count_mismatch(self, documents):
        with pytest.raises(AlignmentError, match="solar.json"):
            check_alignment(documents, [[Pruned()] * 3, [Pruned()]], "test")

    def test_alignment_error_is_structural(self):
        assert issubclass(AlignmentError, StructuralError)


class TestParseDocuments:
    """Tests for parse_documents."""

    def test_valid(self, raw_documents):
        documents = parse_documents(raw_documents)
        assert [doc.filename for doc in documents] == ["acme.json", "solar.json"]

    def test_not_an_array(self):
        with pytest.raises(StructuralError):
            parse_documents({"filename": "a.json"})

    def test_malformed_document(self):
        with pytest.raises(StructuralError, match="Document 0"):
            parse_documents([{"filename": "a.json"}])


class TestBuildArtifact:
    """Tests for build_artifact and dump_artifact."""

    def test_null_and_empty_object_load_as_pruned(self):
        raw = [[None, {}, {"sentence": "x", "query": "q", "excerpt": "x"}]]
        [slots] = build_artifact(raw, SentenceContext)

        assert isinstance(slots[0], Pruned)
        assert isinstance(slots[1], Pruned)
        assert slots[2].record == SentenceContext(sentence="x", query="q", excerpt="x")

    def test_invalid_record_names_position(self):
        raw = [[None], [None, {"query": "missing sentence"}]]
        with pytest.raises(StructuralError, match=r"\[1\]\[1\]"):
            build_artifact(raw, SentenceContext)

    def test_wrong_nesting(self):
        with pytest.raises(StructuralError):
            build_artifact([{"sentence": "x"}], SentenceContext)

    def test_checks_against_documents(self, documents):
        with pytest.raises(AlignmentError):
            build_artifact([[None], [None]], SentenceContext, documents)

    def test_dump_writes_null_for_pruned(self):
        artifact = [[Populated(SentenceContext(sentence="x")), Pruned(PruneReason.NO_VERIFIABLE_CONTENT)]]
        dumped = dump_artifact(artifact)

        assert dumped[0][1] is None
        assert dumped[0][0]["sentence"] == "x"
        assert build_artifact(dumped, SentenceContext)[0][0] == artifact[0][0]
