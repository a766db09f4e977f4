"""Unit tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from claimify.models import (
    CoverageMetrics,
    DecompositionOutput,
    DecompositionRecord,
    DisambiguationRecord,
    Document,
    EntailmentConclusion,
    EntailmentRecord,
    ClaimEntailment,
    Populated,
    Pruned,
    PruneReason,
    SelectionRecord,
    SelectionVerdict,
    SentenceElement,
    VerifiabilityClass,
    count_populated,
    populated_records,
)
from claimify.models.enums import error_marker, normalize_sentinel


class TestDocument:
    """Tests for Document model."""

    def test_loads_tokenized_response_alias(self):
        doc = Document.model_validate({
            "filename": "a.json",
            "query": "Q?",
            "response": "One. Two.",
            "tokenized_response": ["One.", "Two."],
        })
        assert doc.sentences == ("One.", "Two.")
        assert doc.sentence_count == 2

    def test_response_is_optional(self):
        doc = Document(filename="a.json", query="Q?", tokenized_response=["One."])
        assert doc.response == ""

    def test_missing_sentences_rejected(self):
        with pytest.raises(ValidationError):
            Document.model_validate({"filename": "a.json", "query": "Q?"})

    def test_immutable(self, acme_document):
        with pytest.raises(ValidationError):
            acme_document.query = "changed"

    def test_to_input_dict_round_trips(self, acme_document):
        assert Document.model_validate(acme_document.to_input_dict()) == acme_document


class TestSentinels:
    """Tests for sentinel string helpers."""

    @pytest.mark.parametrize("text", ["remains unchanged", "Remains unchanged.", ' "remains unchanged" '])
    def test_normalize_unchanged_variants(self, text):
        assert normalize_sentinel(text) == "remains unchanged"

    def test_error_marker_prefix(self):
        assert error_marker(ValueError("boom")) == "ERROR: boom"


class TestSelectionRecord:
    """Tests for SelectionRecord."""

    def _record(self, rewrite: str, verdict=SelectionVerdict.CONTAINS) -> SelectionRecord:
        return SelectionRecord(sentence="Original.", verdict=verdict, verifiable_rewrite=rewrite)

    def test_unchanged_uses_original_sentence(self):
        record = self._record("remains unchanged")
        assert record.is_unchanged
        assert record.sentence_for_disambiguation == "Original."

    def test_short_unchanged_variant(self):
        assert self._record("Unchanged").is_unchanged

    def test_rewrite_used_when_changed(self):
        record = self._record("Rewritten.")
        assert not record.is_unchanged
        assert record.sentence_for_disambiguation == "Rewritten."

    def test_none_rewrite_means_no_content(self):
        record = self._record("None", verdict=SelectionVerdict.DOES_NOT_CONTAIN)
        assert record.has_no_verifiable_content

    def test_error_record_is_failed(self):
        record = SelectionRecord(
            sentence="x",
            verdict=SelectionVerdict.DOES_NOT_CONTAIN,
            verifiable_rewrite="ERROR: timeout",
            error="timeout",
        )
        assert record.failed
        assert not record.has_no_verifiable_content


class TestDisambiguationRecord:
    """Tests for DisambiguationRecord."""

    def test_marker_falls_back_to_original(self):
        record = DisambiguationRecord(
            sentence="It grew.",
            can_be_disambiguated=True,
            decontextualized_sentence="Cannot be decontextualized",
        )
        assert record.has_cannot_decontextualize_marker
        assert record.sentence_for_decomposition == "It grew."

    def test_marker_falls_back_to_selected_sentence(self):
        record = DisambiguationRecord(
            sentence="ACME, impressively, grew.",
            can_be_disambiguated=True,
            decontextualized_sentence="Cannot be decontextualized",
            selected_sentence="ACME grew.",
        )
        assert record.sentence_for_decomposition == "ACME grew."

    def test_decontextualized_sentence_used(self):
        record = DisambiguationRecord(
            sentence="It grew.",
            can_be_disambiguated=True,
            decontextualized_sentence="ACME's revenue grew.",
        )
        assert record.sentence_for_decomposition == "ACME's revenue grew."


class TestDecomposition:
    """Tests for decomposition output and record."""

    def test_output_rejects_length_mismatch(self):
        with pytest.raises(ValidationError):
            DecompositionOutput(
                sentence="s",
                referential_terms_analysis="",
                max_clarified_sentence="s",
                proposition_range="1 - 2",
                specific_verifiable_propositions=["a", "b"],
                propositions_with_context=["a - true or false?"],
            )

    def test_record_allows_zero_propositions(self):
        record = DecompositionRecord(sentence="s")
        assert record.propositions == []
        assert record.propositions_with_context == []

    def test_record_rejects_length_mismatch(self):
        with pytest.raises(ValidationError):
            DecompositionRecord(sentence="s", propositions=["a"], propositions_with_context=[])


class TestEvaluationModels:
    """Tests for evaluation records."""

    def test_element_verifiable(self):
        assert SentenceElement(element="ACME", verifiability=VerifiabilityClass.VERIFIABLE).verifiable
        assert not SentenceElement(
            element="impressive", verifiability=VerifiabilityClass.GENERIC_NOT_VERIFIABLE
        ).verifiable

    def test_unknown_verifiability_rejected(self):
        with pytest.raises(ValidationError):
            SentenceElement(element="x", verifiability="maybe verifiable")

    def test_entailment_record_fails_on_claim_failure(self):
        record = EntailmentRecord(
            sentence="s",
            claim_evaluations=[
                ClaimEntailment(claim="a", conclusion=EntailmentConclusion.ENTAILS),
                ClaimEntailment(claim="b", conclusion=EntailmentConclusion.DOES_NOT_ENTAIL, error="boom"),
            ],
        )
        assert record.error is None
        assert record.failed

    def test_metrics_non_negative(self):
        with pytest.raises(ValidationError):
            CoverageMetrics(true_positives=-1)

    def test_metrics_total(self):
        metrics = CoverageMetrics(true_positives=1, false_negatives=2, false_positives=3, true_negatives=4)
        assert metrics.total == 10


class TestSlots:
    """Tests for slot helpers."""

    def test_default_pruned_reason(self):
        assert Pruned().reason == PruneReason.LOADED
        assert Pruned().is_pruned
        assert not Populated("x").is_pruned

    def test_populated_records_in_order(self):
        slots = [Populated("a"), Pruned(), Populated("b")]
        assert populated_records(slots) == ["a", "b"]
        assert count_populated([slots, [Pruned()]]) == 2
