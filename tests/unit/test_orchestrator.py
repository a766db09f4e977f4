"""Unit tests for the pipeline orchestrator."""

import json

import pytest

from claimify.llm.generator import GenerationError
from claimify.models import (
    DecompositionOutput,
    DisambiguationOutput,
    Populated,
    Pruned,
    SelectionOutput,
)
from claimify.pipeline.filters import flatten_claims
from claimify.pipeline.orchestrator import STAGE_ORDER, PipelineError, build_report, run_pipeline
from claimify.pipeline.step import StepTrace
from tests.factories import ScriptedGenerator, disambiguation_output, happy_path_responder, sentence_of


class TestRunPipeline:
    """End-to-end runs with a scripted generator."""

    def test_extraction(self, documents, happy_generator, settings):
        state = run_pipeline(documents, happy_generator, settings=settings)

        claims = flatten_claims(documents, state.decomposition)
        assert [c.claim_id for c in claims] == ["acme.json:0:0", "acme.json:2:0", "solar.json:0:0"]
        assert state.entailment is None
        assert state.coverage is None
        # 5 selection + 3 disambiguation + 3 decomposition
        assert state.llm_calls_made == 11
        assert state.errors == []

    def test_unverifiable_sentences_never_reach_later_stages(self, documents, happy_generator, settings):
        run_pipeline(documents, happy_generator, settings=settings)

        later = [
            call["user"]
            for call in happy_generator.calls
            if call["schema"] in (DisambiguationOutput, DecompositionOutput)
        ]
        assert not any("Sentence:\nThis is an impressive result." in prompt for prompt in later)
        assert not any("Sentence:\nIt remains an important topic." in prompt for prompt in later)

    def test_disambiguation_uses_rewindowed_excerpt(self, documents, happy_generator, settings):
        state = run_pipeline(documents, happy_generator, settings=settings)

        first = state.disambiguation[0][0].record
        last = state.disambiguation[0][2].record
        # Five preceding sentences, none following
        assert first.excerpt == documents[0].sentences[0]
        assert last.excerpt == " ".join(documents[0].sentences)

    def test_populated_counts_never_increase(self, documents, happy_generator, settings):
        state = run_pipeline(documents, happy_generator, settings=settings, evaluate=True)
        counts = [
            len([s for slots in getattr(state, name) for s in slots if isinstance(s, Populated)])
            for name in ("contexts", "selection", "selection_filtered", "disambiguation", "decomposition")
        ]
        assert counts == sorted(counts, reverse=True)
        assert counts[0] == 5
        assert counts[-1] == 3

    def test_every_artifact_aligned(self, documents, happy_generator, settings):
        state = run_pipeline(documents, happy_generator, settings=settings, evaluate=True)
        for name in ("contexts", *STAGE_ORDER[1:]):
            artifact = getattr(state, name)
            assert [len(slots) for slots in artifact] == [3, 2], name

    def test_evaluation(self, documents, happy_generator, settings):
        state = run_pipeline(documents, happy_generator, settings=settings, evaluate=True)

        assert all(
            slot.record.claim_evaluations[0].entailed
            for slots in state.entailment
            for slot in slots
            if isinstance(slot, Populated)
        )
        assert state.coverage[0][0].record.metrics.true_positives == 1
        assert state.coverage[0][1] == state.decomposition[0][1]
        assert state.llm_calls_made == 20

    def test_selection_failure_fails_closed(self, documents, settings):
        def selection_down(schema, prompt):
            if schema is SelectionOutput and "ACME reported" in prompt.split("Sentence:\n", 1)[-1]:
                return GenerationError("timeout")
            return happy_path_responder(schema, prompt)

        state = run_pipeline(documents, ScriptedGenerator(selection_down), settings=settings)

        assert state.selection[0][0].record.failed
        assert isinstance(state.selection_filtered[0][0], Pruned)
        assert state.traces["selection"]["failed"] == 1
        assert any(w["stage"] == "selection" for w in state.warnings)

    def test_disambiguation_warnings_collected(self, documents, settings):
        def contradictory(schema, prompt):
            output = happy_path_responder(schema, prompt)
            if schema is DisambiguationOutput:
                output["decontextualized_sentence"] = "Cannot be decontextualized"
            return output

        state = run_pipeline(documents, ScriptedGenerator(contradictory), settings=settings)

        disambiguation_warnings = [w for w in state.warnings if w["stage"] == "disambiguation"]
        assert len(disambiguation_warnings) == 3
        # Boolean wins: the original sentences are still decomposed
        assert len(flatten_claims(documents, state.decomposition)) == 3

    def test_source_sentence_survives_rewrites(self, documents, settings):
        def decontextualizing(schema, prompt):
            if schema is DisambiguationOutput:
                return disambiguation_output(f"In the report, {sentence_of(prompt)}")
            return happy_path_responder(schema, prompt)

        state = run_pipeline(documents, ScriptedGenerator(decontextualizing), settings=settings, evaluate=True)
        source = documents[0].sentences[0]

        for name in ("decomposition", "entailment", "element_extraction", "coverage"):
            record = getattr(state, name)[0][0].record
            assert record.original_sentence == source, name
            assert record.sentence == f"In the report, {source}", name

        first = flatten_claims(documents, state.decomposition)[0]
        assert first.original_sentence == source
        assert first.sentence == f"In the report, {source}"

    def test_checkpoints_written(self, documents, happy_generator, settings, tmp_path):
        run_pipeline(documents, happy_generator, settings=settings, checkpoint_dir=tmp_path)

        written = {path.stem for path in tmp_path.glob("*.json")}
        assert written == {"context", "selection", "selection_filtered", "disambiguation", "decomposition"}
        assert json.loads((tmp_path / "selection_filtered.json").read_text())[0][1] is None

    def test_progress_callback(self, documents, happy_generator, settings):
        events = []
        run_pipeline(
            documents,
            happy_generator,
            settings=settings,
            progress=lambda stage, trace: events.append((stage, trace is None)),
        )
        assert events[:2] == [("selection", True), ("selection", False)]
        assert [stage for stage, started in events if started] == [
            "selection",
            "disambiguation",
            "decomposition",
        ]

    def test_concurrent_run_matches_sequential(self, documents, settings):
        concurrent = settings.model_copy(update={"max_concurrency": 4})

        sequential_state = run_pipeline(documents, ScriptedGenerator(happy_path_responder), settings=settings)
        concurrent_state = run_pipeline(documents, ScriptedGenerator(happy_path_responder), settings=concurrent)

        assert concurrent_state.decomposition == sequential_state.decomposition

    def test_misaligned_stage_output_aborts(self, documents, happy_generator, settings, monkeypatch):
        monkeypatch.setattr(
            "claimify.pipeline.orchestrator.select_sentences",
            lambda artifact, generator, max_concurrency=1: ([[]], StepTrace(stage="selection")),
        )
        with pytest.raises(PipelineError, match="selection"):
            run_pipeline(documents, happy_generator, settings=settings)

    def test_stage_failure_recorded_once(self, documents, happy_generator, settings, monkeypatch):
        monkeypatch.setattr(
            "claimify.pipeline.orchestrator.select_sentences",
            lambda artifact, generator, max_concurrency=1: ([[]], StepTrace(stage="selection")),
        )
        with pytest.raises(PipelineError) as excinfo:
            run_pipeline(documents, happy_generator, settings=settings)

        state = excinfo.value.state
        assert [error["stage"] for error in state.errors] == ["selection"]
        assert state.processing_end is not None
        assert state.contexts is not None


class TestBuildReport:
    """Tests for build_report."""

    def test_report_is_json_serializable(self, documents, happy_generator, settings):
        state = run_pipeline(documents, happy_generator, settings=settings, evaluate=True)
        report = json.loads(json.dumps(build_report(state)))

        assert report["documents"] == 2
        assert report["sentences"] == 5
        assert len(report["claims"]) == 3
        assert report["populated_slots"]["selection_filtered"] == 3
        assert report["coverage_summary"]["recall"] == 1.0
        assert report["entailment_summary"]["claims_entailed"] == 3
        assert report["processing"]["llm_calls_made"] == 20

    def test_report_without_evaluation(self, documents, happy_generator, settings):
        report = build_report(run_pipeline(documents, happy_generator, settings=settings))

        assert "coverage_summary" not in report
        assert set(report["traces"]) == {"selection", "disambiguation", "decomposition"}
