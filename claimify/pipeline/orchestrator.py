"""Pipeline Orchestrator - Coordinates all pipeline stages.

Control flow:
    documents -> context windows -> selection -> prune filter -> re-window
    -> disambiguation -> decomposition -> (optional) entailment,
    element extraction, coverage

Every stage output is checked against the source documents before it is
accepted. Per-sentence generation failures are already folded into sentinel
records by the stages; anything that escapes to here is structural and aborts
the run with :class:`PipelineError`.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

import structlog
from pydantic import BaseModel, Field

from claimify.config.settings import Settings, get_settings
from claimify.llm.generator import StructuredGenerator
from claimify.models.documents import Document
from claimify.models.slots import Artifact, count_populated
from claimify.pipeline.alignment import check_alignment
from claimify.pipeline.context import build_sentence_contexts, rewindow
from claimify.pipeline.filters import flatten_claims, prune_unverifiable
from claimify.pipeline.stages import (
    decompose_sentences,
    disambiguate_sentences,
    evaluate_coverage,
    evaluate_entailment,
    extract_elements,
    select_sentences,
)
from claimify.pipeline.step import StepTrace
from claimify.processing.coverage_metrics import summarize_coverage, summarize_entailment
from claimify.storage import save_artifact

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[str, Optional[StepTrace]], None]

# Stage names double as checkpoint file stems
STAGE_ORDER = (
    "context",
    "selection",
    "selection_filtered",
    "disambiguation",
    "decomposition",
    "entailment",
    "element_extraction",
    "coverage",
)


class PipelineError(Exception):
    """Error during pipeline execution.

    ``state`` holds whatever the run produced before it aborted.
    """

    def __init__(self, message: str, state: Optional["ClaimifyState"] = None):
        super().__init__(message)
        self.state = state


class ClaimifyState(BaseModel):
    """Complete state passed through the pipeline.

    Artifacts are slot-aligned lists (one per document, one slot per
    sentence); traces are stored as dicts for serialization.
    """

    # Input
    documents: list[Document] = Field(default_factory=list)

    # Stage outputs
    contexts: Optional[list] = None
    selection: Optional[list] = None
    selection_filtered: Optional[list] = None
    disambiguation: Optional[list] = None
    decomposition: Optional[list] = None
    entailment: Optional[list] = None
    element_extraction: Optional[list] = None
    coverage: Optional[list] = None

    # Inspectable stage traces
    traces: dict[str, dict] = Field(default_factory=dict)

    # Processing metadata
    processing_start: Optional[datetime] = None
    processing_end: Optional[datetime] = None
    stage_durations: dict[str, float] = Field(default_factory=dict)
    llm_calls_made: int = 0
    errors: list[dict] = Field(default_factory=list)
    warnings: list[dict] = Field(default_factory=list)


def _checkpoint(checkpoint_dir: Optional[Path], stage: str, artifact: Artifact) -> None:
    if checkpoint_dir is None:
        return
    path = save_artifact(checkpoint_dir / f"{stage}.json", artifact)
    logger.debug("checkpoint_written", stage=stage, path=str(path))


def _record_trace(state: ClaimifyState, trace: StepTrace) -> None:
    state.traces[trace.stage] = trace.to_dict()
    state.stage_durations[trace.stage] = trace.duration_seconds
    state.llm_calls_made += trace.llm_calls
    if trace.failed:
        state.warnings.append({
            "stage": trace.stage,
            "warning": f"{trace.failed} of {trace.processed} sentences fell back to error sentinels",
        })


def _run_generative_stage(
    state: ClaimifyState,
    stage: str,
    run_stage: Callable[..., tuple[Artifact, StepTrace]],
    artifact: Artifact,
    generator: StructuredGenerator,
    settings: Settings,
    checkpoint_dir: Optional[Path],
    progress: Optional[ProgressCallback],
) -> Artifact:
    """Run one generative stage, verify alignment, record its trace."""
    logger.info(f"stage_{stage}_start", populated=count_populated(artifact))
    if progress:
        progress(stage, None)

    try:
        output, trace = run_stage(artifact, generator, max_concurrency=settings.max_concurrency)
        check_alignment(state.documents, output, stage)
    except Exception as e:
        state.errors.append({"stage": stage, "error": str(e), "type": type(e).__name__})
        logger.error(f"stage_{stage}_failed", error=str(e))
        raise PipelineError(f"Stage {stage} failed: {e}", state=state) from e

    _record_trace(state, trace)
    _checkpoint(checkpoint_dir, stage, output)

    logger.info(
        f"stage_{stage}_complete",
        populated=count_populated(output),
        failed=trace.failed,
        llm_calls=trace.llm_calls,
    )
    if progress:
        progress(stage, trace)
    return output


def _run_context_windows(state: ClaimifyState, settings: Settings, checkpoint_dir: Optional[Path]) -> ClaimifyState:
    """Stage 0: Build the excerpt for every sentence."""
    stage_start = datetime.now()
    state.contexts = build_sentence_contexts(
        state.documents,
        settings.selection_preceding,
        settings.selection_following,
    )
    _checkpoint(checkpoint_dir, "context", state.contexts)
    state.stage_durations["context"] = (datetime.now() - stage_start).total_seconds()
    logger.info("stage_context_complete", sentences=count_populated(state.contexts))
    return state


def _run_selection_filter(state: ClaimifyState, settings: Settings, checkpoint_dir: Optional[Path]) -> ClaimifyState:
    """Prune unverifiable sentences, then re-window against the source documents."""
    stage_start = datetime.now()
    filtered = prune_unverifiable(state.selection)
    state.selection_filtered = rewindow(
        filtered,
        state.documents,
        settings.disambiguation_preceding,
        settings.disambiguation_following,
        stage="selection_filtered",
    )
    _checkpoint(checkpoint_dir, "selection_filtered", state.selection_filtered)
    state.stage_durations["selection_filtered"] = (datetime.now() - stage_start).total_seconds()

    kept = count_populated(state.selection_filtered)
    if kept == 0 and count_populated(state.selection) > 0:
        state.warnings.append({
            "stage": "selection_filtered",
            "warning": "No sentence with a verifiable proposition survived selection",
        })
    return state


def _collect_disambiguation_warnings(state: ClaimifyState) -> None:
    """Surface disagreements between can_be_disambiguated and the sentinel text."""
    for doc_idx, slots in enumerate(state.disambiguation or []):
        for sent_idx, slot in enumerate(slots):
            record = getattr(slot, "record", None)
            for warning in getattr(record, "validation_warnings", []):
                state.warnings.append({
                    "stage": "disambiguation",
                    "doc_index": doc_idx,
                    "sentence_index": sent_idx,
                    "warning": warning,
                })


def run_pipeline(
    documents: Sequence[Document],
    generator: StructuredGenerator,
    settings: Optional[Settings] = None,
    evaluate: bool = False,
    checkpoint_dir: Optional[str | Path] = None,
    progress: Optional[ProgressCallback] = None,
) -> ClaimifyState:
    """Run claim extraction (and optionally evaluation) over ``documents``.

    Args:
        documents: Source responses, already split into sentences.
        generator: Structured generation capability used by every stage.
        settings: Window sizes and concurrency. Uses cached settings if not provided.
        evaluate: If True, also run entailment, element extraction and coverage.
        checkpoint_dir: If given, every stage artifact is written there as JSON.
        progress: Optional callback ``(stage, trace)``; ``trace`` is None at stage start.

    Returns:
        ClaimifyState with all stage outputs and traces.

    Raises:
        PipelineError: On structural errors (misaligned artifacts, bad input).
    """
    settings = settings or get_settings()
    checkpoint_path = Path(checkpoint_dir) if checkpoint_dir is not None else None

    state = ClaimifyState(
        documents=list(documents),
        processing_start=datetime.now(),
    )

    logger.info(
        "pipeline_start",
        documents=len(state.documents),
        sentences=sum(doc.sentence_count for doc in state.documents),
        evaluate=evaluate,
    )

    def _stage(stage: str, run_stage: Callable, artifact: Artifact) -> Artifact:
        return _run_generative_stage(
            state, stage, run_stage, artifact, generator, settings, checkpoint_path, progress
        )

    try:
        state = _run_context_windows(state, settings, checkpoint_path)

        state.selection = _stage("selection", select_sentences, state.contexts)
        state = _run_selection_filter(state, settings, checkpoint_path)

        state.disambiguation = _stage("disambiguation", disambiguate_sentences, state.selection_filtered)
        _collect_disambiguation_warnings(state)

        state.decomposition = _stage("decomposition", decompose_sentences, state.disambiguation)

        if evaluate:
            state.entailment = _stage("entailment", evaluate_entailment, state.decomposition)
            state.element_extraction = _stage("element_extraction", extract_elements, state.decomposition)
            state.coverage = _stage("coverage", evaluate_coverage, state.element_extraction)

        state.processing_end = datetime.now()
        total_duration = (state.processing_end - state.processing_start).total_seconds()
        logger.info(
            "pipeline_complete",
            duration_seconds=round(total_duration, 2),
            claims=len(flatten_claims(state.documents, state.decomposition)),
            llm_calls=state.llm_calls_made,
            warnings=len(state.warnings),
        )
        return state

    except PipelineError:
        state.processing_end = datetime.now()
        logger.error("pipeline_failed", errors=len(state.errors))
        raise
    except Exception as e:
        state.processing_end = datetime.now()
        state.errors.append({
            "stage": "orchestrator",
            "error": str(e),
            "type": type(e).__name__,
        })
        logger.error("pipeline_failed", error=str(e))
        raise PipelineError(f"Pipeline failed: {e}", state=state) from e


def _populated_counts(state: ClaimifyState) -> dict[str, int]:
    counts = {}
    for stage in STAGE_ORDER:
        artifact = state.contexts if stage == "context" else getattr(state, stage)
        if artifact is not None:
            counts[stage] = count_populated(artifact)
    return counts


def build_report(state: ClaimifyState) -> dict:
    """Render a JSON-serialisable summary of a pipeline run."""
    report = {
        "documents": len(state.documents),
        "sentences": sum(doc.sentence_count for doc in state.documents),
        "populated_slots": _populated_counts(state),
        "claims": [],
        "traces": state.traces,
        "processing": {
            "start": state.processing_start.isoformat() if state.processing_start else None,
            "end": state.processing_end.isoformat() if state.processing_end else None,
            "stage_durations": state.stage_durations,
            "llm_calls_made": state.llm_calls_made,
        },
        "errors": state.errors,
        "warnings": state.warnings,
    }

    if state.decomposition is not None:
        report["claims"] = [
            claim.model_dump() for claim in flatten_claims(state.documents, state.decomposition)
        ]
    if state.entailment is not None:
        report["entailment_summary"] = summarize_entailment(state.entailment).model_dump()
    if state.coverage is not None:
        report["coverage_summary"] = summarize_coverage(state.coverage).model_dump()

    return report
