"""Generic per-slot generation step.

A ``GenerativeStep`` maps an input artifact to an output artifact of the same
shape: pruned slots pass through, each populated slot gets one (or, for
multi-claim stages, several) generation calls, and any failure becomes a
fail-closed sentinel record in that slot only.
"""

import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel

from claimify.llm.generator import SchemaT, StructuredGenerator
from claimify.models.enums import PruneReason
from claimify.models.slots import Artifact, Populated, Pruned, Slot

logger = structlog.get_logger(__name__)

InT = TypeVar("InT", bound=BaseModel)
OutT = TypeVar("OutT", bound=BaseModel)


@dataclass
class StepTrace:
    """Counts and failures of one step run."""

    stage: str
    documents: int = 0
    slots_total: int = 0
    pruned_on_input: int = 0
    pruned_by_rule: int = 0
    processed: int = 0
    failed: int = 0
    llm_calls: int = 0
    duration_seconds: float = 0.0
    failures: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class _SlotResult:
    slot: Slot
    error: str | None = None


class GenerativeStep(ABC, Generic[InT, OutT]):
    """Skip pruned slots, generate for populated ones, isolate failures.

    Subclasses provide the prompt, the output schema, how the validated
    output merges with the carried-over fields, and the failure sentinel.
    """

    name: str = "step"
    output_schema: type[BaseModel]

    def __init__(self, generator: StructuredGenerator, max_concurrency: int = 1):
        self.generator = generator
        self.max_concurrency = max(1, max_concurrency)
        self._calls = 0
        self._calls_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Stage hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def build_prompt(self, record: InT) -> tuple[str, str]:
        """Return ``(system_prompt, user_prompt)`` for one record."""

    @abstractmethod
    def merge(self, record: InT, output: Any) -> OutT:
        """Combine the generation result with fields carried from ``record``.

        ``output`` is the validated ``output_schema`` instance, or whatever a
        multi-call ``process`` collected for the record.
        """

    @abstractmethod
    def sentinel(self, record: InT, error: str) -> OutT:
        """Same-shape record with error markers and fail-closed defaults."""

    def should_prune(self, record: InT) -> PruneReason | None:
        """Input-side pruning rule; ``None`` keeps the slot."""
        return None

    def process(self, record: InT) -> OutT:
        """Run the generation for one populated slot. May raise."""
        system_prompt, user_prompt = self.build_prompt(record)
        output = self.generate(system_prompt, user_prompt, self.output_schema)
        return self.merge(record, output)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def generate(self, system_prompt: str, user_prompt: str, schema: type[SchemaT]) -> SchemaT:
        """Call the generator, counting the call."""
        with self._calls_lock:
            self._calls += 1
        return self.generator.generate(system_prompt, user_prompt, schema)

    def _process_slot(self, doc_idx: int, sent_idx: int, record: InT) -> _SlotResult:
        try:
            output = self.process(record)
        except Exception as e:
            logger.error(
                "slot_generation_failed",
                stage=self.name,
                doc_index=doc_idx,
                sentence_index=sent_idx,
                error=str(e),
                preview=record.sentence[:80] if hasattr(record, "sentence") else None,
            )
            return _SlotResult(Populated(self.sentinel(record, str(e))), error=str(e))

        # Partial failures handled inside process() (per-claim, skipped coverage)
        if getattr(output, "failed", False):
            return _SlotResult(Populated(output), error=output.error or "partial failure")
        return _SlotResult(Populated(output))

    def _prepare(self, slot: Slot[InT]) -> Slot[InT]:
        if isinstance(slot, Pruned):
            return slot
        reason = self.should_prune(slot.record)
        return Pruned(reason) if reason is not None else slot

    def run(self, artifact: Artifact[InT]) -> Artifact[OutT]:
        """Map ``artifact`` to this step's output artifact."""
        output, _ = self.run_traced(artifact)
        return output

    def run_traced(self, artifact: Artifact[InT]) -> tuple[Artifact[OutT], StepTrace]:
        """Map ``artifact`` and report what happened.

        Results are assembled by (document, sentence) position, so the output
        order never depends on completion order when calls run concurrently.
        """
        start_time = time.perf_counter()
        with self._calls_lock:
            self._calls = 0

        prepared = [[self._prepare(slot) for slot in slots] for slots in artifact]
        jobs = [
            (doc_idx, sent_idx, slot.record)
            for doc_idx, slots in enumerate(prepared)
            for sent_idx, slot in enumerate(slots)
            if isinstance(slot, Populated)
        ]

        logger.info(
            f"{self.name}_stage_start",
            documents=len(artifact),
            populated=len(jobs),
            max_concurrency=self.max_concurrency,
        )

        results: dict[tuple[int, int], _SlotResult] = {}
        if self.max_concurrency > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_concurrency) as pool:
                futures = {
                    (doc_idx, sent_idx): pool.submit(self._process_slot, doc_idx, sent_idx, record)
                    for doc_idx, sent_idx, record in jobs
                }
                for key, future in futures.items():
                    results[key] = future.result()
        else:
            for doc_idx, sent_idx, record in jobs:
                results[(doc_idx, sent_idx)] = self._process_slot(doc_idx, sent_idx, record)

        output: Artifact[OutT] = [
            [
                results[(doc_idx, sent_idx)].slot if (doc_idx, sent_idx) in results else slot
                for sent_idx, slot in enumerate(slots)
            ]
            for doc_idx, slots in enumerate(prepared)
        ]

        trace = StepTrace(
            stage=self.name,
            documents=len(artifact),
            slots_total=sum(len(slots) for slots in artifact),
            pruned_on_input=sum(1 for slots in artifact for slot in slots if isinstance(slot, Pruned)),
            processed=len(jobs),
            llm_calls=self._calls,
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        trace.pruned_by_rule = (
            sum(1 for slots in prepared for slot in slots if isinstance(slot, Pruned)) - trace.pruned_on_input
        )
        for (doc_idx, sent_idx), result in sorted(results.items()):
            if result.error is not None:
                trace.failed += 1
                trace.failures.append(
                    {"doc_index": doc_idx, "sentence_index": sent_idx, "error": result.error}
                )

        logger.info(
            f"{self.name}_stage_complete",
            processed=trace.processed,
            failed=trace.failed,
            pruned_by_rule=trace.pruned_by_rule,
            llm_calls=trace.llm_calls,
            duration_seconds=trace.duration_seconds,
        )
        return output, trace
