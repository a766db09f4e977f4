"""Command-line interface for Claimify."""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from claimify.config.settings import get_settings
from claimify.llm.client import get_llm_settings
from claimify.llm.generator import create_generator
from claimify.models.evaluation import CoverageRecord, ElementExtractionRecord, EntailmentRecord
from claimify.models.records import (
    DecompositionRecord,
    DisambiguationRecord,
    SelectionRecord,
    SentenceContext,
)
from claimify.pipeline.alignment import StructuralError
from claimify.pipeline.context import build_sentence_contexts, rewindow
from claimify.pipeline.filters import project_clarified_sentences, prune_unverifiable
from claimify.pipeline.orchestrator import PipelineError, build_report, run_pipeline
from claimify.pipeline.stages import (
    baseline_to_decomposition,
    decompose_sentences,
    disambiguate_sentences,
    evaluate_coverage,
    evaluate_entailment,
    extract_baseline_claims,
    extract_elements,
    select_sentences,
)
from claimify.processing.coverage_metrics import summarize_coverage, summarize_entailment
from claimify.storage import load_artifact, load_documents, save_artifact, save_json

# Configure structlog for CLI
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="claimify",
    help="Claimify - Extract and evaluate verifiable claims from generated text",
    add_completion=False,
)
console = Console()


class StageName(str, Enum):
    selection = "selection"
    filter = "filter"
    disambiguation = "disambiguation"
    decomposition = "decomposition"
    entailment = "entailment"
    element_extraction = "element_extraction"
    coverage = "coverage"
    clarified = "clarified"


class SummaryKind(str, Enum):
    coverage = "coverage"
    entailment = "entailment"


# Input record type for each stage that reads an artifact
_STAGE_INPUT = {
    StageName.selection: SentenceContext,
    StageName.filter: SelectionRecord,
    StageName.disambiguation: SelectionRecord,
    StageName.decomposition: DisambiguationRecord,
    StageName.entailment: DecompositionRecord,
    StageName.element_extraction: DecompositionRecord,
    StageName.coverage: ElementExtractionRecord,
    StageName.clarified: DecompositionRecord,
}


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)


def _fail(message: str, verbose: bool = False) -> None:
    console.print(f"\n[red]Error:[/red] {message}")
    if verbose:
        console.print_exception()
    raise typer.Exit(code=1)


@app.command()
def run(
    documents_path: Path = typer.Argument(
        ...,
        help="JSON array of {filename, query, response, tokenized_response}",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path for the JSON report (default: <input>_report.json)",
    ),
    evaluate: bool = typer.Option(
        False,
        "--evaluate/--no-evaluate",
        help="Also run entailment, element extraction and coverage",
    ),
    checkpoint_dir: Optional[Path] = typer.Option(
        None,
        "--checkpoint-dir",
        "-c",
        help="Write every stage artifact to this directory",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Run the full extraction pipeline and write a report."""
    _configure_logging(verbose)

    console.print(
        Panel.fit(
            "[bold blue]Claimify[/bold blue]\nExtracting verifiable claims...",
            border_style="blue",
        )
    )

    if output is None:
        output = documents_path.with_name(f"{documents_path.stem}_report.json")

    console.print(f"\n[dim]Input:[/dim] {documents_path}")
    console.print(f"[dim]Output:[/dim] {output}\n")

    def _progress(stage: str, trace) -> None:
        if trace is None:
            console.print(f"[yellow]Running {stage}...[/yellow]")
        else:
            console.print(
                f"  [green]{stage}[/green]: {trace.processed} processed, "
                f"{trace.failed} failed, {trace.llm_calls} LLM calls"
            )

    try:
        documents = load_documents(documents_path)
        state = run_pipeline(
            documents,
            create_generator(),
            evaluate=evaluate,
            checkpoint_dir=checkpoint_dir,
            progress=_progress,
        )
    except (StructuralError, PipelineError) as e:
        _fail(str(e), verbose)

    report = build_report(state)
    save_json(output, report)

    _display_summary(report)
    console.print(f"\n[green]Report saved to:[/green] {output}")


@app.command()
def stage(
    name: StageName = typer.Argument(..., help="Stage to run"),
    documents_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document input array"),
    output: Path = typer.Argument(..., help="Where to write the stage artifact"),
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        exists=True,
        dir_okay=False,
        help="Input artifact (not needed for selection, which builds its own contexts)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run a single stage from one artifact file to another."""
    _configure_logging(verbose)
    settings = get_settings()

    try:
        documents = load_documents(documents_path)
        if input_path is not None:
            artifact = load_artifact(input_path, _STAGE_INPUT[name], documents)
        elif name == StageName.selection:
            artifact = build_sentence_contexts(
                documents, settings.selection_preceding, settings.selection_following
            )
        else:
            _fail(f"Stage '{name.value}' needs --input")

        trace = None
        if name == StageName.selection:
            result, trace = select_sentences(artifact, create_generator(), settings.max_concurrency)
        elif name == StageName.filter:
            result = rewindow(
                prune_unverifiable(artifact),
                documents,
                settings.disambiguation_preceding,
                settings.disambiguation_following,
            )
        elif name == StageName.disambiguation:
            result, trace = disambiguate_sentences(artifact, create_generator(), settings.max_concurrency)
        elif name == StageName.decomposition:
            result, trace = decompose_sentences(artifact, create_generator(), settings.max_concurrency)
        elif name == StageName.entailment:
            result, trace = evaluate_entailment(artifact, create_generator(), settings.max_concurrency)
        elif name == StageName.element_extraction:
            result, trace = extract_elements(artifact, create_generator(), settings.max_concurrency)
        elif name == StageName.coverage:
            result, trace = evaluate_coverage(artifact, create_generator(), settings.max_concurrency)
        else:
            result = project_clarified_sentences(artifact)
    except StructuralError as e:
        _fail(str(e), verbose)

    save_artifact(output, result)
    if trace is not None:
        console.print(
            f"[green]{name.value}[/green]: {trace.processed} processed, "
            f"{trace.failed} failed, {trace.llm_calls} LLM calls"
        )
    console.print(f"[green]Artifact saved to:[/green] {output}")


@app.command()
def baseline(
    documents_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document input array"),
    output: Path = typer.Argument(..., help="Where to write the per-document claim lists"),
    decomposition_output: Optional[Path] = typer.Option(
        None,
        "--decomposition-output",
        help="Also write claims regrouped as a slot-aligned decomposition artifact",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run single-turn baseline extraction over the whole response."""
    _configure_logging(verbose)
    settings = get_settings()

    try:
        documents = load_documents(documents_path)
        claims, trace = extract_baseline_claims(
            documents,
            create_generator(),
            preceding=settings.baseline_preceding,
            following=settings.baseline_following,
        )
    except StructuralError as e:
        _fail(str(e), verbose)

    save_json(output, [[claim.model_dump() for claim in doc_claims] for doc_claims in claims])
    if decomposition_output is not None:
        save_artifact(decomposition_output, baseline_to_decomposition(documents, claims))

    console.print(
        f"[green]Baseline[/green]: {sum(len(c) for c in claims)} claims from "
        f"{trace.documents} documents ({trace.failed} failed)"
    )
    console.print(f"[green]Claims saved to:[/green] {output}")


@app.command()
def summarize(
    artifact_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Coverage or entailment artifact"),
    kind: SummaryKind = typer.Option(SummaryKind.coverage, "--kind", "-k", help="Artifact kind"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the summary as JSON"),
) -> None:
    """Summarize a coverage or entailment artifact."""
    try:
        if kind == SummaryKind.coverage:
            summary = summarize_coverage(load_artifact(artifact_path, CoverageRecord))
        else:
            summary = summarize_entailment(load_artifact(artifact_path, EntailmentRecord))
    except StructuralError as e:
        _fail(str(e))

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    for key, value in summary.model_dump(exclude={"failed_sentences"}).items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                table.add_row(sub_key.replace("_", " ").title(), str(sub_value))
        else:
            table.add_row(key.replace("_", " ").title(), "N/A" if value is None else str(value))

    console.print(Panel.fit(f"[bold blue]{kind.value.title()} Summary[/bold blue]", border_style="blue"))
    console.print(table)

    if output is not None:
        save_json(output, summary.model_dump())
        console.print(f"\n[green]Summary saved to:[/green] {output}")


@app.command()
def info() -> None:
    """Display system information and configuration."""
    from claimify import __version__

    settings = get_settings()
    llm_settings = get_llm_settings()

    console.print(Panel.fit("[bold blue]Claimify[/bold blue]", border_style="blue"))

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Version", __version__)
    table.add_row("Provider", llm_settings.provider)
    table.add_row("LLM Model", llm_settings.model_name)
    table.add_row("Fallback Model", llm_settings.fallback_model_name or "-")
    table.add_row("Ollama URL", llm_settings.ollama_base_url)
    table.add_row("Temperature", str(llm_settings.temperature))
    table.add_row("Context Window", str(llm_settings.num_ctx))
    table.add_row("Max Attempts", str(llm_settings.max_attempts))
    table.add_row(
        "Selection Window",
        f"{settings.selection_preceding} before / {settings.selection_following} after",
    )
    table.add_row(
        "Disambiguation Window",
        f"{settings.disambiguation_preceding} before / {settings.disambiguation_following} after",
    )
    table.add_row("Max Concurrency", str(settings.max_concurrency))

    console.print(table)


def _display_summary(report: dict) -> None:
    """Display a summary of the run.

    Args:
        report: The generated report dict.
    """
    console.print("\n[bold]Run Summary[/bold]")
    console.print("-" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Count", justify="right")

    table.add_row("Documents", str(report.get("documents", 0)))
    table.add_row("Sentences", str(report.get("sentences", 0)))
    for stage_name, populated in report.get("populated_slots", {}).items():
        table.add_row(f"  {stage_name}", str(populated))
    table.add_row("Claims", str(len(report.get("claims", []))))

    console.print(table)

    coverage = report.get("coverage_summary")
    if coverage:
        console.print(
            f"\n[bold]Coverage[/bold] precision={coverage.get('precision')} "
            f"recall={coverage.get('recall')} f1={coverage.get('f1')}"
        )
    entailment = report.get("entailment_summary")
    if entailment:
        console.print(f"[bold]Entailment rate[/bold] {entailment.get('entailment_rate')}")

    warnings = report.get("warnings", [])
    if warnings:
        console.print(f"\n[yellow]Warnings:[/yellow] {len(warnings)}")

    processing = report.get("processing", {})
    console.print(f"\n[dim]{processing.get('llm_calls_made', 0)} LLM calls[/dim]")


if __name__ == "__main__":
    app()
