"""Main CLI interface using Typer."""

import asyncio
import json
import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table

from linguini import __version__
from linguini.core.exceptions import LinguiniError
from linguini.core.models import ExtractedText, AnnotationResult
from linguini.core.pipeline import AnnotationPipeline
from linguini.language.codes import display_name
from linguini.language.detector import LanguageDetector
from linguini.text.extract import extract_plain_text
from linguini.text.segmenter import segment_text, GRANULARITIES
from linguini.translation.backends import BACKENDS
from linguini.utils.config_loader import load_config, config_from_dict
from linguini.utils.logger import setup_logger
from linguini.utils.progress import SnapshotReporter

app = typer.Typer(
    name="linguini",
    help="Linguini: phrase-level translation annotations for reading",
    add_completion=False
)

console = Console()


def _read_input(input_file: Path) -> str:
    if not input_file.exists():
        console.print(f"[red]Error: Input file not found: {input_file}[/red]")
        raise typer.Exit(1)
    return input_file.read_text(encoding="utf-8")


@app.command()
def annotate(
    input_file: Path = typer.Argument(..., help="Text or HTML file to annotate"),
    target_lang: Optional[str] = typer.Option(None, "-t", "--target", help="Reader's language (e.g. en-US, fr)"),
    source_lang: Optional[str] = typer.Option(None, "-s", "--source", help="Declared source language (detected if omitted)"),
    backend: Optional[str] = typer.Option(None, "-b", "--backend", help="Translation backend (local/free/openai)"),
    model: Optional[str] = typer.Option(None, "-m", "--model", help="Model name for LLM backends"),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Translation calls in flight per batch"),
    granularity: Optional[str] = typer.Option(None, "--granularity", help="Segment granularity (word/line)"),
    config_file: Optional[Path] = typer.Option(None, "-c", "--config", help="YAML configuration file"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    debug_mode: bool = typer.Option(False, "--debug/--no-debug", help="Enable debug logging"),
):
    """Annotate a document with phrase-level translations."""

    content = _read_input(input_file)

    try:
        settings = load_config(str(config_file) if config_file else None)
        config = config_from_dict(settings)
        if backend:
            config.backend = backend
            config.api_key = settings.get("api_keys", {}).get(backend.lower()) or None
        if model:
            config.model_name = model
        if batch_size is not None:
            config.batch_size = batch_size
        if granularity:
            config.segment_granularity = granularity

        log_file = settings.get("logging", {}).get("file")
        setup_logger(level="DEBUG" if debug_mode else config.log_level, log_file=log_file)

        target = target_lang or settings["translation"]["target_language"]
        extracted = ExtractedText(content=content, language=source_lang, title=input_file.stem)
        pipeline = AnnotationPipeline(config=config)

        if not as_json:
            console.print("[bold blue]Linguini Annotation[/bold blue]")
            console.print(f"Input: {input_file}")
            console.print(f"Target: {display_name(target)} ({target})")
            console.print(f"Backend: {config.backend}\n")

        result = asyncio.run(_run_annotation(pipeline, extracted, target, show_progress=not as_json))

    except LinguiniError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        if e.suggestion:
            console.print(f"[dim]{e.suggestion}[/dim]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
        return

    _display_result(result)


async def _run_annotation(
    pipeline: AnnotationPipeline,
    extracted: ExtractedText,
    target: str,
    show_progress: bool
) -> AnnotationResult:
    try:
        stream = pipeline.stream(extracted, target)
        with SnapshotReporter(use_rich=show_progress) as reporter:
            async for snapshot in stream:
                reporter.update(snapshot)
        return stream.result
    finally:
        await pipeline.close()


def _display_result(result: AnnotationResult):
    """Display annotated chunks and run metrics."""
    mode = "simplify" if result.is_simplify_mode else "translate"
    console.print(
        f"\n[bold]Detected language:[/bold] {display_name(result.detected_language)} "
        f"({result.detected_language}), mode: {mode}"
    )
    if result.language_confidence_degraded:
        console.print("[yellow]⚠ Language could not be detected; assumed the target language[/yellow]")

    chunks_table = Table(title="Annotated Chunks", show_header=True, header_style="bold cyan")
    chunks_table.add_column("Span", justify="right", width=11)
    chunks_table.add_column("Text", style="white")
    chunks_table.add_column("Literal", style="green")
    chunks_table.add_column("Contextual", style="magenta")
    chunks_table.add_column("Type", style="dim")

    for chunk in result.chunks:
        span = f"{chunk.start}-{chunk.end}" + ("" if chunk.offset_exact else "~")
        contextual = chunk.translation.contextual if chunk.translation.differs else ""
        style = "yellow" if chunk.degraded else None
        chunks_table.add_row(
            span,
            chunk.text,
            chunk.translation.literal,
            contextual,
            chunk.chunk_type.value,
            style=style
        )

    console.print(chunks_table)

    metrics = result.metrics
    console.print(
        f"\n[green]✓[/green] {len(result.chunks)} chunks in {metrics.total_ms or 0:.0f}ms "
        f"({metrics.batches} batches, {metrics.fallback_count} fallbacks, "
        f"{metrics.failed_segments} failed segments)"
    )


@app.command()
def detect(
    input_file: Path = typer.Argument(..., help="Text or HTML file"),
    declared: Optional[str] = typer.Option(None, "--declared", help="Declared language tag to try first"),
):
    """Detect the language of a document."""

    plain = extract_plain_text(_read_input(input_file))
    result = asyncio.run(LanguageDetector().detect(plain, declared))

    if not result.succeeded:
        console.print("[yellow]✗ Language could not be detected[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {display_name(result.language)} ({result.language})")
    console.print(f"  Method: {result.method}")
    console.print(f"  Confidence: {result.confidence:.2f}")


@app.command()
def segment(
    input_file: Path = typer.Argument(..., help="Text or HTML file"),
    language: Optional[str] = typer.Option(None, "-l", "--language", help="Language code (detected if omitted)"),
    granularity: str = typer.Option("word", "--granularity", help="Segment granularity (word/line)"),
):
    """Show how a document is split into segments."""

    if granularity not in GRANULARITIES:
        console.print(f"[red]Error: granularity must be one of {', '.join(GRANULARITIES)}[/red]")
        raise typer.Exit(1)

    plain = extract_plain_text(_read_input(input_file))
    if language is None:
        language = asyncio.run(LanguageDetector().detect(plain)).language

    segments = segment_text(plain, language, granularity)

    segments_table = Table(title=f"Segments ({language})", show_header=True, header_style="bold cyan")
    segments_table.add_column("#", justify="right")
    segments_table.add_column("Span", justify="right")
    segments_table.add_column("Text")
    segments_table.add_column("Target", justify="center")

    for index, seg in enumerate(segments):
        if seg.is_blank:
            continue
        segments_table.add_row(
            str(index),
            f"{seg.start}-{seg.end}",
            seg.text,
            "✓" if seg.is_target_language else "[dim]✗[/dim]"
        )

    console.print(segments_table)


@app.command()
def backends():
    """List available translation backends."""

    settings = load_config()
    api_keys = settings.get("api_keys", {})

    console.print("\n[bold]Available Translation Backends[/bold]\n")

    for name, backend_class in BACKENDS.items():
        try:
            backend = backend_class(api_key=api_keys.get(name) or None)
            available = backend.is_available()
            status = "✓ Available" if available else "✗ Not configured"
            color = "green" if available else "yellow"
            console.print(f"[{color}]{status}[/{color}] {name} ({backend.model})")
        except Exception as e:
            console.print(f"[red]✗ Error[/red] {name}: {str(e)}")


@app.command()
def version():
    """Show the installed version."""
    console.print(f"linguini {__version__}")


def cli():
    """Main CLI entry point."""
    import sys
    if len(sys.argv) == 1:
        console.print(f"[bold blue]Linguini[/bold blue] {__version__}")
        console.print("\n[dim]Type 'linguini --help' for usage information[/dim]\n")
        return

    app()


if __name__ == "__main__":
    cli()
