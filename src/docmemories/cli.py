"""Command line interface for docmemories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docmemories.config import AppConfig
from docmemories.embedding.encoder import EmbeddingConfig, EmbeddingModel
from docmemories.errors import DocMemoriesError
from docmemories.extraction.inference import ClaudeCLI
from docmemories.index.search import Searcher
from docmemories.index.storage import SQLiteVectorStore
from docmemories.ingestion.candidates import SectionStrategy, describe
from docmemories.models import Candidate, Document, RawExtractionResult
from docmemories.pipeline import run_pipeline


console = Console()
app = typer.Typer(help="docmemories - extract reusable coding advice from documentation")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _print_progress(
    candidate: Candidate,
    result: Optional[List[RawExtractionResult]],
    completed: int,
    total: int,
) -> None:
    status = "✗" if result is None else ("✓" if result else "⊘")
    console.print(f"[{completed}/{total}] {candidate.source} - {candidate.label} {status}", markup=False)


@app.command()
def extract(
    source: Path = typer.Argument(..., help="Directory containing markdown docs."),
    output: str = typer.Option(
        AppConfig().output, "--output", "-o", help="JSONL path, or sqlite://<path> for a vector store"
    ),
    model: str = typer.Option(AppConfig().model, "--model", "-m", help="Model passed to the claude CLI"),
    concurrency: int = typer.Option(AppConfig().concurrency, "--concurrency", "-c", help="Parallel extractions"),
    strategy: str = typer.Option(AppConfig().strategy, help="Candidate strategy: sections or chunks"),
    chunk_size: int = typer.Option(AppConfig().chunk_chars, "--chunk-size", help="Chunk size in characters"),
    overlap: int = typer.Option(AppConfig().overlap, help="Chunk overlap"),
    timeout: float = typer.Option(AppConfig().timeout, help="Timeout per call in seconds"),
    claude_path: str = typer.Option(AppConfig().claude_path, "--claude-path", help="Path to the claude CLI"),
    embed_field: str = typer.Option(AppConfig().embed_field, help="Embedded text: text or text+context"),
    embedding_model: str = typer.Option(AppConfig().embedding_model, help="Sentence-transformer model name"),
    table: str = typer.Option(AppConfig().table, help="Vector store table name"),
    no_provenance: bool = typer.Option(False, "--no-provenance", help="Do not append source to advice"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List candidates without calling the model"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging and per-candidate progress"),
) -> None:
    """Extract memories from a documentation directory."""
    _setup_logging(verbose)
    try:
        config = AppConfig(
            source_dir=source,
            output=output,
            model=model,
            concurrency=concurrency,
            strategy=strategy,
            chunk_chars=chunk_size,
            overlap=overlap,
            timeout=timeout,
            claude_path=claude_path,
            embedding_model=embedding_model,
            embed_field=embed_field,
            table=table,
            include_provenance=not no_provenance,
            dry_run=dry_run,
            verbose=verbose,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    console.print(f"Scanning docs in [bold]{escape(str(source))}[/bold]...")
    try:
        result = run_pipeline(
            config,
            ClaudeCLI(config.claude_path, extra_args=["--dangerously-skip-permissions"]),
            embedder_factory=lambda: EmbeddingModel(EmbeddingConfig(model_name=config.embedding_model)),
            progress=_print_progress if verbose else None,
        )
    except DocMemoriesError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=exc.exit_code) from exc

    stats = result.stats
    if dry_run:
        console.print(f"Found {stats.candidates} candidates in {stats.documents} documents")
        console.print("Dry run - would extract from these candidates:")
        for line in describe(result.candidates):
            console.print(f"  {line}", markup=False)
        return

    console.print(
        f"Candidates: {stats.candidates}, extracted: {stats.extracted}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}"
    )
    target_path = escape(str(result.target.path))
    console.print(f"Wrote {result.written} unique memories to [bold]{target_path}[/bold]")


@app.command()
def analyze(
    path: Path = typer.Argument(..., help="Markdown file to analyze.", exists=True, dir_okay=False),
) -> None:
    """Show which sections of a document would be sent for extraction."""
    text = path.read_text(encoding="utf-8", errors="replace")
    document = Document(path=path, source=path.name, text=text)
    report = SectionStrategy().analyze(document)
    if not report:
        console.print("[yellow]No sections found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Level")
    table.add_column("Title")
    table.add_column("Extract")
    table.add_column("Reason")

    for section, decision in report:
        table.add_row(
            f"H{section.level}",
            escape(section.title),
            "yes" if decision.accepted else "no",
            decision.reason,
        )

    console.print(table)
    accepted = sum(1 for _, decision in report if decision.accepted)
    console.print(f"{accepted}/{len(report)} sections to extract")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    db: Path = typer.Option(..., "--db", help="SQLite memory store path"),
    table: str = typer.Option(AppConfig().table, help="Vector store table name"),
    embedding_model: str = typer.Option(AppConfig().embedding_model, help="Sentence-transformer model name"),
    top_k: int = typer.Option(5, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Query memories stored in a vector store."""
    _setup_logging(verbose)
    if not db.exists():
        raise typer.BadParameter(f"Database not found: {db}")

    embedder = EmbeddingModel(EmbeddingConfig(model_name=embedding_model))
    store = SQLiteVectorStore(db, dimension=embedder.dimension)
    try:
        if not store.table_exists(table):
            console.print(f"[yellow]Table {table} not found.[/yellow]")
            return
        results = Searcher(embedder, store, table=table).search(query, top_k=top_k)
    finally:
        store.close()

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table_view = Table(show_header=True, header_style="bold magenta")
    table_view.add_column("Score")
    table_view.add_column("Source")
    table_view.add_column("Text")
    table_view.add_column("Advice")

    for result in results:
        advice = result.context.replace("\n", " ")
        table_view.add_row(f"{result.score:.4f}", result.source, result.text, advice[:180])

    console.print(table_view)
