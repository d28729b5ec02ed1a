"""
PaperTutor Command Line Interface.

Explain research papers from a PDF or arXiv.
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from papertutor import __version__
from papertutor.console import console
from papertutor.errors import PaperTutorError

app = typer.Typer(
    name="papertutor",
    help="📄 PaperTutor - research paper explanations, one chunk at a time",
    add_completion=False,
    rich_markup_mode="rich",
)

SOURCE_HELP = "Path to a PDF, or an arXiv ID/URL (e.g. '1706.03762' or 'https://arxiv.org/abs/1706.03762')."


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"[bold cyan]PaperTutor[/bold cyan] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """
    📄 PaperTutor - research paper explanations, one chunk at a time

    Extract a paper, split it into token-bounded chunks and explain every part.
    """
    pass


def _load_paper(source: str, verbose: bool = True):
    """Extract a paper from a local PDF or an arXiv reference."""
    from papertutor.ingestion import extract_pdf, fetch_arxiv, parse_arxiv_id

    path = Path(source)
    if path.exists():
        return extract_pdf(path, verbose=verbose)
    if parse_arxiv_id(source):
        return fetch_arxiv(source, verbose=verbose, show_progress=verbose)
    raise ValueError(f"Not a PDF file or arXiv reference: {source}")


def _fail(error: Exception) -> None:
    console.print(f"\n[red]✗ Error:[/red] {error}")
    raise typer.Exit(1)


# =============================================================================
# INGESTION COMMANDS
# =============================================================================

@app.command()
def extract(
    source: str = typer.Argument(..., help=SOURCE_HELP),
):
    """
    Show the title, authors, abstract and sections extracted from a paper.
    """
    try:
        paper = _load_paper(source)
    except (PaperTutorError, ValueError, OSError) as e:
        _fail(e)

    console.print(Panel(
        f"""[bold]Title:[/bold] {paper.title}
[bold]Authors:[/bold] {paper.authors}
[bold]Pages:[/bold] {paper.page_count}
[bold]Words:[/bold] {paper.word_count:,}

[bold]Abstract:[/bold]
{paper.abstract[:800]}""",
        title="[bold cyan]📄 Extracted Paper[/bold cyan]",
        border_style="cyan",
    ))

    if paper.sections:
        table = Table(title=f"{len(paper.sections)} sections")
        table.add_column("Page", style="cyan", justify="right")
        table.add_column("Section", style="white")
        table.add_column("Chars", style="green", justify="right")
        for section in paper.sections:
            table.add_row(str(section.page), section.title, f"{len(section.content):,}")
        console.print(table)


@app.command()
def chunks(
    source: str = typer.Argument(..., help=SOURCE_HELP),
    max_tokens: Optional[int] = typer.Option(
        None,
        "--max-tokens", "-t",
        help="Token budget per chunk (default from settings).",
    ),
):
    """
    Show how a paper would be split into chunks.
    """
    from papertutor.ingestion import chunk_document, estimate_tokens

    try:
        paper = _load_paper(source)
        paper_chunks = chunk_document(paper, max_tokens=max_tokens)
    except (PaperTutorError, ValueError, OSError) as e:
        _fail(e)

    table = Table(title=f"Created {len(paper_chunks)} chunks")
    table.add_column("Idx", style="cyan", width=4)
    table.add_column("Chars", style="green", justify="right")
    table.add_column("~Tokens", style="yellow", justify="right")
    table.add_column("Preview", style="white")

    for chunk in paper_chunks:
        preview = chunk.text[:70].replace("\n", " ") + "..."
        marker = " [red](forced)[/red]" if chunk.forced else ""
        table.add_row(
            str(chunk.chunk_index),
            f"{len(chunk.text):,}",
            f"{estimate_tokens(chunk.text):,}",
            preview + marker,
        )

    console.print(table)


# =============================================================================
# ANALYSIS COMMANDS
# =============================================================================

@app.command()
def analyze(
    source: str = typer.Argument(..., help=SOURCE_HELP),
    max_tokens: Optional[int] = typer.Option(
        None,
        "--max-tokens", "-t",
        help="Token budget per chunk (default from settings).",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON instead of formatted panels.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Also write the JSON result to this file.",
    ),
    no_title: bool = typer.Option(
        False,
        "--no-title",
        help="Skip the extra title-generation call.",
    ),
):
    """
    Explain a paper section by section with an LLM.

    Prints an overview, key concepts, per-section explanations and the cost.
    """
    from papertutor.analysis import get_analyzer

    verbose = not as_json

    try:
        paper = _load_paper(source, verbose=verbose)
        result = get_analyzer().analyze_document(
            paper,
            max_tokens=max_tokens,
            generate_title=not no_title,
            verbose=verbose,
        )
    except (PaperTutorError, ValueError, OSError) as e:
        _fail(e)

    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if output:
        output.write_text(payload, encoding="utf-8")

    if as_json:
        typer.echo(payload)
    else:
        console.print()
        result.display()
        if output:
            console.print(f"[green]✓[/green] Saved to {output}")


# =============================================================================
# INFO COMMANDS
# =============================================================================

@app.command()
def config():
    """
    Show current configuration.
    """
    from papertutor.config import settings

    console.print(Panel(
        f"""[bold]Ollama Host:[/bold] {settings.ollama_host}
[bold]LLM Model:[/bold] {settings.ollama_model}
[bold]Temperature:[/bold] {settings.model_temperature}
[bold]Context Length:[/bold] {settings.model_context_length:,}
[bold]Request Timeout:[/bold] {settings.request_timeout}s

[bold]Chunk Budget:[/bold] {settings.chunk_max_tokens:,} tokens ({settings.chars_per_token} chars/token)
[bold]Max Output:[/bold] {settings.max_output_tokens:,} tokens per chunk
[bold]Key Concepts:[/bold] {settings.max_key_concepts}

[bold]Pricing:[/bold] ${settings.input_cost_per_million:.2f} in / ${settings.output_cost_per_million:.2f} out per 1M tokens""",
        title="[bold cyan]⚙️ Configuration[/bold cyan]",
        border_style="cyan",
    ))


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
