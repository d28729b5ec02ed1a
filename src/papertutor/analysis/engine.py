"""
Paper Analyzer for PaperTutor.

Drives a paper through the model one chunk at a time and merges the
per-chunk replies into a single explanation of the paper.

Chunk 0 is special: it alone carries the document-level fields
(overview, complexity, reading time, generated title). Every chunk
contributes sections and key concepts. The merge is a fold over the
chunk sequence with an immutable accumulator, so nothing is shared
between analyses and a failed call discards everything gathered so far.
"""

import json
import re
import time
from dataclasses import dataclass, field
from pathlib import Path

from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from papertutor.analysis.cost import UsageTotals, round_cost
from papertutor.analysis.llm_client import LLMClient, LLMResponse, get_client
from papertutor.analysis.prompts import EXPLAIN_SECTION, GENERATE_TITLE, chunk_prompts
from papertutor.config import settings
from papertutor.console import console
from papertutor.errors import AnalysisError
from papertutor.ingestion import (
    ParsedDocument,
    TextChunk,
    chunk_text,
    extract_pdf,
    fetch_arxiv,
    parse_arxiv_id,
)

COMPLEXITY_LEVELS = ("Beginner", "Intermediate", "Advanced")

DEFAULT_TITLE = "Research Paper"
DEFAULT_OVERVIEW = "No overview available."
DEFAULT_COMPLEXITY = "Advanced"
DEFAULT_READING_TIME = "20 min"
DEFAULT_SECTION_TITLE = "Untitled Section"
NO_EXPLANATION = "Unable to generate explanation"

# Generated titles are kept only when strictly inside these bounds
TITLE_MIN_CHARS = 10
TITLE_MAX_CHARS = 150
TITLE_PROMPT_CONCEPTS = 5

SECTION_MAX_TOKENS = 1000

FENCE_REGEX = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)
OBJECT_REGEX = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class ExplainedSection:
    """One section of the paper with the model's explanation."""

    id: str
    title: str
    original_content: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "originalContent": self.original_content,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class ChunkAnalysis:
    """The model's reply for one chunk, with fallbacks applied."""

    chunk_index: int
    sections: tuple[ExplainedSection, ...] = ()
    key_concepts: tuple[str, ...] = ()
    # Chunk 0 only
    overview: str | None = None
    complexity: str | None = None
    reading_time: str | None = None
    generated_title: str | None = None


@dataclass(frozen=True)
class PaperAnalysisResult:
    """The merged explanation of a whole paper."""

    title: str
    overview: str
    sections: tuple[ExplainedSection, ...]
    key_concepts: tuple[str, ...]
    complexity: str
    reading_time: str
    total_tokens: int
    estimated_cost: float
    analysis_time: str
    chunks_processed: int = 0
    model_used: str = ""

    def to_dict(self) -> dict:
        """JSON-ready form handed to storage and HTTP layers."""
        return {
            "title": self.title,
            "overview": self.overview,
            "sections": [section.to_dict() for section in self.sections],
            "keyConcepts": list(self.key_concepts),
            "complexity": self.complexity,
            "readingTime": self.reading_time,
            "totalTokens": self.total_tokens,
            "estimatedCost": self.estimated_cost,
            "analysisTime": self.analysis_time,
        }

    def display(self) -> None:
        """Display the analysis in the console."""
        console.print(Panel(
            Markdown(self.overview),
            title=f"[bold]{self.title}[/bold]",
            subtitle=f"{self.complexity} · {self.reading_time}",
            border_style="cyan",
        ))

        if self.key_concepts:
            console.print("[bold]Key concepts:[/bold] " + ", ".join(self.key_concepts))

        for section in self.sections:
            console.print(Panel(
                Markdown(section.explanation),
                title=f"[bold]{section.title}[/bold]",
                border_style="dim",
            ))

        console.print(
            f"[dim]{self.chunks_processed} chunks · {self.total_tokens:,} tokens · "
            f"${self.estimated_cost:.4f} · {self.analysis_time}[/dim]"
        )

    def __repr__(self) -> str:
        return (
            f"PaperAnalysisResult({self.title!r}, {len(self.sections)} sections, "
            f"{len(self.key_concepts)} concepts)"
        )


@dataclass(frozen=True)
class SectionExplanation:
    """A standalone explanation of one section."""

    section_title: str
    explanation: str
    total_tokens: int
    estimated_cost: float


@dataclass(frozen=True)
class _Accumulator:
    """Running merge state threaded through the chunk loop."""

    first: ChunkAnalysis | None = None
    sections: tuple[ExplainedSection, ...] = ()
    key_concepts: tuple[str, ...] = ()
    usage: UsageTotals = field(default_factory=UsageTotals)

    def absorb(
        self,
        result: ChunkAnalysis,
        response: LLMResponse,
        input_rate: float | None = None,
        output_rate: float | None = None,
    ) -> "_Accumulator":
        return _Accumulator(
            first=self.first if self.first is not None else result,
            sections=self.sections + result.sections,
            key_concepts=self.key_concepts + result.key_concepts,
            usage=self.usage.add(
                response.prompt_tokens,
                response.completion_tokens,
                input_rate,
                output_rate,
            ),
        )


def parse_json_reply(content: str) -> dict:
    """
    Recover a JSON object from a model reply.

    Tolerates Markdown code fences and text around the object.

    Raises:
        AnalysisError: If no JSON object can be recovered
    """
    text = (content or "").strip()
    fenced = FENCE_REGEX.match(text)
    if fenced:
        text = fenced.group(1)

    candidates = [text]
    embedded = OBJECT_REGEX.search(text)
    if embedded and embedded.group(0) != text:
        candidates.append(embedded.group(0))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise AnalysisError(f"Model returned malformed JSON: {text[:200]!r}")


def _text_field(data: dict, key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize_complexity(value: str | None) -> str:
    """Map a reported complexity onto Beginner/Intermediate/Advanced."""
    if value:
        lowered = value.strip().lower()
        for level in COMPLEXITY_LEVELS:
            if lowered == level.lower():
                return level
    return DEFAULT_COMPLEXITY


def _parse_sections(raw, chunk_index: int) -> tuple[ExplainedSection, ...]:
    if not isinstance(raw, list):
        return ()

    sections = []
    for position, item in enumerate(raw, 1):
        if not isinstance(item, dict):
            continue
        sections.append(ExplainedSection(
            id=_text_field(item, "id") or f"section_{chunk_index}_{position}",
            title=_text_field(item, "title") or DEFAULT_SECTION_TITLE,
            original_content=_text_field(item, "originalContent") or "",
            explanation=_text_field(item, "explanation") or "",
        ))
    return tuple(sections)


def _parse_concepts(raw) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(c.strip() for c in raw if isinstance(c, str) and c.strip())


def parse_chunk_reply(data: dict, chunk_index: int) -> ChunkAnalysis:
    """
    Turn one chunk's JSON reply into a ChunkAnalysis.

    Missing or mistyped fields become empty lists or fixed fallbacks;
    document-level fields are read for chunk 0 only.
    """
    sections = _parse_sections(data.get("sections"), chunk_index)
    key_concepts = _parse_concepts(data.get("keyConcepts"))

    if chunk_index != 0:
        return ChunkAnalysis(
            chunk_index=chunk_index,
            sections=sections,
            key_concepts=key_concepts,
        )

    return ChunkAnalysis(
        chunk_index=chunk_index,
        sections=sections,
        key_concepts=key_concepts,
        overview=_text_field(data, "overview") or DEFAULT_OVERVIEW,
        complexity=normalize_complexity(_text_field(data, "complexity")),
        reading_time=_text_field(data, "readingTime") or DEFAULT_READING_TIME,
        generated_title=_text_field(data, "generatedTitle"),
    )


def dedupe_concepts(concepts, limit: int | None = None) -> tuple[str, ...]:
    """Drop repeated concepts (first occurrence wins) and truncate."""
    limit = settings.max_key_concepts if limit is None else limit
    unique = tuple(dict.fromkeys(concepts))
    return unique[:limit]


def clean_title(title: str | None) -> str | None:
    if not title:
        return None
    return title.strip().strip("\"'*").strip() or None


def is_usable_title(title: str | None) -> bool:
    return title is not None and TITLE_MIN_CHARS < len(title) < TITLE_MAX_CHARS


def format_elapsed(seconds: float) -> str:
    return f"{seconds:.1f}s"


class Analyzer:
    """
    Chunked paper explainer.

    Holds no per-analysis state, so one Analyzer may serve any number of
    independent analyses.
    """

    def __init__(
        self,
        client: LLMClient | None = None,
        max_key_concepts: int | None = None,
        input_rate: float | None = None,
        output_rate: float | None = None,
        max_output_tokens: int | None = None,
        title_max_tokens: int | None = None,
    ):
        """
        Initialize the analyzer.

        Args:
            client: LLM client to use (default: shared client). Anything with
                a compatible generate() method works.
            max_key_concepts: Key concepts kept after merging (default from settings)
            input_rate: USD per million input tokens (default from settings)
            output_rate: USD per million output tokens (default from settings)
            max_output_tokens: Output cap for each chunk call (default from settings)
            title_max_tokens: Output cap for the title call (default from settings)
        """
        self.client = client or get_client()
        self.max_key_concepts = settings.max_key_concepts if max_key_concepts is None else max_key_concepts
        self.input_rate = input_rate
        self.output_rate = output_rate
        self.max_output_tokens = settings.max_output_tokens if max_output_tokens is None else max_output_tokens
        self.title_max_tokens = settings.title_max_tokens if title_max_tokens is None else title_max_tokens

    @property
    def model(self) -> str:
        return getattr(self.client, "model", "")

    def _call(
        self,
        prompt: str,
        system: str,
        what: str,
        json_format: bool = False,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """One model call; any failure becomes an AnalysisError."""
        try:
            return self.client.generate(
                prompt,
                system=system,
                json_format=json_format,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise AnalysisError(f"Failed to analyze paper ({what}): {e}") from e

    def analyze_chunk(
        self,
        chunk: TextChunk,
        title: str | None = None,
        authors: str | None = None,
    ) -> tuple[ChunkAnalysis, LLMResponse]:
        """
        Explain one chunk.

        Returns:
            Tuple of (parsed chunk analysis, raw response for accounting)
        """
        system_prompt, user_prompt = chunk_prompts(
            chunk.text,
            chunk_index=chunk.chunk_index,
            total_chunks=chunk.total_chunks,
            title=title,
            authors=authors,
        )

        response = self._call(
            user_prompt,
            system_prompt,
            what=f"chunk {chunk.chunk_index + 1}/{chunk.total_chunks}",
            json_format=True,
            max_tokens=self.max_output_tokens,
        )

        data = parse_json_reply(response.content)
        return parse_chunk_reply(data, chunk.chunk_index), response

    def generate_title(
        self,
        overview: str,
        key_concepts: tuple[str, ...],
    ) -> tuple[str | None, LLMResponse]:
        """Ask the model for a polished title from the overview and leading concepts."""
        system_prompt, user_prompt = GENERATE_TITLE.format(
            overview=overview,
            concepts=", ".join(key_concepts[:TITLE_PROMPT_CONCEPTS]),
        )
        response = self._call(
            user_prompt,
            system_prompt,
            what="title generation",
            max_tokens=self.title_max_tokens,
        )
        return clean_title(response.content), response

    def analyze_text(
        self,
        full_text: str,
        title: str | None = None,
        authors: str | None = None,
        max_tokens: int | None = None,
        generate_title: bool = True,
        verbose: bool = True,
    ) -> PaperAnalysisResult:
        """
        Explain a paper's text chunk by chunk and merge the results.

        Args:
            full_text: The paper body
            title: Document title (kept unless a usable one is generated)
            authors: Author string passed along in the prompts
            max_tokens: Chunking budget (default from settings)
            generate_title: Allow one extra call for a title when chunk 0
                did not supply a usable one
            verbose: Show progress

        Returns:
            PaperAnalysisResult

        Raises:
            AnalysisError: If the text is empty or any model call fails
        """
        started = time.monotonic()

        if not full_text or not full_text.strip():
            raise AnalysisError("No text to analyze")

        chunks = chunk_text(full_text, max_tokens=max_tokens)
        original_title = title or DEFAULT_TITLE

        if verbose:
            console.print(
                f"[cyan]Explaining[/cyan] {original_title} "
                f"[dim]({len(chunks)} chunk{'s' if len(chunks) != 1 else ''})[/dim]"
            )

        acc = _Accumulator()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
            disable=not verbose,
        ) as progress:
            task = progress.add_task("Analyzing...", total=len(chunks))

            for chunk in chunks:
                progress.update(
                    task,
                    description=f"Analyzing part {chunk.chunk_index + 1} of {chunk.total_chunks}...",
                )
                result, response = self.analyze_chunk(chunk, title=title, authors=authors)
                acc = acc.absorb(result, response, self.input_rate, self.output_rate)
                progress.advance(task)

            first = acc.first
            key_concepts = dedupe_concepts(acc.key_concepts, self.max_key_concepts)
            usage = acc.usage
            final_title = original_title

            if is_usable_title(clean_title(first.generated_title)):
                final_title = clean_title(first.generated_title)
            elif generate_title and acc.sections:
                progress.update(task, description="Generating title...")
                candidate, response = self.generate_title(first.overview, key_concepts)
                usage = usage.add(
                    response.prompt_tokens,
                    response.completion_tokens,
                    self.input_rate,
                    self.output_rate,
                )
                if is_usable_title(candidate):
                    final_title = candidate

        result = PaperAnalysisResult(
            title=final_title,
            overview=first.overview,
            sections=acc.sections,
            key_concepts=key_concepts,
            complexity=first.complexity,
            reading_time=first.reading_time,
            total_tokens=usage.total_tokens,
            estimated_cost=round_cost(usage.cost),
            analysis_time=format_elapsed(time.monotonic() - started),
            chunks_processed=len(chunks),
            model_used=self.model,
        )

        if verbose:
            console.print(
                f"[green]✓[/green] Complete: {len(result.sections)} sections, "
                f"{result.total_tokens:,} tokens, ${result.estimated_cost:.4f}"
            )

        return result

    def analyze_document(self, paper: ParsedDocument, **kwargs) -> PaperAnalysisResult:
        """Explain an already extracted paper."""
        return self.analyze_text(
            paper.full_text,
            title=paper.title,
            authors=paper.authors,
            **kwargs,
        )

    def analyze(
        self,
        source: bytes | Path | str,
        title_hint: str | None = None,
        authors_hint: str | None = None,
        verbose: bool = True,
        **kwargs,
    ) -> PaperAnalysisResult:
        """
        Extract and explain a paper from PDF bytes, a PDF path or an arXiv reference.

        Hints override the extracted title and authors.

        Raises:
            ValueError: If a string source is neither a file nor an arXiv reference
            ExtractionError: If the paper cannot be fetched or extracted
            AnalysisError: If any model call fails
        """
        if isinstance(source, (bytes, bytearray)):
            paper = extract_pdf(bytes(source), verbose=verbose)
        elif Path(source).exists():
            paper = extract_pdf(Path(source), verbose=verbose)
        elif parse_arxiv_id(str(source)):
            paper = fetch_arxiv(str(source), verbose=verbose, show_progress=verbose)
        else:
            raise ValueError(f"Not a PDF file or arXiv reference: {source}")

        return self.analyze_text(
            paper.full_text,
            title=title_hint or paper.title,
            authors=authors_hint or paper.authors,
            verbose=verbose,
            **kwargs,
        )

    def explain_section(
        self,
        section_title: str,
        content: str,
        paper_context: str = "",
        verbose: bool = False,
    ) -> SectionExplanation:
        """
        Explain a single section in depth.

        Args:
            section_title: Heading of the section
            content: Section text
            paper_context: Short description of the paper (e.g. its overview)
            verbose: Show progress

        Raises:
            AnalysisError: If the model call fails
        """
        if verbose:
            console.print(f"[cyan]{EXPLAIN_SECTION.description}[/cyan]: {section_title}...")

        system_prompt, user_prompt = EXPLAIN_SECTION.format(
            section_title=section_title,
            paper_context=paper_context or "Not provided",
            context=content,
        )
        response = self._call(
            user_prompt,
            system_prompt,
            what=f"section '{section_title}'",
            max_tokens=SECTION_MAX_TOKENS,
        )
        usage = UsageTotals().add(
            response.prompt_tokens,
            response.completion_tokens,
            self.input_rate,
            self.output_rate,
        )

        if verbose:
            console.print("[green]✓[/green] Complete")

        return SectionExplanation(
            section_title=section_title,
            explanation=response.content.strip() or NO_EXPLANATION,
            total_tokens=usage.total_tokens,
            estimated_cost=usage.rounded_cost,
        )


# Convenience functions
_default_analyzer: Analyzer | None = None


def get_analyzer() -> Analyzer:
    """Get or create the default analyzer."""
    global _default_analyzer
    if _default_analyzer is None:
        _default_analyzer = Analyzer()
    return _default_analyzer


def analyze(source: bytes | Path | str, title_hint: str | None = None,
            authors_hint: str | None = None, **kwargs) -> PaperAnalysisResult:
    """Extract and explain a paper using the default analyzer."""
    return get_analyzer().analyze(source, title_hint=title_hint, authors_hint=authors_hint, **kwargs)


def analyze_text(full_text: str, **kwargs) -> PaperAnalysisResult:
    """Explain raw paper text using the default analyzer."""
    return get_analyzer().analyze_text(full_text, **kwargs)


def explain_section(section_title: str, content: str, **kwargs) -> SectionExplanation:
    """Explain one section using the default analyzer."""
    return get_analyzer().explain_section(section_title, content, **kwargs)
