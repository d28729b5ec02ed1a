"""
Text Chunking for PaperTutor.

Greedy packing of a document into chunks that fit an approximate token
budget. Paragraphs are kept whole where possible; an oversized paragraph
is packed sentence by sentence, and a single sentence larger than the
budget becomes its own (oversized) chunk.

Chunks are contiguous slices of the input, so the text between two
chunks is always just the separator the split happened on.
"""

import math
from dataclasses import dataclass

from papertutor.config import settings
from papertutor.console import console
from papertutor.ingestion.pdf_reader import ParsedDocument

# (separator, number of its leading characters kept with the preceding piece)
PARAGRAPH_SEPARATOR = ("\n\n", 0)
SENTENCE_SEPARATOR = (". ", 1)
SEPARATORS = (PARAGRAPH_SEPARATOR, SENTENCE_SEPARATOR)


@dataclass(frozen=True)
class TextChunk:
    """A contiguous slice of a document's text."""

    text: str
    start_pos: int
    end_pos: int
    chunk_index: int = 0
    total_chunks: int = 0
    separator: str = ""  # Original text between the previous chunk and this one
    forced: bool = False  # A single sentence over budget, emitted unmodified

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def metadata(self) -> dict:
        """Return chunk metadata for display/debugging."""
        return {
            "start_pos": self.start_pos,
            "end_pos": self.end_pos,
            "char_count": len(self.text),
            "word_count": self.word_count,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "forced": self.forced,
        }

    def __repr__(self) -> str:
        forced = ", forced" if self.forced else ""
        return f"TextChunk({self.chunk_index}/{self.total_chunks}, {len(self.text)} chars{forced})"


def estimate_tokens(text: str, chars_per_token: int | None = None) -> int:
    """Approximate token count from character length."""
    chars_per_token = settings.chars_per_token if chars_per_token is None else chars_per_token
    return math.ceil(len(text) / chars_per_token)


def max_chars_for(max_tokens: int, chars_per_token: int) -> int:
    """Character budget for a token budget."""
    if max_tokens <= 0:
        raise ValueError("max_tokens must be > 0")
    if chars_per_token <= 0:
        raise ValueError("chars_per_token must be > 0")
    return max_tokens * chars_per_token


def _split_spans(text: str, start: int, end: int, separator: tuple[str, int]) -> list[tuple[int, int]]:
    """Offsets of the pieces of text[start:end] between separators."""
    sep, keep = separator
    spans = []
    pos = start
    while True:
        idx = text.find(sep, pos, end)
        if idx == -1:
            spans.append((pos, end))
            return spans
        spans.append((pos, idx + keep))
        pos = idx + len(sep)


def _pack(
    text: str,
    start: int,
    end: int,
    max_chars: int,
    separators: tuple[tuple[str, int], ...],
) -> list[tuple[int, int, bool]]:
    """
    Greedily pack pieces of text[start:end] into spans of at most max_chars.

    Returns (start, end, forced) triples in order. An accumulating span
    always runs from its first piece to its last, separators included, so
    its length is exactly what the chunk will be.
    """
    separator, finer = separators[0], separators[1:]
    packed = []
    current = None

    for piece_start, piece_end in _split_spans(text, start, end, separator):
        if current is not None and piece_end - current[0] <= max_chars:
            current = (current[0], piece_end)
            continue

        if current is not None and current[1] > current[0]:
            packed.append((current[0], current[1], False))
        current = None

        if piece_end - piece_start <= max_chars:
            current = (piece_start, piece_end)
        elif finer:
            sub = _pack(text, piece_start, piece_end, max_chars, finer)
            if not sub:
                continue
            packed.extend(sub[:-1])
            last_start, last_end, forced = sub[-1]
            if forced:
                packed.append(sub[-1])
            else:
                # Left open so the following paragraph can join it
                current = (last_start, last_end)
        else:
            packed.append((piece_start, piece_end, True))

    if current is not None and current[1] > current[0]:
        packed.append((current[0], current[1], False))

    return packed


def chunk_text(
    text: str,
    max_tokens: int | None = None,
    chars_per_token: int | None = None,
) -> list[TextChunk]:
    """
    Split text into chunks that fit a token budget.

    Args:
        text: The text to chunk
        max_tokens: Token budget per chunk (default from settings)
        chars_per_token: Sizing ratio (default from settings)

    Returns:
        Ordered TextChunk list; empty only for empty text. Whitespace-only
        stretches between chunks are carried as separators, not chunks.
    """
    max_tokens = settings.chunk_max_tokens if max_tokens is None else max_tokens
    chars_per_token = settings.chars_per_token if chars_per_token is None else chars_per_token
    max_chars = max_chars_for(max_tokens, chars_per_token)

    if not text:
        return []

    if len(text) <= max_chars:
        return [TextChunk(
            text=text,
            start_pos=0,
            end_pos=len(text),
            chunk_index=0,
            total_chunks=1,
        )]

    spans = _pack(text, 0, len(text), max_chars, SEPARATORS)
    # Whitespace-only spans stay in the separators
    spans = [span for span in spans if text[span[0]:span[1]].strip()] or spans

    chunks = []
    previous_end = 0
    for i, (start, end, forced) in enumerate(spans):
        chunks.append(TextChunk(
            text=text[start:end],
            start_pos=start,
            end_pos=end,
            chunk_index=i,
            total_chunks=len(spans),
            separator=text[previous_end:start],
            forced=forced,
        ))
        previous_end = end

    return chunks


def reassemble(chunks: list[TextChunk]) -> str:
    """Rebuild the chunked text by reinserting the original separators."""
    return "".join(chunk.separator + chunk.text for chunk in chunks)


def chunk_document(
    paper: ParsedDocument,
    max_tokens: int | None = None,
    chars_per_token: int | None = None,
    verbose: bool = False,
) -> list[TextChunk]:
    """
    Chunk a parsed paper's full text.

    Args:
        paper: ParsedDocument to chunk
        max_tokens: Token budget per chunk (default from settings)
        chars_per_token: Sizing ratio (default from settings)
        verbose: Print progress messages

    Returns:
        List of TextChunk objects
    """
    chunks = chunk_text(paper.full_text, max_tokens=max_tokens, chars_per_token=chars_per_token)

    if verbose:
        total_tokens = sum(estimate_tokens(c.text, chars_per_token) for c in chunks)
        console.print(
            f"[green]✓[/green] Chunked [bold]{paper.title}[/bold]: "
            f"{len(chunks)} chunks (~{total_tokens:,} tokens)"
        )

    return chunks
