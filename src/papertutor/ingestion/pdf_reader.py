"""
PDF Text Extraction using PyMuPDF

Turns raw PDF bytes into positioned text fragments, then infers the
title, authors, abstract and section headings from fragment geometry
and text heuristics.

PDF layout carries no semantic tags, so everything past the byte parse
is best-effort: a heuristic miss degrades to a fallback value and never
raises. Only a parse that yields no pages or no text is an error.
"""

import re
from pathlib import Path
from dataclasses import dataclass

import pymupdf

from papertutor.console import console
from papertutor.errors import ExtractionError


PDF_MAGIC = b"%PDF"

UNTITLED = "Untitled Paper"
UNKNOWN_AUTHORS = "Unknown Authors"
NO_ABSTRACT = "No abstract found"

# Title heuristic thresholds
TITLE_MIN_CHARS = 5
TITLE_MAX_CHARS = 150
TITLE_MAX_WORDS = 15
TITLE_CANDIDATES = 15
TITLE_BLOCKLIST = ("arxiv", "preprint", "abstract")

# Author heuristic thresholds
AUTHORS_MIN_CHARS = 3
AUTHORS_MAX_CHARS = 200
AUTHORS_CANDIDATES = 20
AUTHORS_BLOCKLIST = ("university", "abstract")

# Optional "3." / "2.1" / "IV." marker, then a capitalized phrase on its own line
HEADING_REGEX = re.compile(
    r"^[ \t]*(?:(?:\d+(?:\.\d+)*\.?|[IVX]+\.?)[ \t]+)?([A-Z][A-Za-z &-]*?)[ \t]*$",
    re.MULTILINE,
)

ABSTRACT_REGEX = re.compile(
    r"\babstract\b\s*[:.\-]?\s*(.*?)"
    r"(?=\n\s*\n|\s(?:\d+\.?\s+|I\.?\s+)?introduction\b|\n\s*\d+\.?\s+[A-Z]|\skeywords?\b)",
    re.IGNORECASE | re.DOTALL,
)

NUMERIC_REGEX = re.compile(r"^[\d\s.,:;()\-]+$")


@dataclass(frozen=True)
class TextFragment:
    """One piece of text and its position on a page."""

    text: str
    x: float
    y: float  # Larger = higher on the page
    page: int  # 1-based


@dataclass(frozen=True)
class DocumentSection:
    """A detected (or synthesized) section within the paper."""

    title: str
    content: str
    page: int


@dataclass(frozen=True)
class ParsedDocument:
    """Container for extracted PDF content."""

    title: str
    authors: str
    abstract: str
    full_text: str
    sections: tuple[DocumentSection, ...] = ()
    page_count: int = 0

    @property
    def has_abstract(self) -> bool:
        return self.abstract != NO_ABSTRACT

    @property
    def word_count(self) -> int:
        return len(self.full_text.split())


def clean_text(text: str) -> str:
    """Clean extracted text by removing artifacts and normalizing whitespace."""
    # Remove hyphenation at line breaks
    text = re.sub(r"-\n", "", text)

    # Normalize whitespace (but preserve paragraph breaks)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)

    # Remove common PDF artifacts
    text = re.sub(r"\x00", "", text)  # Null bytes
    text = re.sub(r"[\x01-\x08\x0b\x0c\x0e-\x1f]", "", text)  # Control chars

    # Clean up ligatures that might not render properly
    ligatures = {"ﬁ": "fi", "ﬂ": "fl", "ﬀ": "ff", "ﬃ": "ffi", "ﬄ": "ffl"}
    for lig, replacement in ligatures.items():
        text = text.replace(lig, replacement)

    return text.strip()


def is_pdf(data: bytes) -> bool:
    """Check for the PDF magic number."""
    return data[:4] == PDF_MAGIC


def read_fragments(data: bytes) -> list[list[TextFragment]]:
    """
    Parse PDF bytes into per-page lists of positioned fragments.

    Each text line PyMuPDF reports becomes one fragment. PyMuPDF measures
    y downward from the top edge, so it is flipped against the page height.

    Raises:
        ExtractionError: If the bytes are not a readable PDF, are encrypted or have no pages
    """
    if not is_pdf(data):
        raise ExtractionError("Invalid PDF file: missing %PDF header")

    try:
        doc = pymupdf.open(stream=data, filetype="pdf")
    except (pymupdf.FileDataError, RuntimeError) as e:
        raise ExtractionError(f"Failed to parse PDF: {e}") from e

    pages = []
    with doc:
        if doc.needs_pass:
            raise ExtractionError("Failed to parse PDF: document is encrypted")
        if doc.page_count == 0:
            raise ExtractionError("Failed to extract content from PDF: no pages")

        for page_number, page in enumerate(doc, 1):
            height = page.rect.height
            fragments = []
            for block in page.get_text("dict")["blocks"]:
                if block.get("type") != 0:  # Images
                    continue
                for line in block["lines"]:
                    text = "".join(span["text"] for span in line["spans"])
                    if not text.strip():
                        continue
                    x0, y0, _, _ = line["bbox"]
                    fragments.append(TextFragment(
                        text=text,
                        x=x0,
                        y=height - y0,
                        page=page_number,
                    ))
            pages.append(fragments)

    return pages


def join_pages(pages: list[list[TextFragment]]) -> str:
    """Space-join fragments within a page and newline-join the pages."""
    page_texts = []
    for fragments in pages:
        page_texts.append(" ".join(f.text.strip() for f in fragments if f.text.strip()))
    return "\n".join(page_texts)


def _top_sorted(fragments: list[TextFragment]) -> list[TextFragment]:
    """Non-empty fragments ordered topmost first."""
    usable = [f for f in fragments if f.text.strip()]
    return sorted(usable, key=lambda f: f.y, reverse=True)


def _is_abbreviation(text: str) -> bool:
    compact = text.replace(" ", "")
    return text.isupper() and len(compact) <= 10


def _is_title_like(text: str) -> bool:
    lowered = text.lower()
    if any(word in lowered for word in TITLE_BLOCKLIST):
        return False
    if NUMERIC_REGEX.match(text):
        return False
    if _is_abbreviation(text):
        return False
    return 1 < len(text.split()) <= TITLE_MAX_WORDS


def _title_position(ordered: list[TextFragment]) -> int | None:
    """Index into `ordered` of the fragment chosen as title, if any."""
    inspected = 0
    for i, fragment in enumerate(ordered):
        text = fragment.text.strip()
        if not TITLE_MIN_CHARS <= len(text) <= TITLE_MAX_CHARS:
            continue
        inspected += 1
        if inspected > TITLE_CANDIDATES:
            break
        if _is_title_like(text):
            return i
    return None


def infer_title(first_page: list[TextFragment]) -> str:
    """
    Pick a title from the first page's fragments.

    Takes the topmost candidates of reasonable length and returns the first
    one that looks like prose: multi-word, not numeric, not an all-caps
    abbreviation, and not an arXiv/preprint/abstract banner.
    """
    ordered = _top_sorted(first_page)
    position = _title_position(ordered)
    if position is None:
        return UNTITLED
    return ordered[position].text.strip()


def infer_authors(first_page: list[TextFragment]) -> str:
    """
    Pick an author line from the first page's fragments.

    Authors are searched below the title (or from the top when no title was
    found) for a line that contains a space or comma and is not an
    affiliation or the abstract heading.
    """
    ordered = _top_sorted(first_page)
    position = _title_position(ordered)
    start = position + 1 if position is not None else 0

    for fragment in ordered[start:start + AUTHORS_CANDIDATES]:
        text = fragment.text.strip()
        if not AUTHORS_MIN_CHARS <= len(text) <= AUTHORS_MAX_CHARS:
            continue
        if " " not in text and "," not in text:
            continue
        lowered = text.lower()
        if any(word in lowered for word in AUTHORS_BLOCKLIST):
            continue
        return text

    return UNKNOWN_AUTHORS


def extract_abstract(text: str) -> str:
    """
    Attempt to extract the abstract from paper text.

    Matches from the word "abstract" up to a blank line, the introduction,
    a numbered section marker, or the keywords line.
    """
    match = ABSTRACT_REGEX.search(text)
    if match:
        abstract = clean_text(match.group(1))
        if abstract:
            return abstract
    return NO_ABSTRACT


def _page_at(text: str, pos: int) -> int:
    """1-based page of a character offset in newline-joined page text."""
    return text.count("\n", 0, pos) + 1


def detect_sections(text: str) -> tuple[DocumentSection, ...]:
    """
    Detect section headings and the text that follows each one.

    Falls back to blank-line separated blocks longer than 100 characters
    when no heading is found. Never returns None.
    """
    headings = []
    for match in HEADING_REGEX.finditer(text):
        title = match.group(1).strip()
        if 3 < len(title) < 100:
            headings.append((title, match.start(), match.end()))

    if headings:
        sections = []
        for i, (title, start, end) in enumerate(headings):
            stop = headings[i + 1][1] if i + 1 < len(headings) else len(text)
            sections.append(DocumentSection(
                title=title,
                content=clean_text(text[end:stop]),
                page=_page_at(text, start),
            ))
        return tuple(sections)

    sections = []
    pos = 0
    for block in re.split(r"(\n\s*\n)", text):
        if len(block.strip()) > 100:
            sections.append(DocumentSection(
                title=f"Section {len(sections) + 1}",
                content=block.strip(),
                page=_page_at(text, pos),
            ))
        pos += len(block)
    return tuple(sections)


def build_document(pages: list[list[TextFragment]]) -> ParsedDocument:
    """
    Derive a ParsedDocument from per-page fragments.

    Raises:
        ExtractionError: If there are no pages or no text on any page
    """
    if not pages:
        raise ExtractionError("Failed to extract content from PDF: no pages")

    full_text = join_pages(pages)
    if not full_text.strip():
        raise ExtractionError("Failed to extract content from PDF: no text found")

    first_page = pages[0]

    return ParsedDocument(
        title=infer_title(first_page),
        authors=infer_authors(first_page),
        abstract=extract_abstract(full_text),
        full_text=full_text,
        sections=detect_sections(full_text),
        page_count=len(pages),
    )


def extract_pdf(source: bytes | Path | str, verbose: bool = True) -> ParsedDocument:
    """
    Extract text and structure from a PDF.

    Args:
        source: Raw PDF bytes or a path to a PDF file
        verbose: Whether to print progress messages

    Returns:
        ParsedDocument with inferred title, authors, abstract and sections

    Raises:
        FileNotFoundError: If a path is given and does not exist
        ExtractionError: If the path is not a file or the PDF yields no pages or no text
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    else:
        filepath = Path(source)
        if not filepath.exists():
            raise FileNotFoundError(f"PDF not found: {filepath}")
        if not filepath.is_file():
            raise ExtractionError(f"Not a PDF file: {filepath}")
        data = filepath.read_bytes()

    paper = build_document(read_fragments(data))

    if verbose:
        console.print(f"[green]✓[/green] Extracted [bold]{paper.title}[/bold]")
        console.print(
            f"  └─ {paper.page_count} pages, {paper.word_count} words, "
            f"{len(paper.sections)} sections detected"
        )
        if paper.has_abstract:
            console.print(f"  └─ [dim]Abstract found ({len(paper.abstract)} chars)[/dim]")

    return paper
