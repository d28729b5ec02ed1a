"""
Ingestion module for PaperTutor.

Handles PDF extraction, arXiv fetching, and text chunking.

# PDF Extraction
from papertutor.ingestion import extract_pdf

paper = extract_pdf("path/to/paper.pdf")     # or raw bytes
print(paper.title, paper.authors, paper.abstract, paper.sections)

# arXiv Fetching
from papertutor.ingestion import fetch_arxiv

# All these work:
paper = fetch_arxiv("1706.03762")
paper = fetch_arxiv("https://arxiv.org/abs/1706.03762")
paper = fetch_arxiv("arxiv.org/pdf/1706.03762.pdf")

# Text Chunking (4 chars/token budget, paragraph then sentence boundaries)
from papertutor.ingestion import chunk_document

chunks = chunk_document(paper, max_tokens=15000)

for chunk in chunks:
    print(chunk.chunk_index, len(chunk.text), chunk.forced)
"""

from papertutor.ingestion.pdf_reader import (
    TextFragment,
    DocumentSection,
    ParsedDocument,
    read_fragments,
    build_document,
    extract_pdf,
    is_pdf,
)
from papertutor.ingestion.arxiv_fetcher import (
    ArxivMetadata,
    fetch_arxiv,
    fetch_arxiv_metadata,
    parse_arxiv_id,
    validate_arxiv_url,
)
from papertutor.ingestion.chunker import (
    TextChunk,
    chunk_text,
    chunk_document,
    reassemble,
    estimate_tokens,
)

__all__ = [
    # PDF extraction
    "TextFragment",
    "DocumentSection",
    "ParsedDocument",
    "read_fragments",
    "build_document",
    "extract_pdf",
    "is_pdf",
    # arXiv
    "ArxivMetadata",
    "fetch_arxiv",
    "fetch_arxiv_metadata",
    "parse_arxiv_id",
    "validate_arxiv_url",
    # Chunking
    "TextChunk",
    "chunk_text",
    "chunk_document",
    "reassemble",
    "estimate_tokens",
]
