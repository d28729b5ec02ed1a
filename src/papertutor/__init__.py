"""
PaperTutor - research paper explanations, one chunk at a time.

Extracts a paper from a PDF or arXiv, splits it into token-bounded chunks
and has an LLM explain each part, merging the results with cost tracking.
"""

__version__ = "0.1.0"

from papertutor.config import settings
from papertutor.errors import PaperTutorError, ExtractionError, AnalysisError

# Convenience imports for common operations
from papertutor.ingestion import (
    extract_pdf,
    fetch_arxiv,
    chunk_text,
    ParsedDocument,
    TextChunk,
)
from papertutor.analysis import (
    analyze,
    analyze_text,
    explain_section,
    get_analyzer,
    Analyzer,
    PaperAnalysisResult,
    calculate_cost,
)

__all__ = [
    "settings",
    "__version__",
    # Errors
    "PaperTutorError",
    "ExtractionError",
    "AnalysisError",
    # Ingestion
    "extract_pdf",
    "fetch_arxiv",
    "chunk_text",
    "ParsedDocument",
    "TextChunk",
    # Analysis
    "analyze",
    "analyze_text",
    "explain_section",
    "get_analyzer",
    "Analyzer",
    "PaperAnalysisResult",
    "calculate_cost",
]
