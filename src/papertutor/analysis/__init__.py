"""
Analysis module for PaperTutor.

LLM-powered, chunk-by-chunk explanation of research papers.

# Quick start
from papertutor.analysis import analyze

result = analyze("path/to/paper.pdf")        # or PDF bytes, or an arXiv URL/id
result.display()
payload = result.to_dict()                   # JSON-ready, camelCase keys

# Already extracted text
from papertutor.analysis import Analyzer

analyzer = Analyzer()
result = analyzer.analyze_text(paper.full_text, title=paper.title, authors=paper.authors)

# Deeper explanation of one section
explanation = analyzer.explain_section("Method", section_text, paper_context=result.overview)

# Cost accounting
from papertutor.analysis import calculate_cost

calculate_cost(1_000_000, 0)   # 2.0 USD at default rates
"""

from papertutor.analysis.llm_client import (
    LLMClient,
    LLMResponse,
    get_client,
    generate,
)
from papertutor.analysis.cost import (
    UsageTotals,
    calculate_cost,
    round_cost,
)
from papertutor.analysis.engine import (
    Analyzer,
    ChunkAnalysis,
    ExplainedSection,
    PaperAnalysisResult,
    SectionExplanation,
    get_analyzer,
    analyze,
    analyze_text,
    explain_section,
)
from papertutor.analysis.prompts import (
    PromptTemplate,
    ANALYZE_CHUNK,
    GENERATE_TITLE,
    EXPLAIN_SECTION,
    chunk_prompts,
)

__all__ = [
    # LLM Client
    "LLMClient",
    "LLMResponse",
    "get_client",
    "generate",
    # Cost
    "UsageTotals",
    "calculate_cost",
    "round_cost",
    # Analyzer
    "Analyzer",
    "ChunkAnalysis",
    "ExplainedSection",
    "PaperAnalysisResult",
    "SectionExplanation",
    "get_analyzer",
    "analyze",
    "analyze_text",
    "explain_section",
    # Prompts
    "PromptTemplate",
    "ANALYZE_CHUNK",
    "GENERATE_TITLE",
    "EXPLAIN_SECTION",
    "chunk_prompts",
]
