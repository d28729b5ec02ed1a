"""
Prompt Templates for PaperTutor.

Structured prompts for chunked paper explanation, title generation and
single-section explanation.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PromptTemplate:
    """A prompt template with system and user components."""

    name: str
    description: str
    system_prompt: str
    user_template: str

    def format(self, **kwargs) -> tuple[str, str]:
        """
        Format the template with provided variables.

        Both parts are formatted, so system prompts may carry placeholders.

        Returns:
            Tuple of (formatted_system_prompt, formatted_user_prompt)
        """
        return self.system_prompt.format(**kwargs), self.user_template.format(**kwargs)


# === System Prompts ===

TUTOR_SYSTEM = """You are PaperTutor, an expert AI tutor specializing in research papers.
Analyze research papers and provide comprehensive, clear explanations suitable for students and researchers.
Focus on breaking down complex concepts into understandable explanations.

{position_note}

Respond in JSON format with the following structure:
{{
{first_chunk_fields}  "keyConcepts": ["array", "of", "key", "concepts"],
  "sections": [
    {{
      "id": "section_{chunk_index}_1",
      "title": "Section Title",
      "originalContent": "brief excerpt of original text",
      "explanation": "detailed explanation in simple terms"
    }}
  ]
}}"""

FIRST_CHUNK_NOTE = (
    "This is the first part of the paper. Provide a complete overview, initial analysis, "
    "and generate a clear, concise title based on the content."
)

LATER_CHUNK_NOTE = (
    "This is part {part} of {total} of the paper. Focus on section-specific analysis."
)

FIRST_CHUNK_FIELDS = """  "generatedTitle": "a clear, concise title (5-15 words) that captures the main contribution of this paper",
  "overview": "comprehensive overview of the paper's contributions and significance",
  "complexity": "Beginner/Intermediate/Advanced",
  "readingTime": "estimated reading time in minutes",
"""

TITLE_SYSTEM = (
    "Generate a clear, concise academic paper title (5-15 words) based on the content "
    "analysis. Respond with just the title."
)

SECTION_SYSTEM = """You are PaperTutor, an expert AI tutor. Provide clear, educational explanations of research paper sections.
Break down complex concepts into understandable terms. Use analogies and examples where helpful.
Focus on helping students understand the technical concepts and their practical implications."""


# === Prompt Templates ===

ANALYZE_CHUNK = PromptTemplate(
    name="analyze_chunk",
    description="Explain one chunk of a paper",
    system_prompt=TUTOR_SYSTEM,
    user_template="""Please analyze this {scope} and provide a comprehensive educational breakdown:

Title: {title}
Authors: {authors}
{part_note}
Paper Content:
{context}

Focus particularly on:
1. The main contributions and innovations
2. Key technical concepts
3. Mathematical concepts explained in simple terms
4. Practical implications and applications
5. Why this work is significant in the field

Provide detailed explanations that would help a student understand complex concepts."""
)

GENERATE_TITLE = PromptTemplate(
    name="generate_title",
    description="Polish a title from the overview and key concepts",
    system_prompt=TITLE_SYSTEM,
    user_template="""Create a proper title for this research paper based on this analysis:

Overview: {overview}

Key concepts: {concepts}"""
)

EXPLAIN_SECTION = PromptTemplate(
    name="explain_section",
    description="Explain a single section in depth",
    system_prompt=SECTION_SYSTEM,
    user_template="""Please provide a detailed, educational explanation of this section from a research paper:

Section Title: {section_title}
Paper Context: {paper_context}

Section Content:
{context}

Provide an explanation that:
1. Simplifies technical jargon
2. Explains key concepts clearly
3. Uses analogies where appropriate
4. Highlights the significance of this section
5. Connects to the broader paper context"""
)


def chunk_prompts(
    context: str,
    chunk_index: int,
    total_chunks: int,
    title: str | None = None,
    authors: str | None = None,
) -> tuple[str, str]:
    """
    Build (system, user) prompts for one chunk.

    Chunk 0 asks for the document-level fields (overview, complexity,
    reading time, generated title) on top of sections and key concepts.
    """
    is_first = chunk_index == 0
    part = chunk_index + 1

    if is_first:
        position_note = FIRST_CHUNK_NOTE
        part_note = ""
    else:
        position_note = LATER_CHUNK_NOTE.format(part=part, total=total_chunks)
        part_note = f"\nNote: This is part {part} of {total_chunks} of the full paper.\n"

    return ANALYZE_CHUNK.format(
        position_note=position_note,
        first_chunk_fields=FIRST_CHUNK_FIELDS if is_first else "",
        chunk_index=chunk_index,
        scope="research paper" if is_first else "section of the research paper",
        title=title or "Research Paper",
        authors=authors or "Not specified",
        part_note=part_note,
        context=context,
    )
