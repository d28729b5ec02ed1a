"""
Exceptions raised by PaperTutor.

Heuristic misses never raise; they degrade to fallback values.
"""


class PaperTutorError(Exception):
    """Base class for all PaperTutor failures."""


class ExtractionError(PaperTutorError):
    """The document could not be turned into usable page text."""


class AnalysisError(PaperTutorError):
    """A language-model call failed or returned an unusable reply."""
