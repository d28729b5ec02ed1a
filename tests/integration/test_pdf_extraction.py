import pytest

from papertutor.errors import ExtractionError
from papertutor.ingestion import chunk_document, extract_pdf, reassemble


def test_extracts_paper_from_bytes(paper_pdf) -> None:
    paper = extract_pdf(paper_pdf, verbose=False)

    assert paper.title == "Attention Is All You Need"
    assert paper.authors == "Ashish Vaswani, Noam Shazeer"
    assert paper.abstract.startswith("The dominant sequence transduction models")
    assert paper.has_abstract
    assert paper.page_count == 3
    assert len(paper.full_text.split("\n")) == 3
    assert "Results show strong translation quality" in paper.full_text


def test_extracts_paper_from_path(tmp_path, paper_pdf) -> None:
    path = tmp_path / "paper.pdf"
    path.write_bytes(paper_pdf)

    assert extract_pdf(path, verbose=False).title == "Attention Is All You Need"
    assert extract_pdf(str(path), verbose=False).page_count == 3


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        extract_pdf(tmp_path / "missing.pdf", verbose=False)


def test_blank_pdf_has_no_text(pdf_builder) -> None:
    with pytest.raises(ExtractionError, match="no text"):
        extract_pdf(pdf_builder([[]]), verbose=False)


def test_extracted_text_chunks_cleanly(paper_pdf) -> None:
    paper = extract_pdf(paper_pdf, verbose=False)

    chunks = chunk_document(paper, max_tokens=20, chars_per_token=4)

    assert len(chunks) > 1
    assert reassemble(chunks) == paper.full_text
