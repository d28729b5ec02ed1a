import pytest

from papertutor.ingestion.chunker import (
    TextChunk,
    chunk_document,
    chunk_text,
    estimate_tokens,
    reassemble,
)
from papertutor.ingestion.pdf_reader import ParsedDocument


def paragraphs(count: int, width: int) -> str:
    return "\n\n".join(f"{i:04d}" + "x" * (width - 4) for i in range(count))


class TestChunkText:
    def test_single_chunk_when_text_fits(self) -> None:
        result = chunk_text("hello world", max_tokens=10, chars_per_token=4)

        assert len(result) == 1
        assert result[0].text == "hello world"
        assert (result[0].start_pos, result[0].end_pos) == (0, 11)
        assert result[0].total_chunks == 1

    def test_empty_text_has_no_chunks(self) -> None:
        assert chunk_text("", max_tokens=10, chars_per_token=4) == []

    def test_whitespace_is_still_one_chunk(self) -> None:
        assert len(chunk_text("   ", max_tokens=10, chars_per_token=4)) == 1

    def test_packs_paragraphs_greedily(self) -> None:
        text = "aaaa\n\nbbbb\n\ncccc"

        result = chunk_text(text, max_tokens=3, chars_per_token=4)

        assert [c.text for c in result] == ["aaaa\n\nbbbb", "cccc"]
        assert [c.separator for c in result] == ["", "\n\n"]
        assert [c.chunk_index for c in result] == [0, 1]
        assert all(c.total_chunks == 2 for c in result)

    def test_oversized_paragraph_splits_on_sentences(self) -> None:
        text = "One two. Three four. Five six."

        result = chunk_text(text, max_tokens=3, chars_per_token=4)

        assert [c.text for c in result] == ["One two.", "Three four.", "Five six."]
        assert [c.separator for c in result] == ["", " ", " "]
        assert not any(c.forced for c in result)

    def test_sentence_tail_joins_next_paragraph(self) -> None:
        text = "Aaaa aaaa. Bbbb bbbb. Cc\n\nDd"

        result = chunk_text(text, max_tokens=3, chars_per_token=4)

        assert [c.text for c in result] == ["Aaaa aaaa.", "Bbbb bbbb.", "Cc\n\nDd"]

    def test_oversized_sentence_is_forced(self) -> None:
        long_sentence = "z" * 50
        text = f"short one\n\n{long_sentence}\n\ntail"

        result = chunk_text(text, max_tokens=3, chars_per_token=4)

        assert [c.text for c in result] == ["short one", long_sentence, "tail"]
        assert [c.forced for c in result] == [False, True, False]

    def test_eighty_thousand_chars_make_two_chunks(self) -> None:
        text = paragraphs(count=800, width=98) + "yy"
        assert len(text) == 80_000

        result = chunk_text(text, max_tokens=15000)

        assert len(result) == 2
        assert all(0 < len(c.text) <= 60_000 for c in result)

    def test_chunks_reassemble_to_original(self) -> None:
        sentences = ". ".join(f"Sentence number {i} talks about attention" for i in range(40))
        text = "\n\n".join([
            "Intro paragraph.",
            sentences,
            "A middle paragraph that is short.",
            sentences,
            "Closing words.",
        ])

        result = chunk_text(text, max_tokens=50, chars_per_token=4)

        assert len(result) > 1
        assert reassemble(result) == text
        for chunk in result:
            assert chunk.text
            assert text[chunk.start_pos:chunk.end_pos] == chunk.text
            if not chunk.forced:
                assert len(chunk.text) <= 200

    def test_order_is_preserved(self) -> None:
        text = paragraphs(count=30, width=40)

        result = chunk_text(text, max_tokens=25, chars_per_token=4)

        starts = [c.start_pos for c in result]
        assert starts == sorted(starts)
        assert result[0].text.startswith("0000")
        assert result[-1].text.endswith("x")

    def test_raises_on_zero_budget(self) -> None:
        with pytest.raises(ValueError, match="max_tokens must be > 0"):
            chunk_text("text", max_tokens=0)

    def test_raises_on_zero_ratio(self) -> None:
        with pytest.raises(ValueError, match="chars_per_token must be > 0"):
            chunk_text("text", max_tokens=10, chars_per_token=0)

    def test_long_blank_runs_are_not_chunks(self) -> None:
        text = "aaaa" + "\n" * 30 + "bbbb"

        result = chunk_text(text, max_tokens=3, chars_per_token=4)

        assert len(result) >= 2
        assert all(c.text.strip() for c in result)
        assert reassemble(result) == text
        assert [c.chunk_index for c in result] == list(range(len(result)))

    def test_defaults_come_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from papertutor.config import settings

        monkeypatch.setattr(settings, "chunk_max_tokens", 2)
        monkeypatch.setattr(settings, "chars_per_token", 4)

        result = chunk_text("aaaa\n\nbbbb")

        assert [c.text for c in result] == ["aaaa", "bbbb"]


class TestTextChunk:
    def test_metadata(self) -> None:
        chunk = TextChunk(text="two words", start_pos=5, end_pos=14, chunk_index=1, total_chunks=3)

        assert chunk.metadata["word_count"] == 2
        assert chunk.metadata["char_count"] == 9
        assert repr(chunk) == "TextChunk(1/3, 9 chars)"


def test_estimate_tokens_rounds_up() -> None:
    assert estimate_tokens("abcde", chars_per_token=4) == 2
    assert estimate_tokens("", chars_per_token=4) == 0


def test_chunk_document_uses_full_text() -> None:
    paper = ParsedDocument(
        title="A Paper Title",
        authors="Someone Else",
        abstract="No abstract found",
        full_text="aaaa\n\nbbbb",
        page_count=1,
    )

    result = chunk_document(paper, max_tokens=2, chars_per_token=4)

    assert reassemble(result) == paper.full_text
