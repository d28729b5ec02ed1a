import json
from collections.abc import Callable

import pymupdf
import pytest

from papertutor.analysis.llm_client import LLMResponse


class ScriptedClient:
    """Stand-in for LLMClient that replays scripted replies in order."""

    model = "scripted-model"

    def __init__(self, replies: list) -> None:
        self.replies = list(replies)
        self.calls: list[dict] = []

    def generate(self, prompt, system=None, json_format=False, max_tokens=None) -> LLMResponse:
        self.calls.append({
            "prompt": prompt,
            "system": system,
            "json_format": json_format,
            "max_tokens": max_tokens,
        })
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_reply(data, prompt_tokens: int = 1000, completion_tokens: int = 500) -> LLMResponse:
    """LLMResponse whose content is `data` (JSON-encoded unless already a string)."""
    content = data if isinstance(data, str) else json.dumps(data)
    return LLMResponse(
        content=content,
        model="scripted-model",
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
    )


@pytest.fixture
def reply() -> Callable[..., LLMResponse]:
    return make_reply


@pytest.fixture
def scripted_client() -> Callable[[list], ScriptedClient]:
    return ScriptedClient


def build_pdf(pages: list[list[tuple[float, str]]]) -> bytes:
    """
    Build a PDF in memory.

    Each page is a list of (distance_from_top, text) lines.
    """
    doc = pymupdf.open()
    for lines in pages:
        page = doc.new_page()
        for top, text in lines:
            page.insert_text((72, top), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_builder() -> Callable[[list[list[tuple[float, str]]]], bytes]:
    return build_pdf


@pytest.fixture
def paper_pdf() -> bytes:
    """A three-page paper with a recognizable title and author line."""
    return build_pdf([
        [
            (60, "arXiv:1706.03762v5 [cs.CL] 6 Dec 2017"),
            (100, "Attention Is All You Need"),
            (130, "Ashish Vaswani, Noam Shazeer"),
            (150, "Google Brain"),
            (200, "Abstract"),
            (220, "The dominant sequence transduction models are based on recurrent networks."),
            (240, "1 Introduction"),
            (260, "Recurrent neural networks have been firmly established."),
        ],
        [
            (100, "Model architecture details follow, with attention layers stacked."),
        ],
        [
            (100, "Results show strong translation quality at lower training cost."),
        ],
    ])
