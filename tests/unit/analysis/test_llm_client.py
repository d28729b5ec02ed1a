from unittest.mock import MagicMock, patch

import pytest

from papertutor.analysis.llm_client import LLMClient, LLMResponse


@pytest.fixture
def ollama_client():
    with patch("papertutor.analysis.llm_client.ollama.Client") as client_cls:
        instance = MagicMock()
        client_cls.return_value = instance
        yield client_cls, instance


def chat_response(content: str, prompt_eval_count=120, eval_count=30) -> dict:
    return {
        "message": {"role": "assistant", "content": content},
        "prompt_eval_count": prompt_eval_count,
        "eval_count": eval_count,
    }


class TestLLMClient:
    def test_client_uses_configured_host_and_timeout(self, ollama_client) -> None:
        client_cls, _ = ollama_client

        LLMClient(model="qwen2.5:7b", timeout=42.0, host="http://gpu-box:11434")

        client_cls.assert_called_once_with(host="http://gpu-box:11434", timeout=42.0)

    def test_generate_sends_json_mode_and_token_cap(self, ollama_client) -> None:
        _, instance = ollama_client
        instance.chat.return_value = chat_response('{"ok": true}')

        client = LLMClient(model="qwen2.5:7b", temperature=0.3, context_length=8192)
        response = client.generate("prompt", system="system", json_format=True, max_tokens=3000)

        kwargs = instance.chat.call_args.kwargs
        assert kwargs["model"] == "qwen2.5:7b"
        assert kwargs["format"] == "json"
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "prompt"},
        ]
        assert kwargs["options"] == {"temperature": 0.3, "num_ctx": 8192, "num_predict": 3000}
        assert response == LLMResponse(
            content='{"ok": true}',
            model="qwen2.5:7b",
            prompt_tokens=120,
            completion_tokens=30,
        )
        assert response.total_tokens == 150

    def test_plain_generation_has_no_format(self, ollama_client) -> None:
        _, instance = ollama_client
        instance.chat.return_value = chat_response("A title")

        LLMClient(model="m").generate("prompt")

        kwargs = instance.chat.call_args.kwargs
        assert "format" not in kwargs
        assert "num_predict" not in kwargs["options"]
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_missing_counts_become_zero(self, ollama_client) -> None:
        _, instance = ollama_client
        instance.chat.return_value = chat_response("x", prompt_eval_count=None, eval_count=None)

        response = LLMClient(model="m").generate("prompt")

        assert (response.prompt_tokens, response.completion_tokens) == (0, 0)

    def test_errors_propagate(self, ollama_client) -> None:
        _, instance = ollama_client
        instance.chat.side_effect = ConnectionError("refused")

        with pytest.raises(ConnectionError):
            LLMClient(model="m").generate("prompt")

    def test_is_available_matches_model_family(self, ollama_client) -> None:
        _, instance = ollama_client
        instance.list.return_value = {"models": [{"name": "qwen2.5:14b"}]}

        assert LLMClient(model="qwen2.5:7b").is_available()
        assert not LLMClient(model="llama3:8b").is_available()

    def test_is_available_is_false_when_server_down(self, ollama_client) -> None:
        _, instance = ollama_client
        instance.list.side_effect = ConnectionError("refused")

        assert not LLMClient(model="m").is_available()
