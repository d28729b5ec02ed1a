"""
LLM Client for PaperTutor.

Wrapper for the Ollama API with JSON-mode output and token accounting.
"""

from dataclasses import dataclass

import ollama

from papertutor.config import settings
from papertutor.console import console


@dataclass(frozen=True)
class LLMResponse:
    """Response from the LLM."""

    content: str
    model: str
    prompt_tokens: int
    completion_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class LLMClient:
    """
    Client for Ollama LLM interactions.

    Every call is a single attempt; transport and API errors propagate
    to the caller unchanged.
    """

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        context_length: int | None = None,
        timeout: float | None = None,
        host: str | None = None,
    ):
        """
        Initialize the LLM client.

        Args:
            model: Ollama model name (default from settings)
            temperature: Generation temperature (default from settings)
            context_length: Max context window (default from settings)
            timeout: Per-call timeout in seconds (default from settings)
            host: Ollama server URL (default from settings)
        """
        self.model = model or settings.ollama_model
        self.temperature = temperature if temperature is not None else settings.model_temperature
        self.context_length = settings.model_context_length if context_length is None else context_length
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.host = host or settings.ollama_host
        self._client = ollama.Client(host=self.host, timeout=self.timeout)

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        json_format: bool = False,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: User prompt
            system: Optional system prompt
            json_format: Constrain the reply to a JSON object
            max_tokens: Cap on generated tokens

        Returns:
            LLMResponse with content and token counts
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        options = {
            "temperature": self.temperature,
            "num_ctx": self.context_length,
        }
        if max_tokens:
            options["num_predict"] = max_tokens

        kwargs = {}
        if json_format:
            kwargs["format"] = "json"

        response = self._client.chat(
            model=self.model,
            messages=messages,
            options=options,
            **kwargs,
        )

        return LLMResponse(
            content=response["message"]["content"] or "",
            model=self.model,
            prompt_tokens=response.get("prompt_eval_count") or 0,
            completion_tokens=response.get("eval_count") or 0,
        )

    def is_available(self) -> bool:
        """Check if the Ollama server and model are available."""
        try:
            response = self._client.list()
            if hasattr(response, "models"):
                model_names = [m.model.split(":")[0] for m in response.models]
            else:
                model_names = [m["name"].split(":")[0] for m in response.get("models", [])]
            return self.model.split(":")[0] in model_names
        except Exception:
            return False


_default_client: LLMClient | None = None


def get_client() -> LLMClient:
    """Get or create the default LLM client."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
    return _default_client


def generate(
    prompt: str,
    system: str | None = None,
    json_format: bool = False,
    max_tokens: int | None = None,
) -> LLMResponse:
    """Generate using the default client."""
    return get_client().generate(prompt, system=system, json_format=json_format, max_tokens=max_tokens)


if __name__ == "__main__":
    client = LLMClient()

    if not client.is_available():
        console.print(f"[red]✗ Model '{client.model}' not available![/red]")
        console.print("[dim]Make sure Ollama is running and the model is pulled[/dim]")
    else:
        console.print(f"[green]✓[/green] Model: [cyan]{client.model}[/cyan]")
        response = client.generate(
            'Reply with {"ok": true}.',
            json_format=True,
            max_tokens=20,
        )
        console.print(response.content)
        console.print(f"[dim]Tokens: {response.prompt_tokens} prompt + "
                      f"{response.completion_tokens} completion = {response.total_tokens} total[/dim]")
